"""Backup REST endpoints.

GET  /backup/export   — whole ledger as a JSON snapshot
POST /backup/import   — replace the whole ledger with a snapshot
GET  /backup/db       — raw SQLite database file download
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.et_backup.application.schemas import LedgerSnapshot
from src.et_backup.application.service import BackupApplicationService
from src.et_balance.api.dependencies import get_ledger_service
from src.et_balance.application.service import LedgerApplicationService
from src.et_common.database import get_db_session
from src.et_common.response import ApiResponse, success_response

router = APIRouter(prefix="/backup", tags=["backup"])


def get_backup_service(
    ledger: Annotated[LedgerApplicationService, Depends(get_ledger_service)],
) -> BackupApplicationService:
    return BackupApplicationService(ledger)


@router.get("/export")
async def export_ledger(
    svc: Annotated[BackupApplicationService, Depends(get_backup_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    snapshot = await svc.export_ledger(db)
    resp = success_response(snapshot.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/import")
async def import_ledger(
    body: LedgerSnapshot,
    svc: Annotated[BackupApplicationService, Depends(get_backup_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await svc.import_ledger(db, body)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/db")
async def download_database(
    svc: Annotated[BackupApplicationService, Depends(get_backup_service)],
) -> FileResponse:
    path = svc.database_file()
    return FileResponse(path, filename="expense_tracker.db", media_type="application/octet-stream")
