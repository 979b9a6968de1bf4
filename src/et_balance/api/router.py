"""Ledger REST endpoints.

POST   /accounts                 — create an account
GET    /accounts                 — accounts with recomputed balances
GET    /accounts/{name}          — one account with its transaction refs
POST   /transactions             — transfer between two accounts
GET    /transactions             — full history, ascending id
GET    /transactions/{id}        — one transaction + its balance snapshot
PATCH  /transactions/{id}        — edit fields in place
DELETE /transactions/{id}        — delete, recompute endpoint balances
POST   /ledger/clear             — wipe everything, keep reserved accounts
GET    /ledger/reconcile         — cached vs. recomputed balance drift
POST   /ledger/rebuild           — rewrite drifted cached balances
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.et_balance.api.dependencies import get_ledger_service
from src.et_balance.application.schemas import (
    CreateAccountRequest,
    EditTransactionRequest,
    TransferRequest,
)
from src.et_balance.application.service import LedgerApplicationService
from src.et_common.database import get_db_session
from src.et_common.response import ApiResponse, success_response

router = APIRouter(tags=["ledger"])

Service = Annotated[LedgerApplicationService, Depends(get_ledger_service)]
Session = Annotated[AsyncSession, Depends(get_db_session)]


def _respond(request: Request, data: object) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@router.post("/accounts")
async def create_account(
    body: CreateAccountRequest, svc: Service, db: Session, request: Request
) -> ApiResponse:
    data = await svc.create_account(db, body.name, body.starting_balance)
    return _respond(request, data.model_dump())


@router.get("/accounts")
async def list_accounts(svc: Service, db: Session, request: Request) -> ApiResponse:
    items = await svc.list_accounts(db)
    return _respond(request, [i.model_dump() for i in items])


@router.get("/accounts/{name}")
async def get_account(name: str, svc: Service, db: Session, request: Request) -> ApiResponse:
    data = await svc.get_account(db, name)
    return _respond(request, data.model_dump())


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


@router.post("/transactions")
async def transfer(
    body: TransferRequest, svc: Service, db: Session, request: Request
) -> ApiResponse:
    data = await svc.transfer(
        db,
        from_account=body.from_account,
        to_account=body.to_account,
        amount=body.amount,
        type=body.type,
        category=body.category,
        comment=body.comment,
        created_at=body.created_at,
    )
    return _respond(request, data.model_dump())


@router.get("/transactions")
async def list_transactions(svc: Service, db: Session, request: Request) -> ApiResponse:
    items = await svc.list_transactions(db)
    return _respond(request, [i.model_dump() for i in items])


@router.get("/transactions/{transaction_id}")
async def get_transaction(
    transaction_id: int, svc: Service, db: Session, request: Request
) -> ApiResponse:
    data = await svc.get_transaction(db, transaction_id)
    return _respond(request, data.model_dump())


@router.patch("/transactions/{transaction_id}")
async def edit_transaction(
    transaction_id: int,
    body: EditTransactionRequest,
    svc: Service,
    db: Session,
    request: Request,
) -> ApiResponse:
    data = await svc.edit_transaction(db, transaction_id, body.changes())
    return _respond(request, data.model_dump())


@router.delete("/transactions/{transaction_id}")
async def delete_transaction(
    transaction_id: int, svc: Service, db: Session, request: Request
) -> ApiResponse:
    data = await svc.delete_transaction(db, transaction_id)
    return _respond(request, data.model_dump())


# ---------------------------------------------------------------------------
# Whole ledger
# ---------------------------------------------------------------------------


@router.post("/ledger/clear")
async def clear_ledger(svc: Service, db: Session, request: Request) -> ApiResponse:
    items = await svc.clear_ledger(db)
    return _respond(request, [i.model_dump() for i in items])


@router.get("/ledger/reconcile")
async def reconcile(svc: Service, db: Session, request: Request) -> ApiResponse:
    data = await svc.reconcile(db)
    return _respond(request, data.model_dump())


@router.post("/ledger/rebuild")
async def rebuild_balances(svc: Service, db: Session, request: Request) -> ApiResponse:
    data = await svc.rebuild_balances(db)
    return _respond(request, data.model_dump())
