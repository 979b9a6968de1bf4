"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 3000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.et_backup.api.router import router as backup_router
from src.et_balance.api.dependencies import get_ledger_service
from src.et_balance.api.router import router as ledger_router
from src.et_common.database import Base, async_session_factory, engine
from src.et_common.errors import AppError
from src.et_common.response import error_response
from src.et_gateway.middleware.request_log import RequestLogMiddleware
from src.et_ledger.infrastructure import db_models  # noqa: F401  -- registers tables


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB, create schema if asked, seed reserved accounts. Shutdown: dispose."""
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
        if settings.AUTO_CREATE_SCHEMA:
            await conn.run_sync(Base.metadata.create_all)
    async with async_session_factory() as db:
        await get_ledger_service().ensure_reserved_accounts(db)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(ledger_router, prefix="/api/v1")
app.include_router(backup_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
