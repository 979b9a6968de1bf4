"""FastAPI dependency: get_ledger_service.

All routers share ONE LedgerApplicationService so that every write in the
process goes through the same write lock:

    from src.et_balance.api.dependencies import get_ledger_service

    @router.post("/something")
    async def handler(svc: LedgerApplicationService = Depends(get_ledger_service)):
        ...
"""

from src.et_balance.application.service import LedgerApplicationService

_ledger_service = LedgerApplicationService()


def get_ledger_service() -> LedgerApplicationService:
    return _ledger_service
