from fastapi import APIRouter, Depends

from ..core.flow.dispatcher import FlowDispatcher
from ..services.unified_balance import UnifiedBalanceResult, UnifiedBalanceService
from .deps import get_dispatcher

router = APIRouter(prefix="/balances", tags=["Balances"])


@router.get("")
async def get_balances(dispatcher: FlowDispatcher = Depends(get_dispatcher)) -> UnifiedBalanceResult:
    """Token balances of the session user across all supported chains."""
    service = UnifiedBalanceService(dispatcher.facade)
    return await service.get_unified_balances()
