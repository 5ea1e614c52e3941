"""
Unified Balance Service.

Aggregates the token balances the Nexus backend reports for the session's
user across all supported testnets, with a per-chain breakdown.

Features:
- Per-token totals with chain breakdown
- Fiat value totals where the backend reports them
- Short-lived caching between canvas refreshes
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from ..core.chains import chain_id_to_name
from ..core.flow.errors import BackendError
from ..core.nexus.facade import RemoteCapabilityFacade

logger = logging.getLogger(__name__)


def _to_decimal(value: object) -> Decimal:
    if value is None:
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")


@dataclass
class ChainTokenBalance:
    """Token balance on a specific chain."""
    chain_id: int
    chain_name: str
    balance: Decimal
    fiat_value: Decimal = Decimal("0")


@dataclass
class TokenBalance:
    """Balance of a single token across chains."""
    symbol: str
    total_balance: Decimal = Decimal("0")
    total_fiat_value: Decimal = Decimal("0")
    chains: List[ChainTokenBalance] = field(default_factory=list)


@dataclass
class UnifiedBalanceResult:
    """Result of unified balance query."""
    success: bool
    account_address: Optional[str] = None
    total_fiat_value: Decimal = Decimal("0")
    tokens: List[TokenBalance] = field(default_factory=list)
    cached: bool = False
    timestamp: int = 0
    error: Optional[str] = None


class UnifiedBalanceService:
    """
    Service for fetching and aggregating multi-chain balances.

    Usage:
        service = UnifiedBalanceService(facade)

        result = await service.get_unified_balances()
        usdc = await service.get_token_balance("USDC")
    """

    def __init__(self, facade: RemoteCapabilityFacade, cache_ttl_seconds: int = 30) -> None:
        self._facade = facade
        self._cache: Optional[UnifiedBalanceResult] = None
        self._cache_ttl = cache_ttl_seconds

    def _get_cached(self) -> Optional[UnifiedBalanceResult]:
        if self._cache is None:
            return None
        if time.time() - self._cache.timestamp > self._cache_ttl:
            self._cache = None
            return None
        self._cache.cached = True
        return self._cache

    def clear_cache(self) -> None:
        self._cache = None

    async def get_unified_balances(self, force_refresh: bool = False) -> UnifiedBalanceResult:
        """
        Get unified token balances across all chains.

        Never raises; backend problems are reported through ``success`` and
        ``error``.
        """
        if not force_refresh:
            cached = self._get_cached()
            if cached:
                return cached

        backend = self._facade.backend
        account_address = backend.user_address if backend is not None else None

        try:
            assets = await self._facade.get_unified_balances()
        except BackendError as e:
            logger.error(f"Failed to fetch unified balances: {e}")
            return UnifiedBalanceResult(success=False, account_address=account_address, error=str(e))
        except Exception as e:
            logger.error(f"Unexpected error fetching unified balances: {e}")
            return UnifiedBalanceResult(success=False, account_address=account_address, error=str(e))

        tokens: List[TokenBalance] = []
        total_fiat = Decimal("0")
        for asset in assets:
            chains = [
                ChainTokenBalance(
                    chain_id=entry.chain_id,
                    chain_name=entry.chain_name or chain_id_to_name(entry.chain_id),
                    balance=_to_decimal(entry.balance),
                    fiat_value=_to_decimal(entry.balance_in_fiat),
                )
                for entry in asset.breakdown
            ]
            token_fiat = _to_decimal(asset.balance_in_fiat)
            total_fiat += token_fiat
            tokens.append(TokenBalance(
                symbol=asset.symbol,
                total_balance=_to_decimal(asset.balance),
                total_fiat_value=token_fiat,
                chains=chains,
            ))

        # Largest holdings first
        tokens.sort(key=lambda t: t.total_fiat_value, reverse=True)

        result = UnifiedBalanceResult(
            success=True,
            account_address=account_address,
            total_fiat_value=total_fiat,
            tokens=tokens,
            timestamp=int(time.time()),
        )
        self._cache = result
        return result

    async def get_token_balance(self, token_symbol: str) -> Optional[TokenBalance]:
        """Balance of one token across chains, or None if not held or unavailable."""
        result = await self.get_unified_balances()
        if not result.success:
            return None

        token_symbol_upper = token_symbol.upper()
        for token in result.tokens:
            if token.symbol.upper() == token_symbol_upper:
                return token
        return None

    async def get_chain_breakdown(self) -> Dict[int, Decimal]:
        """Total fiat value held on each chain."""
        result = await self.get_unified_balances()
        if not result.success:
            return {}

        breakdown: Dict[int, Decimal] = {}
        for token in result.tokens:
            for chain_balance in token.chains:
                breakdown[chain_balance.chain_id] = (
                    breakdown.get(chain_balance.chain_id, Decimal("0")) + chain_balance.fiat_value
                )
        return breakdown
