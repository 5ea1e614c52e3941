"""
Local cost/time estimator.

Stands in for the backend when no session is open (and, for simulations,
when the backend call fails). Costs follow fixed formulas; times are random
placeholders within fixed ranges until real backend telemetry is available,
so callers must only rely on the ranges. Pass a seeded ``random.Random`` to
make the placeholders reproducible.
"""

import asyncio
import logging
import random
import secrets
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Optional, Tuple

from ..chains import ChainId, explorer_tx_url
from ..flow.errors import UnsupportedActionError
from ..flow.models import ExecuteAction

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

BRIDGE_TIME_RANGE = (20, 39)
BRIDGE_LIVE_TIME_RANGE = (30, 59)
TRANSFER_TIME_RANGE = (5, 9)
CONTRACT_CALL_TIME_RANGE = (5, 14)

ACTION_BASE_COSTS: Dict[ExecuteAction, Decimal] = {
    ExecuteAction.STAKE: Decimal("0.8"),
    ExecuteAction.LEND: Decimal("1.0"),
}


def parse_amount(amount: Optional[str]) -> Decimal:
    """Parse a user-entered decimal amount."""
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Invalid amount: {amount!r}")
    if not value.is_finite() or value < 0:
        raise ValueError(f"Invalid amount: {amount!r}")
    return value


def format_cost(value: Decimal) -> str:
    return str(value.quantize(CENT, rounding=ROUND_HALF_UP))


class LocalEstimator:
    """Deterministic-cost stand-in for backend quotes and transactions."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        *,
        bridge_base_cost: Decimal = Decimal("2.5"),
        mock_latency_seconds: float = 0.0,
        explorer_base_url: Optional[str] = None,
    ) -> None:
        self._rng = rng or random.Random()
        self._bridge_base_cost = bridge_base_cost
        self._mock_latency = mock_latency_seconds
        self._explorer_base_url = explorer_base_url

    def _seconds(self, bounds: Tuple[int, int]) -> int:
        return self._rng.randint(*bounds)

    def _jitter(self, spread: str = "0.5") -> Decimal:
        return Decimal(str(self._rng.random())) * Decimal(spread)

    def bridge_time(self, *, live: bool = False) -> int:
        return self._seconds(BRIDGE_LIVE_TIME_RANGE if live else BRIDGE_TIME_RANGE)

    def transfer_time(self) -> int:
        return self._seconds(TRANSFER_TIME_RANGE)

    def estimate_bridge(self, amount: str) -> Tuple[str, int]:
        """Cost grows with the bridged amount: base * (1 + amount/100 * 0.1)."""
        multiplier = parse_amount(amount) / Decimal(100)
        cost = self._bridge_base_cost * (Decimal(1) + multiplier * Decimal("0.1"))
        return format_cost(cost), self.bridge_time()

    def estimate_transfer(self) -> Tuple[str, int]:
        cost = Decimal("0.5") + self._jitter()
        return format_cost(cost), self.transfer_time()

    def estimate_contract_call(self, action: ExecuteAction) -> Tuple[str, int]:
        base = ACTION_BASE_COSTS.get(action)
        if base is None:
            raise UnsupportedActionError(action.value)
        cost = base + self._jitter()
        return format_cost(cost), self._seconds(CONTRACT_CALL_TIME_RANGE)

    async def mock_transaction(self, chain_id: ChainId) -> Tuple[str, str]:
        """Pretend to send a transaction; returns a random hash and its explorer link."""
        if self._mock_latency:
            await asyncio.sleep(self._mock_latency)
        tx_hash = "0x" + secrets.token_hex(32)
        logger.info("Mock transaction %s on chain %s", tx_hash, chain_id)
        return tx_hash, explorer_tx_url(chain_id, tx_hash, self._explorer_base_url)
