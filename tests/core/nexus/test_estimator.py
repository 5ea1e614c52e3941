"""
Tests for the local estimator.
"""

import random
from decimal import Decimal

import pytest

from intentcompass.core.chains import SEPOLIA
from intentcompass.core.flow.errors import UnsupportedActionError
from intentcompass.core.flow.models import ExecuteAction
from intentcompass.core.nexus.estimator import (
    BRIDGE_LIVE_TIME_RANGE,
    BRIDGE_TIME_RANGE,
    CONTRACT_CALL_TIME_RANGE,
    TRANSFER_TIME_RANGE,
    LocalEstimator,
    format_cost,
    parse_amount,
)


@pytest.fixture
def estimator():
    return LocalEstimator(random.Random(42))


class TestCosts:

    @pytest.mark.parametrize(
        "amount,expected",
        [("0", "2.50"), ("100", "2.75"), ("1000", "5.00"), ("33.3", "2.58")],
    )
    def test_bridge_cost_grows_with_amount(self, estimator, amount, expected):
        cost, _ = estimator.estimate_bridge(amount)
        assert cost == expected

    def test_bridge_base_cost_is_configurable(self):
        cost, _ = LocalEstimator(random.Random(1), bridge_base_cost=Decimal("4")).estimate_bridge("100")
        assert cost == "4.40"

    def test_transfer_cost_range(self, estimator):
        for _ in range(50):
            cost, seconds = estimator.estimate_transfer()
            assert Decimal("0.50") <= Decimal(cost) <= Decimal("1.00")
            assert TRANSFER_TIME_RANGE[0] <= seconds <= TRANSFER_TIME_RANGE[1]

    @pytest.mark.parametrize("action,low", [(ExecuteAction.STAKE, "0.80"), (ExecuteAction.LEND, "1.00")])
    def test_contract_call_cost_range(self, estimator, action, low):
        for _ in range(50):
            cost, seconds = estimator.estimate_contract_call(action)
            assert Decimal(low) <= Decimal(cost) <= Decimal(low) + Decimal("0.50")
            assert CONTRACT_CALL_TIME_RANGE[0] <= seconds <= CONTRACT_CALL_TIME_RANGE[1]

    def test_swap_is_not_estimated(self, estimator):
        with pytest.raises(UnsupportedActionError, match="Swap action is not yet implemented"):
            estimator.estimate_contract_call(ExecuteAction.SWAP)

    def test_costs_have_two_decimals(self, estimator):
        cost, _ = estimator.estimate_transfer()
        assert len(cost.split(".")[1]) == 2


class TestTimes:

    def test_bridge_time_ranges(self, estimator):
        for _ in range(50):
            assert BRIDGE_TIME_RANGE[0] <= estimator.bridge_time() <= BRIDGE_TIME_RANGE[1]
            assert BRIDGE_LIVE_TIME_RANGE[0] <= estimator.bridge_time(live=True) <= BRIDGE_LIVE_TIME_RANGE[1]

    def test_seeded_estimates_repeat(self):
        first = LocalEstimator(random.Random(3))
        second = LocalEstimator(random.Random(3))
        assert [first.estimate_transfer() for _ in range(5)] == [second.estimate_transfer() for _ in range(5)]


class TestAmounts:

    @pytest.mark.parametrize("raw", ["abc", "", None, "-1", "NaN"])
    def test_invalid_amounts(self, raw):
        with pytest.raises(ValueError, match="Invalid amount"):
            parse_amount(raw)

    def test_parse_strips_whitespace(self):
        assert parse_amount(" 12.5 ") == Decimal("12.5")

    def test_format_cost_rounds_half_up(self):
        assert format_cost(Decimal("1.005")) == "1.01"


@pytest.mark.asyncio
async def test_mock_transaction(estimator):
    tx_hash, url = await estimator.mock_transaction(SEPOLIA)

    assert tx_hash.startswith("0x") and len(tx_hash) == 66
    assert url == f"https://sepolia.etherscan.io/tx/{tx_hash}"
