"""
Tests for execute-action contract resolution.
"""

import pytest

from intentcompass.config import DEFAULT_VAULT_ADDRESS
from intentcompass.core.chains import ARBITRUM_SEPOLIA, CHAIN_NAMES, SEPOLIA
from intentcompass.core.flow.errors import UnsupportedActionError
from intentcompass.core.flow.models import ExecuteAction
from intentcompass.core.nexus.contracts import (
    ActionContractRegistry,
    ContractNotConfiguredError,
    build_deposit_params,
    to_base_units,
)

from flowgraphs import CONTRACTS, USER, VAULT


@pytest.fixture
def registry():
    return ActionContractRegistry(CONTRACTS)


def test_to_base_units_uses_token_decimals():
    assert to_base_units("1.5", "USDC") == 1_500_000
    assert to_base_units("0.000000000000000001", "ETH") == 1
    assert to_base_units("0.0000001", "USDC") == 0


def test_deposit_params():
    assert build_deposit_params("USDC", "100", SEPOLIA, USER) == {"functionParams": ["100000000", USER]}


class TestRegistry:

    def test_resolves_configured_vault(self, registry):
        contract = registry.resolve(ExecuteAction.LEND, SEPOLIA)
        assert contract.address == VAULT
        assert contract.function_name == "deposit"
        assert contract.abi[0]["name"] == "deposit"

    def test_node_override_wins(self, registry):
        contract = registry.resolve(ExecuteAction.STAKE, ARBITRUM_SEPOLIA, override_address="0xfeed")
        assert contract.address == "0xfeed"

    def test_unconfigured_chain(self, registry):
        with pytest.raises(ContractNotConfiguredError, match="Arbitrum Sepolia"):
            registry.resolve(ExecuteAction.STAKE, ARBITRUM_SEPOLIA)

    def test_swap_is_rejected(self, registry):
        with pytest.raises(UnsupportedActionError):
            registry.resolve(ExecuteAction.SWAP, SEPOLIA)

    def test_execute_request_payload(self, registry):
        request = registry.build_execute_request(ExecuteAction.STAKE, SEPOLIA, token="USDC", amount="25")
        payload = request.to_payload(token="USDC", amount="25", user_address=USER)

        assert payload["toChainId"] == SEPOLIA
        assert payload["contractAddress"] == VAULT
        assert payload["functionName"] == "deposit"
        assert payload["functionParams"] == ["25000000", USER]
        assert payload["tokenApproval"] == {"token": "USDC", "amount": "25"}


@pytest.mark.parametrize("action", [ExecuteAction.STAKE, ExecuteAction.LEND])
@pytest.mark.parametrize("chain_id", sorted(CHAIN_NAMES))
def test_default_registry_covers_every_chain(action, chain_id):
    contract = ActionContractRegistry().resolve(action, chain_id)
    assert contract.address == DEFAULT_VAULT_ADDRESS
