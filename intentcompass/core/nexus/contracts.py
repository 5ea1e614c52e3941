"""Contract targets for execute-node actions.

Both supported actions deposit the flow token into an ERC-4626 vault on the
current chain (a staking vault for ``stake``, a lending vault for ``lend``).
Vault addresses come from settings, keyed by action then chain id, and can
be overridden per node with ``contractAddress``.
"""

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from typing import Any, Dict, List, Optional

from ..chains import TOKEN_DECIMALS, ChainId, chain_id_to_name
from ..flow.errors import FlowError, UnsupportedActionError
from ..flow.models import ExecuteAction
from .backend import ExecuteRequest, TokenApproval
from .estimator import parse_amount

ERC4626_DEPOSIT_ABI: List[Dict[str, Any]] = [
    {
        "type": "function",
        "name": "deposit",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "assets", "type": "uint256"},
            {"name": "receiver", "type": "address"},
        ],
        "outputs": [{"name": "shares", "type": "uint256"}],
    }
]


class ContractNotConfiguredError(FlowError):
    """No contract is known for an action on a chain."""


def to_base_units(amount: str, token: str) -> int:
    decimals = TOKEN_DECIMALS.get(token, 18)
    value = parse_amount(amount) * (Decimal(10) ** decimals)
    return int(value.quantize(Decimal("1"), rounding=ROUND_DOWN))


def build_deposit_params(token: str, amount: str, chain_id: int, user_address: str) -> Dict[str, List[Any]]:
    return {"functionParams": [str(to_base_units(amount, token)), user_address]}


@dataclass(frozen=True)
class ActionContract:
    action: ExecuteAction
    chain_id: ChainId
    address: str
    function_name: str = "deposit"

    @property
    def abi(self) -> List[Dict[str, Any]]:
        return ERC4626_DEPOSIT_ABI


class ActionContractRegistry:
    """Resolves where an execute action lands on a given chain."""

    SUPPORTED = (ExecuteAction.STAKE, ExecuteAction.LEND)

    def __init__(self, addresses: Optional[Dict[str, Dict[str, str]]] = None) -> None:
        if addresses is None:
            from ...config import settings

            addresses = settings.action_contracts
        self._addresses: Dict[ExecuteAction, Dict[int, str]] = {}
        for action, per_chain in addresses.items():
            self._addresses[ExecuteAction(action)] = {
                int(chain): address for chain, address in per_chain.items()
            }

    def resolve(
        self,
        action: ExecuteAction,
        chain_id: ChainId,
        override_address: Optional[str] = None,
    ) -> ActionContract:
        if action not in self.SUPPORTED:
            raise UnsupportedActionError(action.value)
        address = override_address or self._addresses.get(action, {}).get(chain_id)
        if not address:
            raise ContractNotConfiguredError(
                f"No {action.value} contract configured on {chain_id_to_name(chain_id)}"
            )
        return ActionContract(action=action, chain_id=chain_id, address=address)

    def build_execute_request(
        self,
        action: ExecuteAction,
        chain_id: ChainId,
        *,
        token: str,
        amount: str,
        override_address: Optional[str] = None,
    ) -> ExecuteRequest:
        contract = self.resolve(action, chain_id, override_address)
        return ExecuteRequest(
            to_chain_id=chain_id,
            contract_address=contract.address,
            contract_abi=contract.abi,
            function_name=contract.function_name,
            build_function_params=build_deposit_params,
            token_approval=TokenApproval(token=token, amount=amount),
        )
