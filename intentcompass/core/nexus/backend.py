"""Contract of the chain-abstraction backend consumed by the flow engine.

Requests are plain dataclasses (the combined call carries a parameter
builder callback); responses are parsed from the backend's JSON with pydantic.
Simulation responses are returned as raw dicts because their fee layout
differs between operations and backend versions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# (token, amount, chain_id, user_address) -> {"functionParams": [...]}
FunctionParamsBuilder = Callable[[str, str, int, str], Dict[str, List[Any]]]


@dataclass
class BridgeRequest:
    token: str
    amount: str
    to_chain_id: int

    def to_payload(self) -> Dict[str, Any]:
        return {"token": self.token, "amount": self.amount, "chainId": self.to_chain_id}


@dataclass
class TransferRequest:
    token: str
    amount: str
    to_chain_id: int
    recipient: str

    def to_payload(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "amount": self.amount,
            "chainId": self.to_chain_id,
            "recipient": self.recipient,
        }


@dataclass
class TokenApproval:
    token: str
    amount: str


@dataclass
class ExecuteRequest:
    to_chain_id: int
    contract_address: str
    contract_abi: List[Dict[str, Any]]
    function_name: str
    build_function_params: FunctionParamsBuilder
    token_approval: Optional[TokenApproval] = None

    def to_payload(self, *, token: str, amount: str, user_address: str) -> Dict[str, Any]:
        """Serialize for the wire, resolving the parameter builder."""
        built = self.build_function_params(token, amount, self.to_chain_id, user_address)
        payload: Dict[str, Any] = {
            "toChainId": self.to_chain_id,
            "contractAddress": self.contract_address,
            "contractAbi": self.contract_abi,
            "functionName": self.function_name,
            "functionParams": built.get("functionParams", []),
        }
        if self.token_approval is not None:
            payload["tokenApproval"] = {
                "token": self.token_approval.token,
                "amount": self.token_approval.amount,
            }
        return payload


@dataclass
class BridgeAndExecuteRequest:
    token: str
    amount: str
    to_chain_id: int
    execute: ExecuteRequest
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self, user_address: str) -> Dict[str, Any]:
        return {
            "token": self.token,
            "amount": self.amount,
            "toChainId": self.to_chain_id,
            "execute": self.execute.to_payload(
                token=self.token, amount=self.amount, user_address=user_address
            ),
            **self.extra,
        }


class BackendModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class TransactionResponse(BackendModel):
    success: bool = False
    transaction_hash: Optional[str] = None
    explorer_url: Optional[str] = None
    error: Optional[str] = None


class BridgeAndExecuteResponse(BackendModel):
    success: bool = False
    bridge_transaction_hash: Optional[str] = None
    bridge_explorer_url: Optional[str] = None
    execute_transaction_hash: Optional[str] = None
    execute_explorer_url: Optional[str] = None
    transaction_hash: Optional[str] = None
    explorer_url: Optional[str] = None
    error: Optional[str] = None

    def bridge_pair(self) -> Tuple[Optional[str], Optional[str]]:
        """Bridge-side hash and URL, reusing the other side when only one was reported."""
        if self.bridge_transaction_hash:
            return self.bridge_transaction_hash, self.bridge_explorer_url
        return self._fallback_pair(self.execute_transaction_hash, self.execute_explorer_url)

    def execute_pair(self) -> Tuple[Optional[str], Optional[str]]:
        if self.execute_transaction_hash:
            return self.execute_transaction_hash, self.execute_explorer_url
        return self._fallback_pair(self.bridge_transaction_hash, self.bridge_explorer_url)

    def _fallback_pair(
        self, other_hash: Optional[str], other_url: Optional[str]
    ) -> Tuple[Optional[str], Optional[str]]:
        if other_hash:
            return other_hash, other_url
        return self.transaction_hash, self.explorer_url


class ChainBreakdown(BackendModel):
    chain_id: int
    balance: str = "0"
    chain_name: Optional[str] = None
    balance_in_fiat: Optional[float] = None


class UserAsset(BackendModel):
    symbol: str
    balance: str = "0"
    balance_in_fiat: Optional[float] = None
    breakdown: List[ChainBreakdown] = Field(default_factory=list)


class ChainAbstractionBackend(ABC):
    """Remote capability performing bridges, transfers and contract calls.

    ``is_initialized`` must be true before any other call; the session is
    opened once by whoever owns the backend handle.
    """

    name: str

    @abstractmethod
    async def initialize(self, user_address: str) -> None:
        """Open a backend session for ``user_address``."""

    @abstractmethod
    def is_initialized(self) -> bool:
        """Whether a session is open."""

    @property
    @abstractmethod
    def user_address(self) -> Optional[str]:
        """Address the session was opened for."""

    @abstractmethod
    async def simulate_bridge(self, request: BridgeRequest) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def bridge(self, request: BridgeRequest) -> TransactionResponse:
        pass

    @abstractmethod
    async def simulate_transfer(self, request: TransferRequest) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def transfer(self, request: TransferRequest) -> TransactionResponse:
        pass

    @abstractmethod
    async def simulate_execute(self, request: ExecuteRequest, *, token: str, amount: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def execute(self, request: ExecuteRequest, *, token: str, amount: str) -> TransactionResponse:
        pass

    @abstractmethod
    async def simulate_bridge_and_execute(self, request: BridgeAndExecuteRequest) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def bridge_and_execute(self, request: BridgeAndExecuteRequest) -> BridgeAndExecuteResponse:
        pass

    @abstractmethod
    async def get_unified_balances(self) -> List[UserAsset]:
        pass

    async def close(self) -> None:
        """Release transport resources."""
