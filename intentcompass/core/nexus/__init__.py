"""Chain-abstraction backend contract, local estimator and the facade over both."""

from .backend import (
    BridgeAndExecuteRequest,
    BridgeAndExecuteResponse,
    BridgeRequest,
    ChainAbstractionBackend,
    ExecuteRequest,
    TransactionResponse,
    TransferRequest,
    UserAsset,
)
from .contracts import ActionContractRegistry
from .estimator import LocalEstimator
from .facade import RemoteCapabilityFacade

__all__ = [
    "ActionContractRegistry",
    "BridgeAndExecuteRequest",
    "BridgeAndExecuteResponse",
    "BridgeRequest",
    "ChainAbstractionBackend",
    "ExecuteRequest",
    "LocalEstimator",
    "RemoteCapabilityFacade",
    "TransactionResponse",
    "TransferRequest",
    "UserAsset",
]
