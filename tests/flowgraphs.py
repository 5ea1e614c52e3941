"""Graph builders and backend doubles shared by the test modules."""

import random
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

from intentcompass.core.chains import BASE_SEPOLIA, SEPOLIA
from intentcompass.core.flow.dispatcher import FlowDispatcher
from intentcompass.core.flow.models import FlowEdge, FlowNode, parse_edges, parse_nodes
from intentcompass.core.nexus.backend import ChainAbstractionBackend
from intentcompass.core.nexus.contracts import ActionContractRegistry
from intentcompass.core.nexus.estimator import LocalEstimator
from intentcompass.core.nexus.facade import RemoteCapabilityFacade

USER = "0x1234567890abcdef1234567890abcdef12345678"
VAULT = "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd"
RECIPIENT = "0x9999999999999999999999999999999999999999"

CONTRACTS = {
    "stake": {str(SEPOLIA): VAULT, str(BASE_SEPOLIA): VAULT},
    "lend": {str(SEPOLIA): VAULT, str(BASE_SEPOLIA): VAULT},
}

BACKEND_METHODS = (
    "initialize",
    "simulate_bridge",
    "bridge",
    "simulate_transfer",
    "transfer",
    "simulate_execute",
    "execute",
    "simulate_bridge_and_execute",
    "bridge_and_execute",
    "get_unified_balances",
    "close",
)


def start(node_id: str = "start-1", chain: int = BASE_SEPOLIA, token: str = "USDC", amount: str = "100") -> Dict[str, Any]:
    return {"id": node_id, "type": "start", "data": {"label": "Start", "chain": chain, "token": token, "amount": amount}}


def bridge(node_id: str = "bridge-1", to_chain: int = SEPOLIA, amount: str = "100") -> Dict[str, Any]:
    return {"id": node_id, "type": "bridge", "data": {"label": "Bridge", "toChain": to_chain, "amount": amount}}


def transfer(node_id: str = "transfer-1", recipient: str = RECIPIENT, amount: str = "10") -> Dict[str, Any]:
    return {"id": node_id, "type": "transfer", "data": {"label": "Transfer", "recipient": recipient, "amount": amount}}


def execute(node_id: str = "execute-1", action: str = "stake", amount: str = "100") -> Dict[str, Any]:
    return {"id": node_id, "type": "execute", "data": {"label": "Execute", "action": action, "amount": amount}}


def end(node_id: str = "end-1") -> Dict[str, Any]:
    return {"id": node_id, "type": "end", "data": {"label": "End"}}


def edge(source: str, target: str) -> Dict[str, Any]:
    return {"id": f"{source}->{target}", "source": source, "target": target}


def graph(*raw_nodes: Dict[str, Any], edges: Optional[List[Dict[str, Any]]] = None) -> Tuple[List[FlowNode], List[FlowEdge]]:
    """Parse nodes and, unless edges are given, chain them in argument order."""
    if edges is None:
        edges = [edge(a["id"], b["id"]) for a, b in zip(raw_nodes, raw_nodes[1:])]
    return parse_nodes(raw_nodes), parse_edges(edges)


def make_backend(initialized: bool = True) -> MagicMock:
    backend = MagicMock(spec=ChainAbstractionBackend)
    backend.is_initialized.return_value = initialized
    backend.user_address = USER if initialized else None
    for name in BACKEND_METHODS:
        setattr(backend, name, AsyncMock())
    return backend


def make_facade(backend: Optional[ChainAbstractionBackend] = None, seed: int = 7) -> RemoteCapabilityFacade:
    return RemoteCapabilityFacade(
        backend,
        estimator=LocalEstimator(random.Random(seed)),
        contracts=ActionContractRegistry(CONTRACTS),
    )


def make_dispatcher(backend: Optional[ChainAbstractionBackend] = None, seed: int = 7) -> FlowDispatcher:
    return FlowDispatcher(make_facade(backend, seed), step_delay_seconds=0, success_rate=0.98)
