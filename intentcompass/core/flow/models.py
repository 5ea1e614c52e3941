"""Graph and result models for visual flows.

This module defines:
- Node payloads for the five node kinds and the tagged ``FlowNode`` union
- FlowEdge and FlowGraph (editing helpers over a node/edge set)
- Simulation and execution results, per node and per flow
- FlowTemplate, the persisted shape of a saved graph

Field names are snake_case in Python and camelCase on the wire so saved
templates and API payloads keep the format the canvas produces.
"""

import time
from enum import Enum
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from ..chains import ChainId, is_supported_chain


def now_ms() -> int:
    """Wall-clock timestamp in epoch milliseconds."""
    return int(time.time() * 1000)


class NodeKind(str, Enum):
    """Node kind tags as stored in saved graphs."""
    ENTRY = "start"
    BRIDGE = "bridge"
    TRANSFER = "transfer"
    CONTRACT_CALL = "execute"
    TERMINAL = "end"


# Compared against the raw ``type`` strings of nodes
ACTION_KINDS = frozenset(kind.value for kind in (NodeKind.BRIDGE, NodeKind.TRANSFER, NodeKind.CONTRACT_CALL))


class Token(str, Enum):
    ETH = "ETH"
    USDC = "USDC"
    USDT = "USDT"


class ExecuteAction(str, Enum):
    STAKE = "stake"
    LEND = "lend"
    SWAP = "swap"


class NodeStatus(str, Enum):
    """Live status shown on a node while a flow runs."""
    PENDING = "pending"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


class ExecutionStatus(str, Enum):
    IDLE = "idle"
    SIMULATING = "simulating"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


class FlowModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Node payloads
# =============================================================================


class BaseNodeData(FlowModel):
    # Canvas-only keys are kept so templates round-trip untouched
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    label: str = ""
    status: Optional[NodeStatus] = None


class EstimatedNodeData(BaseNodeData):
    estimated_cost: Optional[str] = None
    estimated_time: Optional[int] = None


class StartNodeData(BaseNodeData):
    chain: ChainId
    token: Token
    amount: Optional[str] = None
    user_address: Optional[str] = None


class BridgeNodeData(EstimatedNodeData):
    to_chain: ChainId
    amount: str
    from_chain: Optional[ChainId] = None
    token: Optional[Token] = None


class TransferNodeData(EstimatedNodeData):
    amount: str
    recipient: str
    chain: Optional[ChainId] = None
    token: Optional[Token] = None


class ExecuteNodeData(EstimatedNodeData):
    action: ExecuteAction
    amount: str
    chain: Optional[ChainId] = None
    token: Optional[Token] = None
    contract_address: Optional[str] = None
    params: Optional[Dict[str, Any]] = None


class EndNodeData(BaseNodeData):
    chain: Optional[ChainId] = None
    expected_token: Optional[Token] = None
    expected_amount: Optional[str] = None
    description: Optional[str] = None


# =============================================================================
# Nodes and edges
# =============================================================================


class NodePosition(BaseModel):
    x: float = 0
    y: float = 0


class BaseFlowNode(FlowModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    position: NodePosition = Field(default_factory=NodePosition)

    @property
    def kind(self) -> NodeKind:
        return NodeKind(self.type)  # type: ignore[attr-defined]

    @property
    def is_action(self) -> bool:
        return self.type in ACTION_KINDS  # type: ignore[attr-defined]


class StartNode(BaseFlowNode):
    type: Literal["start"] = "start"
    data: StartNodeData


class BridgeNode(BaseFlowNode):
    type: Literal["bridge"] = "bridge"
    data: BridgeNodeData


class TransferNode(BaseFlowNode):
    type: Literal["transfer"] = "transfer"
    data: TransferNodeData


class ExecuteNode(BaseFlowNode):
    type: Literal["execute"] = "execute"
    data: ExecuteNodeData


class EndNode(BaseFlowNode):
    type: Literal["end"] = "end"
    data: EndNodeData


FlowNode = Annotated[
    Union[StartNode, BridgeNode, TransferNode, ExecuteNode, EndNode],
    Field(discriminator="type"),
]


class FlowEdge(FlowModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None
    type: Optional[str] = None
    animated: Optional[bool] = None


_nodes_adapter = TypeAdapter(List[FlowNode])
_edges_adapter = TypeAdapter(List[FlowEdge])


def parse_nodes(raw: Iterable[Dict[str, Any]]) -> List[FlowNode]:
    """Validate raw node dicts into typed nodes; unknown kinds are rejected."""
    return _nodes_adapter.validate_python(list(raw))


def parse_edges(raw: Iterable[Dict[str, Any]]) -> List[FlowEdge]:
    return _edges_adapter.validate_python(list(raw))


def find_entry_node(nodes: Sequence[BaseFlowNode]) -> Optional[StartNode]:
    for node in nodes:
        if node.type == NodeKind.ENTRY:
            return node  # type: ignore[return-value]
    return None


def has_action_node(nodes: Sequence[BaseFlowNode]) -> bool:
    return any(node.type in ACTION_KINDS for node in nodes)


def validate_graph(nodes: Sequence[BaseFlowNode], edges: Sequence[FlowEdge]) -> List[str]:
    """Check the structural invariants of a graph.

    Returns a list of human readable issues; an empty list means the graph can
    be linearized and run.
    """
    issues: List[str] = []

    seen: set = set()
    for node in nodes:
        if node.id in seen:
            issues.append(f"Duplicate node id: {node.id}")
        seen.add(node.id)

    entry_count = sum(1 for node in nodes if node.type == NodeKind.ENTRY)
    if entry_count == 0:
        issues.append("Flow must have a start node")
    elif entry_count > 1:
        issues.append(f"Flow must have exactly one start node, found {entry_count}")

    for edge in edges:
        if edge.source not in seen:
            issues.append(f"Edge {edge.id} references unknown source node {edge.source}")
        if edge.target not in seen:
            issues.append(f"Edge {edge.id} references unknown target node {edge.target}")

    for node in nodes:
        for attr in ("chain", "to_chain"):
            chain = getattr(node.data, attr, None)  # type: ignore[attr-defined]
            if chain is not None and not is_supported_chain(chain):
                issues.append(f"Node {node.id} uses unsupported chain {chain}")

    return issues


class FlowGraph(FlowModel):
    """A node/edge set with the editing operations the canvas performs."""

    nodes: List[FlowNode] = Field(default_factory=list)
    edges: List[FlowEdge] = Field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[FlowNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def entry_node(self) -> Optional[StartNode]:
        return find_entry_node(self.nodes)

    def action_nodes(self) -> List[FlowNode]:
        return [node for node in self.nodes if node.is_action]

    def add_node(self, node: FlowNode) -> None:
        self.nodes.append(node)

    def update_node_data(self, node_id: str, **changes: Any) -> Optional[FlowNode]:
        """Merge ``changes`` into a node's payload, returning the updated node."""
        for index, node in enumerate(self.nodes):
            if node.id == node_id:
                data = node.data.model_copy(update=changes)
                updated = node.model_copy(update={"data": data})
                self.nodes[index] = updated
                return updated
        return None

    def remove_node(self, node_id: str) -> None:
        self.nodes = [node for node in self.nodes if node.id != node_id]
        self.edges = [
            edge for edge in self.edges
            if edge.source != node_id and edge.target != node_id
        ]

    def add_edge(self, edge: FlowEdge) -> None:
        self.edges.append(edge)

    def remove_edge(self, edge_id: str) -> None:
        self.edges = [edge for edge in self.edges if edge.id != edge_id]

    def clear(self) -> None:
        self.nodes = []
        self.edges = []

    def validate_structure(self) -> List[str]:
        return validate_graph(self.nodes, self.edges)


# =============================================================================
# Results
# =============================================================================


class SimulationResult(FlowModel):
    node_id: str
    success: bool
    estimated_cost: str = "0"
    estimated_time: int = 0
    route: Optional[List[str]] = None
    error: Optional[str] = None


class FlowSimulation(FlowModel):
    total_cost: str
    total_time: int
    success_rate: float
    node_results: List[SimulationResult] = Field(default_factory=list)


class ExecutionResult(FlowModel):
    node_id: str
    success: bool
    transaction_hash: Optional[str] = None
    explorer_url: Optional[str] = None
    error: Optional[str] = None
    timestamp: int = Field(default_factory=now_ms)


class FlowExecution(FlowModel):
    status: ExecutionStatus
    current_node_id: Optional[str] = None
    node_results: List[ExecutionResult] = Field(default_factory=list)
    start_time: int = Field(default_factory=now_ms)
    end_time: Optional[int] = None

    @property
    def is_final(self) -> bool:
        return self.status in {ExecutionStatus.COMPLETED, ExecutionStatus.FAILED}

    @property
    def first_error(self) -> Optional[str]:
        for result in self.node_results:
            if not result.success:
                return result.error
        return None


class FlowTemplate(FlowModel):
    id: str
    name: str
    description: str = ""
    nodes: List[FlowNode] = Field(default_factory=list)
    edges: List[FlowEdge] = Field(default_factory=list)
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)
    tags: Optional[List[str]] = None
