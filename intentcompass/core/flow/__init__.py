"""Flow graph model and the engine that simulates and executes it."""

from typing import TYPE_CHECKING

from .aggregator import ERROR_NODE_ID, ExecutionRecorder, SimulationAggregator
from .context import FlowContext
from .errors import (
    BackendError,
    BackendNotInitializedError,
    FailureKind,
    FlowError,
    FlowValidationError,
    NexusApiError,
    UnsupportedActionError,
)
from .linearizer import linearize
from .models import (
    ExecutionResult,
    ExecutionStatus,
    FlowEdge,
    FlowExecution,
    FlowGraph,
    FlowNode,
    FlowSimulation,
    FlowTemplate,
    NodeKind,
    SimulationResult,
    parse_edges,
    parse_nodes,
)
from .planner import FlowStep, StepCursor, StepKind

if TYPE_CHECKING:  # pragma: no cover
    from .dispatcher import FlowDispatcher, create_dispatcher, execute_flow, simulate_flow

__all__ = [
    "ERROR_NODE_ID",
    "BackendError",
    "BackendNotInitializedError",
    "ExecutionRecorder",
    "ExecutionResult",
    "ExecutionStatus",
    "FailureKind",
    "FlowContext",
    "FlowDispatcher",
    "FlowEdge",
    "FlowError",
    "FlowExecution",
    "FlowGraph",
    "FlowNode",
    "FlowSimulation",
    "FlowStep",
    "FlowTemplate",
    "FlowValidationError",
    "NexusApiError",
    "NodeKind",
    "SimulationAggregator",
    "SimulationResult",
    "StepCursor",
    "StepKind",
    "UnsupportedActionError",
    "create_dispatcher",
    "execute_flow",
    "linearize",
    "parse_edges",
    "parse_nodes",
    "simulate_flow",
]

_DISPATCHER_EXPORTS = {"FlowDispatcher", "create_dispatcher", "execute_flow", "simulate_flow"}


def __getattr__(name: str):  # pragma: no cover - simple thunk
    # The dispatcher depends on the nexus package, which imports from here
    if name in _DISPATCHER_EXPORTS:
        from . import dispatcher

        return getattr(dispatcher, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
