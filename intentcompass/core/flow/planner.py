"""
Step planning over a linearized flow.

Walks the linear order as a small state machine instead of raw index
arithmetic. Each node starts ``PENDING``; a bridge that gets fused with the
contract call right after it becomes ``FUSED_WITH_NEXT`` and the pair is
handed out as a single step; every node ends ``DONE`` once its step is
completed (entry and terminal nodes are done as soon as they are passed).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .linearizer import has_edge
from .models import ExecuteAction, FlowEdge, FlowNode, NodeKind


class StepState(str, Enum):
    PENDING = "pending"
    FUSED_WITH_NEXT = "fused_with_next"
    DONE = "done"


class StepKind(str, Enum):
    SINGLE = "single"
    FUSED = "fused"


class InvalidStepTransition(ValueError):
    """A node was moved to a state it cannot reach from its current one."""


PASSIVE_KINDS = frozenset({NodeKind.ENTRY.value, NodeKind.TERMINAL.value})


@dataclass(frozen=True)
class FlowStep:
    """One unit of work: a single node, or a bridge fused with its contract call."""
    kind: StepKind
    nodes: Tuple[FlowNode, ...]

    @property
    def node(self) -> FlowNode:
        return self.nodes[0]

    @property
    def partner(self) -> Optional[FlowNode]:
        return self.nodes[1] if len(self.nodes) > 1 else None

    @property
    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]


def can_fuse_pair(node: FlowNode, partner: Optional[FlowNode], edges: Sequence[FlowEdge]) -> bool:
    """A bridge directly wired into a supported contract call can run as one backend call."""
    if partner is None:
        return False
    if node.type != NodeKind.BRIDGE or partner.type != NodeKind.CONTRACT_CALL:
        return False
    # Unsupported actions must never reach the backend, fused or not
    if partner.data.action == ExecuteAction.SWAP:  # type: ignore[union-attr]
        return False
    return has_edge(edges, node.id, partner.id)


class StepCursor:
    """Hands out the steps of a linear order, fusing bridge→execute pairs."""

    TRANSITIONS: Dict[StepState, Set[StepState]] = {
        StepState.PENDING: {StepState.FUSED_WITH_NEXT, StepState.DONE},
        StepState.FUSED_WITH_NEXT: {StepState.DONE},
        StepState.DONE: set(),
    }

    def __init__(self, order: Sequence[FlowNode], edges: Sequence[FlowEdge]):
        self._order = list(order)
        self._edges = list(edges)
        self._index = 0
        self._states: Dict[str, StepState] = {node.id: StepState.PENDING for node in self._order}

    def state_of(self, node_id: str) -> StepState:
        return self._states[node_id]

    def has_pending(self) -> bool:
        return any(state != StepState.DONE for state in self._states.values())

    def _transition(self, node_id: str, new_state: StepState) -> None:
        current = self._states[node_id]
        if new_state not in self.TRANSITIONS[current]:
            raise InvalidStepTransition(
                f"Node {node_id} cannot move from {current.value} to {new_state.value}"
            )
        self._states[node_id] = new_state

    def next_step(self, can_fuse: bool) -> Optional[FlowStep]:
        """Return the next step to run, or ``None`` when the order is exhausted.

        ``can_fuse`` reflects whether the backend can take a combined call
        right now; without it every node runs on its own.
        """
        while self._index < len(self._order):
            node = self._order[self._index]

            if node.type in PASSIVE_KINDS:
                self._transition(node.id, StepState.DONE)
                self._index += 1
                continue

            partner = self._order[self._index + 1] if self._index + 1 < len(self._order) else None
            if can_fuse and can_fuse_pair(node, partner, self._edges):
                self._transition(node.id, StepState.FUSED_WITH_NEXT)
                self._index += 2
                return FlowStep(kind=StepKind.FUSED, nodes=(node, partner))

            self._index += 1
            return FlowStep(kind=StepKind.SINGLE, nodes=(node,))

        return None

    def complete(self, step: FlowStep) -> None:
        for node in step.nodes:
            self._transition(node.id, StepState.DONE)
