"""
Tests for step planning and bridge→execute fusion.
"""

import pytest

from intentcompass.core.flow.linearizer import linearize
from intentcompass.core.flow.planner import (
    InvalidStepTransition,
    StepCursor,
    StepKind,
    StepState,
    can_fuse_pair,
)

from flowgraphs import bridge, edge, end, execute, graph, start, transfer


def drain(cursor, can_fuse):
    steps = []
    while True:
        step = cursor.next_step(can_fuse)
        if step is None:
            return steps
        steps.append(step)
        cursor.complete(step)


def cursor_for(nodes, edges):
    return StepCursor(linearize(nodes, edges), edges)


class TestFusion:

    def test_bridge_then_execute_fuses_when_live(self):
        nodes, edges = graph(start(), bridge(), execute(), end())
        steps = drain(cursor_for(nodes, edges), can_fuse=True)

        assert len(steps) == 1
        assert steps[0].kind == StepKind.FUSED
        assert steps[0].node_ids == ["bridge-1", "execute-1"]

    def test_no_fusion_without_live_backend(self):
        nodes, edges = graph(start(), bridge(), execute(), end())
        steps = drain(cursor_for(nodes, edges), can_fuse=False)

        assert [step.kind for step in steps] == [StepKind.SINGLE, StepKind.SINGLE]
        assert [step.node.id for step in steps] == ["bridge-1", "execute-1"]

    def test_swap_is_never_fused(self):
        nodes, edges = graph(start(), bridge(), execute(action="swap"), end())
        steps = drain(cursor_for(nodes, edges), can_fuse=True)

        assert [step.kind for step in steps] == [StepKind.SINGLE, StepKind.SINGLE]

    def test_adjacent_without_direct_edge_is_not_fused(self):
        nodes, edges = graph(
            start(), bridge(), execute(),
            edges=[edge("start-1", "bridge-1"), edge("start-1", "execute-1")],
        )
        order = linearize(nodes, edges)
        assert [node.id for node in order] == ["start-1", "bridge-1", "execute-1"]

        steps = drain(StepCursor(order, edges), can_fuse=True)
        assert [step.kind for step in steps] == [StepKind.SINGLE, StepKind.SINGLE]

    def test_transfer_after_bridge_is_not_fused(self):
        nodes, edges = graph(start(), bridge(), transfer())
        assert not can_fuse_pair(nodes[1], nodes[2], edges)

    def test_last_node_has_no_partner(self):
        nodes, edges = graph(start(), bridge())
        assert not can_fuse_pair(nodes[1], None, edges)


class TestStepStates:

    def test_passive_nodes_are_done_once_passed(self):
        nodes, edges = graph(start(), transfer(), end())
        cursor = cursor_for(nodes, edges)

        step = cursor.next_step(can_fuse=True)
        assert step.node.id == "transfer-1"
        assert cursor.state_of("start-1") == StepState.DONE
        assert cursor.state_of("transfer-1") == StepState.PENDING

        cursor.complete(step)
        assert cursor.next_step(can_fuse=True) is None
        assert cursor.state_of("end-1") == StepState.DONE
        assert not cursor.has_pending()

    def test_fused_bridge_is_marked_until_completed(self):
        nodes, edges = graph(start(), bridge(), execute())
        cursor = cursor_for(nodes, edges)

        step = cursor.next_step(can_fuse=True)
        assert cursor.state_of("bridge-1") == StepState.FUSED_WITH_NEXT
        assert cursor.state_of("execute-1") == StepState.PENDING

        cursor.complete(step)
        assert cursor.state_of("bridge-1") == StepState.DONE
        assert cursor.state_of("execute-1") == StepState.DONE

    def test_completing_twice_is_rejected(self):
        nodes, edges = graph(start(), transfer())
        cursor = cursor_for(nodes, edges)
        step = cursor.next_step(can_fuse=False)
        cursor.complete(step)

        with pytest.raises(InvalidStepTransition):
            cursor.complete(step)
