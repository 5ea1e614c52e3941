"""
Tests for result aggregation and execution recording.
"""

import pytest

from intentcompass.core.flow.aggregator import (
    ERROR_NODE_ID,
    ExecutionRecorder,
    SimulationAggregator,
    annotate_execution,
    annotate_simulation,
)
from intentcompass.core.flow.models import (
    ExecutionResult,
    ExecutionStatus,
    NodeStatus,
    SimulationResult,
)

from flowgraphs import bridge, graph, start, transfer


class TestSimulationAggregator:

    def test_totals_only_count_successful_steps(self):
        aggregator = SimulationAggregator(0.98)
        aggregator.add(SimulationResult(node_id="a", success=True, estimated_cost="2.75", estimated_time=30))
        aggregator.add(SimulationResult(node_id="b", success=True, estimated_cost="0.5", estimated_time=7))
        aggregator.add(SimulationResult(node_id="c", success=False, estimated_cost="9.99", estimated_time=99, error="x"))

        simulation = aggregator.build()
        assert simulation.total_cost == "3.25"
        assert simulation.total_time == 37
        assert simulation.success_rate == 0
        assert [r.node_id for r in simulation.node_results] == ["a", "b", "c"]

    def test_success_rate_when_all_succeed(self):
        aggregator = SimulationAggregator(0.98)
        aggregator.add(SimulationResult(node_id="a", success=True, estimated_cost="1", estimated_time=5))

        simulation = aggregator.build()
        assert simulation.total_cost == "1.00"
        assert simulation.success_rate == 0.98


class TestExecutionRecorder:

    @pytest.mark.asyncio
    async def test_records_and_reports_progress(self):
        seen = []
        recorder = ExecutionRecorder(lambda node_id, result: seen.append((node_id, result.success)))

        recorder.begin("a")
        await recorder.record(ExecutionResult(node_id="a", success=True, transaction_hash="0x1"))
        execution = recorder.complete()

        assert seen == [("a", True)]
        assert execution.status == ExecutionStatus.COMPLETED
        assert execution.current_node_id == "a"
        assert execution.end_time is not None

    @pytest.mark.asyncio
    async def test_awaits_async_callbacks(self):
        seen = []

        async def on_progress(node_id, result):
            seen.append(node_id)

        recorder = ExecutionRecorder(on_progress)
        await recorder.record(ExecutionResult(node_id="a", success=False, error="boom"))
        execution = recorder.fail()

        assert seen == ["a"]
        assert execution.status == ExecutionStatus.FAILED
        assert execution.first_error == "boom"

    def test_uncaught_error_adds_synthetic_result(self):
        recorder = ExecutionRecorder()
        execution = recorder.fail_with_error(RuntimeError(""))

        assert execution.status == ExecutionStatus.FAILED
        assert execution.node_results[-1].node_id == ERROR_NODE_ID
        assert execution.node_results[-1].error == "Execution failed"
        assert execution.is_final


class TestAnnotate:

    def test_simulation_estimates_written_to_nodes(self):
        nodes, _ = graph(start(), bridge(), transfer())
        aggregator = SimulationAggregator()
        aggregator.add(SimulationResult(node_id="bridge-1", success=True, estimated_cost="2.75", estimated_time=30))
        aggregator.add(SimulationResult(node_id="transfer-1", success=False, error="nope"))

        annotated = annotate_simulation(nodes, aggregator.build())

        assert annotated[0] is nodes[0]
        assert annotated[1].data.estimated_cost == "2.75"
        assert annotated[1].data.estimated_time == 30
        assert annotated[2].data.status == NodeStatus.FAILED
        assert nodes[1].data.estimated_cost is None

    @pytest.mark.asyncio
    async def test_execution_statuses(self):
        nodes, _ = graph(start(), bridge(), transfer())
        recorder = ExecutionRecorder()
        await recorder.record(ExecutionResult(node_id="bridge-1", success=True))
        recorder.begin("transfer-1")

        annotated = annotate_execution(nodes, recorder.execution)

        assert annotated[0].data.status is None
        assert annotated[1].data.status == NodeStatus.COMPLETED
        assert annotated[2].data.status == NodeStatus.EXECUTING
