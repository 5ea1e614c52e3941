"""Accumulation of per-step results into whole-flow reports."""

import inspect
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from .models import (
    ExecutionResult,
    ExecutionStatus,
    FlowExecution,
    FlowNode,
    FlowSimulation,
    NodeStatus,
    SimulationResult,
    now_ms,
)

logger = logging.getLogger(__name__)

# Node id of the synthetic result recorded when a run dies on an uncaught error
ERROR_NODE_ID = "error"

ProgressCallback = Callable[[str, ExecutionResult], Union[None, Awaitable[None]]]


class SimulationAggregator:
    """Sums the estimates of successful steps.

    ``success_rate`` is a coarse flag rather than a probability: the
    configured constant when every step succeeded, zero otherwise.
    """

    def __init__(self, success_rate: float = 0.98) -> None:
        self._success_rate = success_rate
        self._results: List[SimulationResult] = []
        self._total_cost = Decimal(0)
        self._total_time = 0

    def add(self, result: SimulationResult) -> None:
        self._results.append(result)
        if not result.success:
            return
        try:
            self._total_cost += Decimal(result.estimated_cost)
        except InvalidOperation:
            logger.warning("Ignoring unparseable cost %r for %s", result.estimated_cost, result.node_id)
        self._total_time += int(result.estimated_time)

    @property
    def all_succeeded(self) -> bool:
        return all(result.success for result in self._results)

    def build(self) -> FlowSimulation:
        return FlowSimulation(
            total_cost=str(self._total_cost.quantize(Decimal("0.01"))),
            total_time=self._total_time,
            success_rate=self._success_rate if self.all_succeeded else 0,
            node_results=list(self._results),
        )


class ExecutionRecorder:
    """Owns the ``FlowExecution`` of one run and reports progress as it grows."""

    def __init__(self, on_progress: Optional[ProgressCallback] = None) -> None:
        self._on_progress = on_progress
        self.execution = FlowExecution(status=ExecutionStatus.EXECUTING)

    def begin(self, node_id: str) -> None:
        self.execution.current_node_id = node_id

    async def record(self, result: ExecutionResult) -> None:
        self.execution.node_results.append(result)
        if self._on_progress is None:
            return
        outcome = self._on_progress(result.node_id, result)
        if inspect.isawaitable(outcome):
            await outcome

    def complete(self) -> FlowExecution:
        return self._finish(ExecutionStatus.COMPLETED)

    def fail(self) -> FlowExecution:
        return self._finish(ExecutionStatus.FAILED)

    def fail_with_error(self, error: BaseException) -> FlowExecution:
        """Close the run after an uncaught error with one synthetic failed step."""
        self.execution.node_results.append(
            ExecutionResult(
                node_id=ERROR_NODE_ID,
                success=False,
                error=str(error) or "Execution failed",
            )
        )
        return self._finish(ExecutionStatus.FAILED)

    def _finish(self, status: ExecutionStatus) -> FlowExecution:
        self.execution.status = status
        self.execution.end_time = now_ms()
        return self.execution


def annotate_simulation(nodes: Sequence[FlowNode], simulation: FlowSimulation) -> List[FlowNode]:
    """Copies of ``nodes`` with simulated cost/time written into their payloads."""
    by_id: Dict[str, SimulationResult] = {result.node_id: result for result in simulation.node_results}
    annotated: List[FlowNode] = []
    for node in nodes:
        result = by_id.get(node.id)
        if result is None or not hasattr(node.data, "estimated_cost"):
            annotated.append(node)
            continue
        changes: Dict[str, Any] = {
            "estimated_cost": result.estimated_cost,
            "estimated_time": result.estimated_time,
        }
        if not result.success:
            changes["status"] = NodeStatus.FAILED
        annotated.append(node.model_copy(update={"data": node.data.model_copy(update=changes)}))
    return annotated


def annotate_execution(nodes: Sequence[FlowNode], execution: FlowExecution) -> List[FlowNode]:
    """Copies of ``nodes`` with their live execution status."""
    statuses: Dict[str, NodeStatus] = {
        result.node_id: NodeStatus.COMPLETED if result.success else NodeStatus.FAILED
        for result in execution.node_results
    }
    if execution.status == ExecutionStatus.EXECUTING and execution.current_node_id:
        statuses.setdefault(execution.current_node_id, NodeStatus.EXECUTING)

    annotated: List[FlowNode] = []
    for node in nodes:
        status = statuses.get(node.id)
        if status is None and node.is_action:
            status = NodeStatus.PENDING
        if status is None:
            annotated.append(node)
            continue
        annotated.append(node.model_copy(update={"data": node.data.model_copy(update={"status": status})}))
    return annotated
