"""
Flow dispatcher.

Turns a drawn graph into an ordered run: linearize from the entry node, walk
the order step by step (fusing bridge→execute pairs when the backend can take
them in one call), thread the chain/token context through every step and
collect the per-node results.

Simulation is a dry run: every step is quoted even after one fails and only
structural problems raise. Execution halts on the first failed step and never
raises; anything unexpected ends the run ``failed`` with a synthetic result
under the ``"error"`` node id.
"""

import asyncio
import logging
import uuid
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from structlog.contextvars import bound_contextvars

from ...config import settings
from ..nexus.backend import ChainAbstractionBackend
from ..nexus.estimator import LocalEstimator
from ..nexus.facade import RemoteCapabilityFacade
from .aggregator import ExecutionRecorder, ProgressCallback, SimulationAggregator
from .context import FlowContext
from .errors import FailureKind, FlowValidationError, UnsupportedActionError
from .linearizer import linearize
from .models import (
    ExecuteAction,
    ExecutionResult,
    FlowEdge,
    FlowExecution,
    FlowNode,
    FlowSimulation,
    NodeKind,
    SimulationResult,
    StartNode,
    find_entry_node,
    has_action_node,
)
from .planner import FlowStep, StepCursor, StepKind

UNKNOWN_NODE_TYPE = "Unknown node type"


def require_runnable(nodes: Sequence[FlowNode]) -> StartNode:
    """Return the entry node, or raise if the graph cannot be run at all."""
    if not nodes:
        raise FlowValidationError("Flow must have at least one node", FailureKind.NO_ACTION_NODES)
    entry = find_entry_node(nodes)
    if entry is None:
        raise FlowValidationError("Flow must have a start node", FailureKind.MISSING_ENTRY)
    if not has_action_node(nodes):
        raise FlowValidationError(
            "Flow must have at least one action node (bridge, transfer, or execute)",
            FailureKind.NO_ACTION_NODES,
        )
    return entry


def _reject_unsupported(node: FlowNode) -> None:
    if node.type == NodeKind.CONTRACT_CALL and node.data.action == ExecuteAction.SWAP:  # type: ignore[union-attr]
        raise UnsupportedActionError(node.data.action.value)  # type: ignore[union-attr]


class FlowDispatcher:
    """Runs simulations and executions of a flow against one facade."""

    def __init__(
        self,
        facade: RemoteCapabilityFacade,
        *,
        step_delay_seconds: Optional[float] = None,
        success_rate: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._facade = facade
        self._step_delay = settings.step_delay_seconds if step_delay_seconds is None else step_delay_seconds
        self._success_rate = settings.simulation_success_rate if success_rate is None else success_rate
        self._logger = logger or logging.getLogger(__name__)

        self._simulators: Dict[str, Callable[[FlowNode, FlowContext], Awaitable[SimulationResult]]] = {
            NodeKind.BRIDGE.value: facade.simulate_bridge,  # type: ignore[dict-item]
            NodeKind.TRANSFER.value: facade.simulate_transfer,  # type: ignore[dict-item]
            NodeKind.CONTRACT_CALL.value: facade.simulate_contract_call,  # type: ignore[dict-item]
        }
        self._performers: Dict[str, Callable[[FlowNode, FlowContext], Awaitable[ExecutionResult]]] = {
            NodeKind.BRIDGE.value: facade.bridge,  # type: ignore[dict-item]
            NodeKind.TRANSFER.value: facade.transfer,  # type: ignore[dict-item]
            NodeKind.CONTRACT_CALL.value: facade.contract_call,  # type: ignore[dict-item]
        }

    @property
    def facade(self) -> RemoteCapabilityFacade:
        return self._facade

    @staticmethod
    def _advance_context(step: FlowStep, context: FlowContext) -> None:
        if step.node.type == NodeKind.BRIDGE:
            context.apply_bridge(step.node.data.to_chain)  # type: ignore[union-attr]

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    async def simulate_flow(self, nodes: Sequence[FlowNode], edges: Sequence[FlowEdge]) -> FlowSimulation:
        """Quote every action step of the flow.

        Raises:
            FlowValidationError: the graph is empty, has no entry node or no
                action node.
        """
        entry = require_runnable(nodes)
        context = FlowContext.from_entry(entry)
        cursor = StepCursor(linearize(nodes, edges), edges)
        aggregator = SimulationAggregator(self._success_rate)

        with bound_contextvars(run_id=uuid.uuid4().hex[:12], mode="simulate"):
            self._logger.info("Simulating flow with %d nodes from %s", len(nodes), context.describe())
            while True:
                step = cursor.next_step(self._facade.is_live())
                if step is None:
                    break
                for result in await self._simulate_step(step, context):
                    aggregator.add(result)
                # A dry run keeps going on the destination chain even if the quote failed
                self._advance_context(step, context)
                cursor.complete(step)

            simulation = aggregator.build()
            self._logger.info(
                "Simulation finished: cost=%s time=%ss success_rate=%s",
                simulation.total_cost, simulation.total_time, simulation.success_rate,
            )
        return simulation

    async def _simulate_step(self, step: FlowStep, context: FlowContext) -> List[SimulationResult]:
        try:
            if step.kind == StepKind.FUSED:
                return list(await self._facade.simulate_bridge_and_execute(step.node, step.partner, context))  # type: ignore[arg-type]

            _reject_unsupported(step.node)
            simulate = self._simulators.get(step.node.type)
            if simulate is None:
                return [SimulationResult(node_id=step.node.id, success=False, error=UNKNOWN_NODE_TYPE)]
            return [await simulate(step.node, context)]
        except Exception as exc:
            self._logger.warning("Simulation of %s failed: %s", step.node_ids, exc)
            return [
                SimulationResult(node_id=node_id, success=False, error=str(exc) or "Simulation failed")
                for node_id in step.node_ids
            ]

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute_flow(
        self,
        nodes: Sequence[FlowNode],
        edges: Sequence[FlowEdge],
        on_progress: Optional[ProgressCallback] = None,
    ) -> FlowExecution:
        """Run the flow step by step, stopping at the first failure.

        ``on_progress`` is called (and awaited when it returns an awaitable)
        with each node id and its result as soon as the result exists.
        """
        recorder = ExecutionRecorder(on_progress)

        with bound_contextvars(run_id=uuid.uuid4().hex[:12], mode="execute"):
            try:
                entry = require_runnable(nodes)
                context = FlowContext.from_entry(entry)
                cursor = StepCursor(linearize(nodes, edges), edges)
                self._logger.info("Executing flow with %d nodes from %s", len(nodes), context.describe())

                first = True
                while True:
                    step = cursor.next_step(self._facade.is_live())
                    if step is None:
                        break
                    if not first and self._step_delay:
                        await asyncio.sleep(self._step_delay)
                    first = False

                    failed = False
                    recorder.begin(step.node.id)
                    for result in await self._perform_step(step, context):
                        recorder.begin(result.node_id)
                        await recorder.record(result)
                        failed = failed or not result.success
                    cursor.complete(step)

                    if failed:
                        execution = recorder.fail()
                        self._logger.warning("Flow halted at %s: %s", step.node_ids, execution.first_error)
                        return execution
                    self._advance_context(step, context)

                self._logger.info("Flow completed with %d results", len(recorder.execution.node_results))
                return recorder.complete()
            except Exception as exc:
                self._logger.exception("Flow execution aborted")
                return recorder.fail_with_error(exc)

    async def _perform_step(self, step: FlowStep, context: FlowContext) -> List[ExecutionResult]:
        try:
            if step.kind == StepKind.FUSED:
                self._logger.info("Bridging and executing %s in one call", step.node_ids)
                return list(await self._facade.bridge_and_execute(step.node, step.partner, context))  # type: ignore[arg-type]

            _reject_unsupported(step.node)
            perform = self._performers.get(step.node.type)
            if perform is None:
                return [ExecutionResult(node_id=step.node.id, success=False, error=UNKNOWN_NODE_TYPE)]
            self._logger.info("Executing %s %s on %s", step.node.type, step.node.id, context.describe())
            return [await perform(step.node, context)]
        except Exception as exc:
            self._logger.warning("Step %s failed: %s", step.node_ids, exc)
            return [
                ExecutionResult(node_id=node_id, success=False, error=str(exc) or "Execution failed")
                for node_id in step.node_ids
            ]


def create_dispatcher(
    backend: Optional[ChainAbstractionBackend] = None,
    **overrides,
) -> FlowDispatcher:
    """Build a dispatcher wired from settings around ``backend``."""
    estimator = LocalEstimator(
        bridge_base_cost=settings.bridge_base_cost,
        mock_latency_seconds=settings.mock_execution_latency_seconds,
        explorer_base_url=settings.default_explorer_url,
    )
    return FlowDispatcher(RemoteCapabilityFacade(backend, estimator=estimator), **overrides)


async def simulate_flow(
    nodes: Sequence[FlowNode],
    edges: Sequence[FlowEdge],
    backend: Optional[ChainAbstractionBackend] = None,
) -> FlowSimulation:
    return await create_dispatcher(backend).simulate_flow(nodes, edges)


async def execute_flow(
    nodes: Sequence[FlowNode],
    edges: Sequence[FlowEdge],
    backend: Optional[ChainAbstractionBackend] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> FlowExecution:
    return await create_dispatcher(backend).execute_flow(nodes, edges, on_progress)
