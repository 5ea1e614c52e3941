"""
Remote capability facade.

One simulate and one perform operation per action node kind, plus the fused
bridge-and-execute call and a balance query. Without an initialized backend
every operation falls back to the local estimator.

With a live backend the asymmetry matters:
- simulations fall back to the local estimator when the backend call raises
- performs never fall back; errors propagate and fail the step
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from ..chains import chain_id_to_name
from ..flow.context import FlowContext
from ..flow.errors import BackendNotInitializedError, UnsupportedActionError
from ..flow.models import (
    BridgeNode,
    ExecuteAction,
    ExecuteNode,
    ExecutionResult,
    SimulationResult,
    TransferNode,
)
from .backend import (
    BridgeAndExecuteRequest,
    BridgeRequest,
    ChainAbstractionBackend,
    TransactionResponse,
    TransferRequest,
    UserAsset,
)
from .contracts import ActionContractRegistry
from .estimator import LocalEstimator, format_cost

FEE_PATHS: Tuple[Tuple[str, ...], ...] = (
    ("intent", "fees", "total"),
    ("intent", "fees", "gasSupplied"),
    ("estimatedFees", "total"),
    ("estimatedFees",),
    ("totalEstimatedCost",),
    ("fees", "total"),
)

BRIDGE_ROUTE_HOP = "Avail Nexus"


def extract_fee(simulation: Dict[str, Any], paths: Tuple[Tuple[str, ...], ...] = FEE_PATHS) -> str:
    """Pull the total fee out of a backend simulation, as a 2-decimal string."""
    for path in paths:
        value: Any = simulation
        for key in path:
            if not isinstance(value, dict) or key not in value:
                value = None
                break
            value = value[key]
        if value is None or isinstance(value, dict):
            continue
        try:
            return format_cost(Decimal(str(value)))
        except InvalidOperation:
            continue
    return format_cost(Decimal(0))


def _reported_seconds(simulation: Dict[str, Any]) -> Optional[int]:
    value = simulation.get("estimatedTime")
    if isinstance(value, (int, float)) and value >= 0:
        return int(value)
    return None


class RemoteCapabilityFacade:
    """Adapter between flow nodes and the chain-abstraction backend."""

    def __init__(
        self,
        backend: Optional[ChainAbstractionBackend] = None,
        *,
        estimator: Optional[LocalEstimator] = None,
        contracts: Optional[ActionContractRegistry] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._backend = backend
        self._estimator = estimator or LocalEstimator()
        self._contracts = contracts or ActionContractRegistry()
        self._logger = logger or logging.getLogger(__name__)

    @property
    def backend(self) -> Optional[ChainAbstractionBackend]:
        return self._backend

    def is_live(self) -> bool:
        """Whether calls go to the real backend (checked before every call)."""
        return self._backend is not None and self._backend.is_initialized()

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def _bridge_route(self, node: BridgeNode, context: FlowContext) -> List[str]:
        return [
            chain_id_to_name(context.current_chain),
            BRIDGE_ROUTE_HOP,
            chain_id_to_name(node.data.to_chain),
        ]

    def _estimate_bridge(self, node: BridgeNode, context: FlowContext) -> SimulationResult:
        cost, seconds = self._estimator.estimate_bridge(node.data.amount)
        return SimulationResult(
            node_id=node.id,
            success=True,
            estimated_cost=cost,
            estimated_time=seconds,
            route=self._bridge_route(node, context),
        )

    def _estimate_contract_call(self, node: ExecuteNode, context: FlowContext) -> SimulationResult:
        cost, seconds = self._estimator.estimate_contract_call(node.data.action)
        return SimulationResult(
            node_id=node.id,
            success=True,
            estimated_cost=cost,
            estimated_time=seconds,
            route=[f"Execute {node.data.action.value} on {chain_id_to_name(context.current_chain)}"],
        )

    async def simulate_bridge(self, node: BridgeNode, context: FlowContext) -> SimulationResult:
        if self.is_live():
            try:
                simulation = await self._backend.simulate_bridge(
                    BridgeRequest(
                        token=context.token.value,
                        amount=node.data.amount,
                        to_chain_id=node.data.to_chain,
                    )
                )
                reported = _reported_seconds(simulation)
                return SimulationResult(
                    node_id=node.id,
                    success=True,
                    estimated_cost=extract_fee(simulation),
                    estimated_time=reported if reported is not None else self._estimator.bridge_time(live=True),
                    route=self._bridge_route(node, context),
                )
            except Exception as exc:
                self._logger.warning("Bridge simulation failed for %s, using local estimate: %s", node.id, exc)

        return self._estimate_bridge(node, context)

    async def simulate_transfer(self, node: TransferNode, context: FlowContext) -> SimulationResult:
        route = [f"Transfer on {chain_id_to_name(context.current_chain)}"]
        if self.is_live():
            try:
                simulation = await self._backend.simulate_transfer(
                    TransferRequest(
                        token=context.token.value,
                        amount=node.data.amount,
                        to_chain_id=context.current_chain,
                        recipient=node.data.recipient,
                    )
                )
                reported = _reported_seconds(simulation)
                return SimulationResult(
                    node_id=node.id,
                    success=True,
                    estimated_cost=extract_fee(simulation),
                    estimated_time=reported if reported is not None else self._estimator.transfer_time(),
                    route=route,
                )
            except Exception as exc:
                self._logger.warning("Transfer simulation failed for %s, using local estimate: %s", node.id, exc)

        cost, seconds = self._estimator.estimate_transfer()
        return SimulationResult(
            node_id=node.id,
            success=True,
            estimated_cost=cost,
            estimated_time=seconds,
            route=route,
        )

    async def simulate_contract_call(self, node: ExecuteNode, context: FlowContext) -> SimulationResult:
        if node.data.action == ExecuteAction.SWAP:
            raise UnsupportedActionError(node.data.action.value)

        if self.is_live():
            try:
                request = self._contracts.build_execute_request(
                    node.data.action,
                    context.current_chain,
                    token=context.token.value,
                    amount=node.data.amount,
                    override_address=node.data.contract_address,
                )
                simulation = await self._backend.simulate_execute(
                    request, token=context.token.value, amount=node.data.amount
                )
                estimate = self._estimate_contract_call(node, context)
                estimate.estimated_cost = extract_fee(simulation)
                reported = _reported_seconds(simulation)
                if reported is not None:
                    estimate.estimated_time = reported
                return estimate
            except Exception as exc:
                self._logger.warning("Execute simulation failed for %s, using local estimate: %s", node.id, exc)

        return self._estimate_contract_call(node, context)

    async def simulate_bridge_and_execute(
        self,
        bridge_node: BridgeNode,
        execute_node: ExecuteNode,
        context: FlowContext,
    ) -> Tuple[SimulationResult, SimulationResult]:
        """Quote a fused pair; the combined cost lands on the bridge record
        unless the backend reports each side separately."""
        if execute_node.data.action == ExecuteAction.SWAP:
            raise UnsupportedActionError(execute_node.data.action.value)

        if self.is_live():
            try:
                request = self._bridge_and_execute_request(bridge_node, execute_node, context)
                simulation = await self._backend.simulate_bridge_and_execute(request)
                bridge_part = simulation.get("bridgeSimulation")
                execute_part = simulation.get("executeSimulation")
                if isinstance(bridge_part, dict) and isinstance(execute_part, dict):
                    bridge_cost = extract_fee(bridge_part)
                    execute_cost = extract_fee(execute_part)
                else:
                    bridge_cost = extract_fee(simulation)
                    execute_cost = format_cost(Decimal(0))

                bridge_result = SimulationResult(
                    node_id=bridge_node.id,
                    success=True,
                    estimated_cost=bridge_cost,
                    estimated_time=self._estimator.bridge_time(live=True),
                    route=self._bridge_route(bridge_node, context),
                )
                execute_result = self._estimate_contract_call(execute_node, context)
                execute_result.estimated_cost = execute_cost
                execute_result.route = [
                    f"Execute {execute_node.data.action.value} on "
                    f"{chain_id_to_name(bridge_node.data.to_chain)} (bridged and executed in one call)"
                ]
                return bridge_result, execute_result
            except Exception as exc:
                self._logger.warning(
                    "Bridge-and-execute simulation failed for %s→%s, using local estimates: %s",
                    bridge_node.id, execute_node.id, exc,
                )

        bridge_result = self._estimate_bridge(bridge_node, context)
        destination = FlowContext(token=context.token, current_chain=bridge_node.data.to_chain)
        return bridge_result, self._estimate_contract_call(execute_node, destination)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    @staticmethod
    def _to_execution_result(node_id: str, response: TransactionResponse, default_error: str) -> ExecutionResult:
        if response.success:
            return ExecutionResult(
                node_id=node_id,
                success=True,
                transaction_hash=response.transaction_hash or None,
                explorer_url=response.explorer_url or None,
            )
        return ExecutionResult(node_id=node_id, success=False, error=response.error or default_error)

    async def _mock_result(self, node_id: str, context: FlowContext) -> ExecutionResult:
        self._logger.info("Backend not initialized, using mock execution for %s", node_id)
        tx_hash, explorer_url = await self._estimator.mock_transaction(context.current_chain)
        return ExecutionResult(
            node_id=node_id,
            success=True,
            transaction_hash=tx_hash,
            explorer_url=explorer_url,
        )

    async def bridge(self, node: BridgeNode, context: FlowContext) -> ExecutionResult:
        if not self.is_live():
            return await self._mock_result(node.id, context)

        response = await self._backend.bridge(
            BridgeRequest(
                token=context.token.value,
                amount=node.data.amount,
                to_chain_id=node.data.to_chain,
            )
        )
        return self._to_execution_result(node.id, response, "Bridge failed")

    async def transfer(self, node: TransferNode, context: FlowContext) -> ExecutionResult:
        if not self.is_live():
            return await self._mock_result(node.id, context)

        response = await self._backend.transfer(
            TransferRequest(
                token=context.token.value,
                amount=node.data.amount,
                to_chain_id=context.current_chain,
                recipient=node.data.recipient,
            )
        )
        return self._to_execution_result(node.id, response, "Transfer failed")

    async def contract_call(self, node: ExecuteNode, context: FlowContext) -> ExecutionResult:
        if node.data.action == ExecuteAction.SWAP:
            raise UnsupportedActionError(node.data.action.value)

        if not self.is_live():
            return await self._mock_result(node.id, context)

        request = self._contracts.build_execute_request(
            node.data.action,
            context.current_chain,
            token=context.token.value,
            amount=node.data.amount,
            override_address=node.data.contract_address,
        )
        response = await self._backend.execute(request, token=context.token.value, amount=node.data.amount)
        return self._to_execution_result(node.id, response, "Execute failed")

    def _bridge_and_execute_request(
        self,
        bridge_node: BridgeNode,
        execute_node: ExecuteNode,
        context: FlowContext,
    ) -> BridgeAndExecuteRequest:
        # The backend sizes the bridge from the balance already on the
        # destination chain, so the execute amount is the one that counts.
        amount = execute_node.data.amount
        destination = bridge_node.data.to_chain
        execute = self._contracts.build_execute_request(
            execute_node.data.action,
            destination,
            token=context.token.value,
            amount=amount,
            override_address=execute_node.data.contract_address,
        )
        return BridgeAndExecuteRequest(
            token=context.token.value,
            amount=amount,
            to_chain_id=destination,
            execute=execute,
        )

    async def bridge_and_execute(
        self,
        bridge_node: BridgeNode,
        execute_node: ExecuteNode,
        context: FlowContext,
    ) -> Tuple[ExecutionResult, ExecutionResult]:
        """Run a fused pair as one backend call, split into one result per node."""
        if execute_node.data.action == ExecuteAction.SWAP:
            raise UnsupportedActionError(execute_node.data.action.value)
        if not self.is_live():
            raise BackendNotInitializedError()

        request = self._bridge_and_execute_request(bridge_node, execute_node, context)
        response = await self._backend.bridge_and_execute(request)

        if not response.success:
            error = response.error or "Bridge and execute failed"
            return (
                ExecutionResult(node_id=bridge_node.id, success=False, error=error),
                ExecutionResult(node_id=execute_node.id, success=False, error=error),
            )

        bridge_hash, bridge_url = response.bridge_pair()
        execute_hash, execute_url = response.execute_pair()
        return (
            ExecutionResult(
                node_id=bridge_node.id,
                success=True,
                transaction_hash=bridge_hash,
                explorer_url=bridge_url,
            ),
            ExecutionResult(
                node_id=execute_node.id,
                success=True,
                transaction_hash=execute_hash,
                explorer_url=execute_url,
            ),
        )

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    async def get_unified_balances(self) -> List[UserAsset]:
        if not self.is_live():
            raise BackendNotInitializedError()
        return await self._backend.get_unified_balances()
