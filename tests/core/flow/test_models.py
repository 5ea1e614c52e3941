"""
Tests for the graph model, graph editing and the flow context.
"""

import pytest
from pydantic import ValidationError

from intentcompass.core.chains import BASE_SEPOLIA, SEPOLIA
from intentcompass.core.flow.context import FlowContext
from intentcompass.core.flow.models import (
    ExecuteAction,
    FlowEdge,
    FlowGraph,
    FlowSimulation,
    NodeKind,
    Token,
    parse_nodes,
    validate_graph,
)

from flowgraphs import bridge, edge, end, execute, graph, start, transfer


class TestParsing:

    def test_nodes_parse_by_type_tag(self):
        nodes = parse_nodes([start(), bridge(), transfer(), execute(), end()])
        assert [node.kind for node in nodes] == [
            NodeKind.ENTRY,
            NodeKind.BRIDGE,
            NodeKind.TRANSFER,
            NodeKind.CONTRACT_CALL,
            NodeKind.TERMINAL,
        ]
        assert [node.is_action for node in nodes] == [False, True, True, True, False]

    def test_camel_case_payload_fields(self):
        node = parse_nodes([bridge(to_chain=SEPOLIA)])[0]
        assert node.data.to_chain == SEPOLIA
        assert node.model_dump(by_alias=True, exclude_none=True)["data"]["toChain"] == SEPOLIA

    def test_unknown_node_type_is_rejected(self):
        with pytest.raises(ValidationError):
            parse_nodes([{"id": "x", "type": "teleport", "data": {}}])

    def test_unknown_action_is_rejected(self):
        with pytest.raises(ValidationError):
            parse_nodes([execute(action="borrow")])

    def test_canvas_only_keys_survive(self):
        raw = start()
        raw["data"]["color"] = "teal"
        node = parse_nodes([raw])[0]
        assert node.model_dump(by_alias=True)["data"]["color"] == "teal"

    def test_results_serialize_camel_case(self):
        simulation = FlowSimulation(total_cost="1.00", total_time=10, success_rate=0.98)
        assert set(simulation.model_dump(by_alias=True)) == {"totalCost", "totalTime", "successRate", "nodeResults"}


class TestValidateGraph:

    def test_well_formed_graph(self):
        nodes, edges = graph(start(), bridge(), execute(), end())
        assert validate_graph(nodes, edges) == []

    def test_reports_structural_problems(self):
        nodes, edges = graph(
            bridge(), bridge(), bridge(node_id="bridge-2", to_chain=1),
            edges=[edge("bridge-1", "missing")],
        )
        issues = validate_graph(nodes, edges)

        assert "Duplicate node id: bridge-1" in issues
        assert "Flow must have a start node" in issues
        assert any("unknown target node missing" in issue for issue in issues)
        assert any("unsupported chain 1" in issue for issue in issues)

    def test_more_than_one_start(self):
        nodes, edges = graph(start(), start(node_id="start-2"), bridge())
        assert any("exactly one start node" in issue for issue in validate_graph(nodes, edges))


class TestFlowGraph:

    def test_editing_operations(self):
        nodes, edges = graph(start(), bridge(), end())
        flow = FlowGraph(nodes=nodes, edges=edges)

        flow.add_node(parse_nodes([transfer()])[0])
        flow.add_edge(FlowEdge(id="e-t", source="bridge-1", target="transfer-1"))
        assert [node.id for node in flow.action_nodes()] == ["bridge-1", "transfer-1"]

        updated = flow.update_node_data("bridge-1", amount="42")
        assert updated.data.amount == "42"
        assert flow.get_node("bridge-1").data.amount == "42"
        assert flow.get_node("bridge-1").data.to_chain == SEPOLIA

        flow.remove_node("bridge-1")
        assert flow.get_node("bridge-1") is None
        assert all("bridge-1" not in (e.source, e.target) for e in flow.edges)

        flow.clear()
        assert flow.nodes == [] and flow.edges == []

    def test_update_unknown_node(self):
        flow = FlowGraph()
        assert flow.update_node_data("nope", label="x") is None


class TestFlowContext:

    def test_seeded_from_entry_and_moved_by_bridge(self):
        entry = parse_nodes([start(chain=BASE_SEPOLIA, token="ETH")])[0]
        context = FlowContext.from_entry(entry)

        assert context.token == Token.ETH
        assert context.current_chain == BASE_SEPOLIA

        context.apply_bridge(SEPOLIA)
        assert context.current_chain == SEPOLIA
        assert context.token == Token.ETH
        assert context.describe() == "ETH on Sepolia"


def test_execute_action_values():
    assert {action.value for action in ExecuteAction} == {"stake", "lend", "swap"}
