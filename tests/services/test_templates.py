"""
Tests for the JSON template store.
"""

import json

import pytest

from intentcompass.core.flow.errors import FlowValidationError
from intentcompass.services.templates import TemplateNotFoundError, TemplateService

from flowgraphs import bridge, end, execute, graph, start


@pytest.fixture
def service(tmp_path):
    return TemplateService(tmp_path / "templates.json")


class TestCrud:

    def test_save_and_reload(self, service):
        nodes, edges = graph(start(), bridge(), end())
        saved = service.save_template("My flow", "desc", nodes, edges, tags=["bridge"])

        assert saved.id.startswith("template-")
        assert saved.created_at == saved.updated_at

        reloaded = TemplateService(service.path).get_template(saved.id)
        assert reloaded == saved

        stored = json.loads(service.path.read_text())
        assert stored[0]["nodes"][1]["data"]["toChain"] == 11155111
        assert "createdAt" in stored[0]

    def test_update_keeps_identity(self, service):
        nodes, edges = graph(start(), bridge(), end())
        saved = service.save_template("Old", "", nodes, edges)

        updated = service.update_template(saved.id, name="New", id="hijack", created_at=0)

        assert updated.id == saved.id
        assert updated.name == "New"
        assert updated.created_at == saved.created_at
        assert updated.updated_at >= saved.updated_at
        assert service.get_template(saved.id).name == "New"

    def test_update_missing(self, service):
        assert service.update_template("nope", name="x") is None

    def test_delete(self, service):
        nodes, edges = graph(start(), bridge())
        saved = service.save_template("Gone", "", nodes, edges)

        assert service.delete_template(saved.id)
        assert not service.delete_template(saved.id)
        assert service.get_templates() == []

    def test_unreadable_storage_is_empty(self, service):
        service.path.write_text("{not json")
        assert service.get_templates() == []

    def test_missing_storage_is_empty(self, service):
        assert service.get_templates() == []


class TestExamples:

    def test_examples_are_runnable(self, service):
        examples = service.get_example_templates()
        assert [t.name for t in examples] == ["Bridge & Stake on Aave", "Simple Bridge"]

        for template in examples:
            loaded = service.load_template(template.id)
            assert loaded.entry_node() is not None
            assert loaded.action_nodes()

    def test_bridge_and_stake_shape(self, service):
        loaded = service.load_template("example-bridge-stake")
        assert [node.type for node in loaded.nodes] == ["start", "bridge", "execute", "end"]
        assert loaded.get_node("execute-1").data.action.value == "stake"


class TestLoad:

    def test_unknown_template(self, service):
        with pytest.raises(TemplateNotFoundError):
            service.load_template("missing")

    def test_invalid_graph_is_rejected(self, service):
        nodes, edges = graph(bridge(), execute())
        saved = service.save_template("Headless", "", nodes, edges)

        with pytest.raises(FlowValidationError, match="start node"):
            service.load_template(saved.id)
