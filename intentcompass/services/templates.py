"""
Flow template storage.

Templates are saved graphs kept in a single JSON file (camelCase, the same
shape the canvas exports). Two built-in examples are always available and are
never written to the file.
"""

import json
import logging
import secrets
import string
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import TypeAdapter, ValidationError

from ..config import settings
from ..core.flow.errors import FailureKind, FlowValidationError
from ..core.flow.models import FlowEdge, FlowGraph, FlowNode, FlowTemplate, now_ms

logger = logging.getLogger(__name__)

_templates_adapter = TypeAdapter(List[FlowTemplate])

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_template_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"template-{now_ms()}-{suffix}"


class TemplateNotFoundError(LookupError):
    def __init__(self, template_id: str):
        super().__init__(f"Template not found: {template_id}")
        self.template_id = template_id


class TemplateService:
    """Save, list, update and delete flow templates."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = Path(path) if path is not None else settings.templates_path

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> List[FlowTemplate]:
        if not self._path.exists():
            return []
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return _templates_adapter.validate_python(raw)
        except (OSError, ValueError, ValidationError) as e:
            logger.error(f"Failed to load templates from {self._path}: {e}")
            return []

    def _write(self, templates: Sequence[FlowTemplate]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = [
            template.model_dump(mode="json", by_alias=True, exclude_none=True)
            for template in templates
        ]
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp_path.replace(self._path)

    def get_templates(self) -> List[FlowTemplate]:
        return self._read()

    def get_template(self, template_id: str) -> Optional[FlowTemplate]:
        for template in self._read():
            if template.id == template_id:
                return template
        for template in self.get_example_templates():
            if template.id == template_id:
                return template
        return None

    def save_template(
        self,
        name: str,
        description: str,
        nodes: Sequence[FlowNode],
        edges: Sequence[FlowEdge],
        tags: Optional[List[str]] = None,
    ) -> FlowTemplate:
        now = now_ms()
        template = FlowTemplate(
            id=new_template_id(),
            name=name,
            description=description,
            nodes=list(nodes),
            edges=list(edges),
            created_at=now,
            updated_at=now,
            tags=tags,
        )
        templates = self._read()
        templates.append(template)
        self._write(templates)
        logger.info(f"Saved template {template.id} ({name})")
        return template

    def update_template(self, template_id: str, **updates: Any) -> Optional[FlowTemplate]:
        """Apply field updates; ``id`` and ``created_at`` cannot change."""
        updates.pop("id", None)
        updates.pop("created_at", None)

        templates = self._read()
        for index, template in enumerate(templates):
            if template.id != template_id:
                continue
            merged = template.model_dump()
            merged.update(updates)
            merged["updated_at"] = now_ms()
            templates[index] = FlowTemplate.model_validate(merged)
            self._write(templates)
            return templates[index]
        return None

    def delete_template(self, template_id: str) -> bool:
        templates = self._read()
        remaining = [template for template in templates if template.id != template_id]
        if len(remaining) == len(templates):
            return False
        self._write(remaining)
        return True

    def load_template(self, template_id: str) -> FlowGraph:
        """Load a template as an editable graph.

        Raises:
            TemplateNotFoundError: no saved or example template has this id
            FlowValidationError: the saved graph breaks a structural rule
        """
        template = self.get_template(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)

        graph = FlowGraph(nodes=list(template.nodes), edges=list(template.edges))
        issues = graph.validate_structure()
        if issues:
            kind = FailureKind.MISSING_ENTRY if graph.entry_node() is None else FailureKind.UNKNOWN_NODE_KIND
            raise FlowValidationError(issues[0], kind=kind, issues=issues)
        return graph

    def get_example_templates(self) -> List[FlowTemplate]:
        return _templates_adapter.validate_python(_example_templates())


def _edge(source: str, target: str, edge_id: str) -> Dict[str, Any]:
    return {"id": edge_id, "source": source, "target": target, "type": "smoothstep", "animated": True}


def _example_templates() -> List[Dict[str, Any]]:
    now = now_ms()
    return [
        {
            "id": "example-bridge-stake",
            "name": "Bridge & Stake on Aave",
            "description": "Bridge USDC from Base to Ethereum and stake on Aave",
            "nodes": [
                {
                    "id": "start-1",
                    "type": "start",
                    "position": {"x": 250, "y": 50},
                    "data": {"label": "Start", "chain": 84532, "token": "USDC", "amount": "100"},
                },
                {
                    "id": "bridge-1",
                    "type": "bridge",
                    "position": {"x": 250, "y": 200},
                    "data": {
                        "label": "Bridge",
                        "fromChain": 84532,
                        "toChain": 11155111,
                        "token": "USDC",
                        "amount": "100",
                    },
                },
                {
                    "id": "execute-1",
                    "type": "execute",
                    "position": {"x": 250, "y": 350},
                    "data": {
                        "label": "Execute",
                        "chain": 11155111,
                        "action": "stake",
                        "token": "USDC",
                        "amount": "100",
                    },
                },
                {
                    "id": "end-1",
                    "type": "end",
                    "position": {"x": 250, "y": 500},
                    "data": {
                        "label": "End",
                        "chain": 11155111,
                        "expectedToken": "USDC",
                        "expectedAmount": "100",
                        "description": "Earning yield on Aave",
                    },
                },
            ],
            "edges": [
                _edge("start-1", "bridge-1", "e1-2"),
                _edge("bridge-1", "execute-1", "e2-3"),
                _edge("execute-1", "end-1", "e3-4"),
            ],
            "createdAt": now,
            "updatedAt": now,
            "tags": ["bridge", "stake", "aave"],
        },
        {
            "id": "example-simple-bridge",
            "name": "Simple Bridge",
            "description": "Bridge USDC from Base Sepolia to Ethereum Sepolia",
            "nodes": [
                {
                    "id": "start-1",
                    "type": "start",
                    "position": {"x": 250, "y": 50},
                    "data": {"label": "Start", "chain": 84532, "token": "USDC", "amount": "50"},
                },
                {
                    "id": "bridge-1",
                    "type": "bridge",
                    "position": {"x": 250, "y": 200},
                    "data": {
                        "label": "Bridge",
                        "fromChain": 84532,
                        "toChain": 11155111,
                        "token": "USDC",
                        "amount": "50",
                    },
                },
                {
                    "id": "end-1",
                    "type": "end",
                    "position": {"x": 250, "y": 350},
                    "data": {
                        "label": "End",
                        "chain": 11155111,
                        "expectedToken": "USDC",
                        "expectedAmount": "50",
                        "description": "Bridged successfully",
                    },
                },
            ],
            "edges": [
                _edge("start-1", "bridge-1", "e1-2"),
                _edge("bridge-1", "end-1", "e2-3"),
            ],
            "createdAt": now,
            "updatedAt": now,
            "tags": ["bridge", "simple"],
        },
    ]
