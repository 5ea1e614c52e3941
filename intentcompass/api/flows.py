"""
Flow API Endpoints

Simulate, execute and validate flows drawn on the canvas.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.flow.dispatcher import FlowDispatcher, require_runnable
from ..core.flow.errors import FlowValidationError
from ..core.flow.models import FlowEdge, FlowExecution, FlowNode, FlowSimulation, validate_graph
from .deps import get_dispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/flows", tags=["Flows"])


# =============================================================================
# Request/Response Models
# =============================================================================


class FlowRequest(BaseModel):
    """A graph as exported by the canvas."""
    nodes: List[FlowNode] = Field(default_factory=list)
    edges: List[FlowEdge] = Field(default_factory=list)


class ValidationResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    valid: bool
    issues: List[str] = Field(default_factory=list)


def _validation_detail(error: FlowValidationError) -> dict:
    return {"error": error.message, "kind": error.kind.value, "issues": error.issues}


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/simulate", response_model=FlowSimulation)
async def simulate_flow(
    request: FlowRequest,
    dispatcher: FlowDispatcher = Depends(get_dispatcher),
) -> FlowSimulation:
    """Estimate cost and time of every step without sending anything."""
    try:
        return await dispatcher.simulate_flow(request.nodes, request.edges)
    except FlowValidationError as e:
        raise HTTPException(status_code=422, detail=_validation_detail(e))


@router.post("/execute", response_model=FlowExecution)
async def execute_flow(
    request: FlowRequest,
    dispatcher: FlowDispatcher = Depends(get_dispatcher),
) -> FlowExecution:
    """Run the flow; failures are reported in the body, never as an error status."""
    execution = await dispatcher.execute_flow(request.nodes, request.edges)
    logger.info(f"Flow execution finished with status {execution.status.value}")
    return execution


@router.post("/validate", response_model=ValidationResponse)
async def validate_flow(request: FlowRequest) -> ValidationResponse:
    issues = validate_graph(request.nodes, request.edges)
    try:
        require_runnable(request.nodes)
    except FlowValidationError as e:
        if e.message not in issues:
            issues.append(e.message)
    return ValidationResponse(valid=not issues, issues=issues)
