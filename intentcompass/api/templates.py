"""
Template API Endpoints

CRUD over saved flow templates plus the built-in examples.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.flow.models import FlowEdge, FlowNode, FlowTemplate
from ..services.templates import TemplateService
from .deps import get_template_service

router = APIRouter(prefix="/templates", tags=["Templates"])


class SaveTemplateRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Template name")
    description: str = Field("", description="Template description")
    nodes: List[FlowNode] = Field(default_factory=list)
    edges: List[FlowEdge] = Field(default_factory=list)
    tags: Optional[List[str]] = None


class UpdateTemplateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    nodes: Optional[List[FlowNode]] = None
    edges: Optional[List[FlowEdge]] = None
    tags: Optional[List[str]] = None


@router.get("", response_model=List[FlowTemplate])
async def list_templates(service: TemplateService = Depends(get_template_service)):
    return service.get_templates()


@router.get("/examples", response_model=List[FlowTemplate])
async def list_example_templates(service: TemplateService = Depends(get_template_service)):
    return service.get_example_templates()


@router.get("/{template_id}", response_model=FlowTemplate)
async def get_template(template_id: str, service: TemplateService = Depends(get_template_service)):
    template = service.get_template(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return template


@router.post("", response_model=FlowTemplate, status_code=201)
async def save_template(
    request: SaveTemplateRequest,
    service: TemplateService = Depends(get_template_service),
):
    return service.save_template(
        name=request.name,
        description=request.description,
        nodes=request.nodes,
        edges=request.edges,
        tags=request.tags,
    )


@router.put("/{template_id}", response_model=FlowTemplate)
async def update_template(
    template_id: str,
    request: UpdateTemplateRequest,
    service: TemplateService = Depends(get_template_service),
):
    updates = request.model_dump(exclude_unset=True)
    template = service.update_template(template_id, **updates)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return template


@router.delete("/{template_id}")
async def delete_template(template_id: str, service: TemplateService = Depends(get_template_service)):
    if not service.delete_template(template_id):
        raise HTTPException(status_code=404, detail="Template not found")
    return {"deleted": True, "id": template_id}
