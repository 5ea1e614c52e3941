"""
Session API Endpoints

Opens the chain-abstraction backend session for a wallet address.
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..core.flow.errors import NexusApiError
from ..core.nexus.backend import ChainAbstractionBackend
from .deps import get_backend

router = APIRouter(prefix="/session", tags=["Session"])


class SessionRequest(BaseModel):
    user_address: str = Field(..., alias="userAddress", description="Wallet address to open the session for")

    model_config = {"populate_by_name": True}


@router.post("")
async def open_session(
    request: SessionRequest,
    backend: ChainAbstractionBackend = Depends(get_backend),
):
    """Initialize the backend so flows run against it instead of local estimates."""
    try:
        await backend.initialize(request.user_address)
    except NexusApiError as e:
        raise HTTPException(status_code=502, detail=e.message)
    return {"initialized": backend.is_initialized(), "userAddress": backend.user_address}


@router.get("")
async def session_status(backend: ChainAbstractionBackend = Depends(get_backend)):
    return {"initialized": backend.is_initialized(), "userAddress": backend.user_address}
