from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..core.nexus.backend import ChainAbstractionBackend
from .deps import get_backend

router = APIRouter()


@router.get("/healthz")
async def health_check(backend: ChainAbstractionBackend = Depends(get_backend)) -> Dict[str, Any]:
    """Health check endpoint that reports backend status"""
    check = getattr(backend, "health_check", None)
    backend_status = await check() if check is not None else {"status": "unknown"}

    # The engine stays usable on local estimates when the gateway is down
    return {
        "status": "healthy" if backend_status.get("status") == "healthy" else "degraded",
        "backend": backend_status,
        "live": backend.is_initialized(),
    }
