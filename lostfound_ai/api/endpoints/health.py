"""Health check endpoints."""

from typing import Any, Dict

from fastapi import APIRouter

from ...infrastructure import dependencies

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """Check the health of all service components.

    Returns:
        Availability of the AI and embedding providers and the store backend
    """
    return {"status": "healthy", **dependencies.get_service_container().health()}
