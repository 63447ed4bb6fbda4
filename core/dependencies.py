"""
Request dependencies for the draft endpoints.
"""

from fastapi import Depends, HTTPException, Request, status
from core.exceptions import ResourceNotFoundException
from core.logging import get_logger
from services.draft_registry import DraftSessionRegistry
from services.product_draft_session import ProductDraftSession

logger = get_logger(__name__)


def get_draft_registry(request: Request) -> DraftSessionRegistry:
    """
    The registry created by the application lifespan.

    Raises:
        HTTPException: 503 if the application has not finished starting
    """
    registry = getattr(request.app.state, "draft_registry", None)
    if registry is None:
        logger.error("Draft registry not initialized")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "SERVICE_UNAVAILABLE", "message": "Service is not ready. Please try again in a moment."}
        )
    return registry


def get_draft_session(
    draft_id: str,
    registry: DraftSessionRegistry = Depends(get_draft_registry)
) -> ProductDraftSession:
    """Resolve the open session addressed by the path's draft_id."""
    try:
        return registry.get(draft_id)
    except ResourceNotFoundException as e:
        logger.warning(f"Unknown draft requested: {draft_id}")
        raise HTTPException(
            status_code=e.status_code,
            detail={"error": e.error_code, "message": e.message}
        )
