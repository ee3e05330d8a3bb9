"""
Recommendation routes.

Endpoints:
- GET /api/recommendations - Ranked upcoming meetings for the current user
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from core.recommendations import recommend
from web_api.auth import get_current_actor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["recommendations"])


@router.get("/recommendations")
async def get_recommendations(
    actor: dict = Depends(get_current_actor),
) -> list[dict[str, Any]]:
    """
    Up to five upcoming meetings the user has not joined, each with a
    relevance score (0-100) and a short reason. May be empty.
    """
    try:
        return await recommend(actor["user_id"])
    except Exception as e:
        logger.exception("Recommendations failed for user %s", actor["user_id"])
        raise HTTPException(500, "Failed to get recommendations") from e
