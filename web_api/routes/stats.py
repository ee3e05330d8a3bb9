"""
Stats routes.

Endpoints:
- GET /api/stats - Public platform activity counters
"""

from fastapi import APIRouter

from core.stats import get_platform_stats

router = APIRouter(prefix="/api", tags=["stats"])


@router.get("/stats")
async def get_stats() -> dict[str, int]:
    return await get_platform_stats()
