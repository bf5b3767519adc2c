from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_system import aggregation
from feedback_system.auth_deps import RequestContext, get_request_context
from feedback_system.database import get_async_session

dashboard_router = APIRouter(tags=["dashboard"])


@dashboard_router.get("/dashboard/stats")
@dashboard_router.get("/admin/dashboard/stats")
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_async_session),
    ctx: RequestContext = Depends(get_request_context),
):
    """Totals, average rating, per-status counts and category distribution from one read."""
    stats = await aggregation.dashboard_stats(db)
    return {"success": True, "data": stats.to_json()}


@dashboard_router.get("/admin/dashboard/category-distribution")
async def get_category_distribution(
    db: AsyncSession = Depends(get_async_session),
    ctx: RequestContext = Depends(get_request_context),
):
    distribution = await aggregation.category_distribution(db)
    return {
        "success": True,
        "message": "Category distribution retrieved successfully.",
        "data": [item.to_json() for item in distribution],
    }
