import io
import logging
from math import ceil
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_system import aggregation, crud, email_utils
from feedback_system.audit import AuditRecorder, get_audit_recorder
from feedback_system.auth_deps import RequestContext, get_request_context
from feedback_system.database import get_async_session
from feedback_system.errors import NotFoundError, ValidationError
from feedback_system.export import export_to_csv, parse_export_filters
from feedback_system.models import FEEDBACK_CATEGORIES, FEEDBACK_STATUSES
from feedback_system.moderation import ModerationEngine, get_moderation_engine
from feedback_system.schemas import FeedbackCreate, FeedbackRead, StatusUpdate
from feedback_system.utils import MAX_ID, parse_positive_int

logger = logging.getLogger(__name__)

feedback_router = APIRouter(prefix="/feedback", tags=["feedback"])

# Keeps (page - 1) * limit well inside a 64-bit OFFSET
MAX_PAGE = 1_000_000


def _feedback_id(raw: str) -> int:
    feedback_id = parse_positive_int(raw)
    if feedback_id is None:
        raise ValidationError("Invalid feedback ID format.")
    return feedback_id


# =========================================================
# STATIC ROUTES (must be registered before /{feedback_id})
# =========================================================
@feedback_router.post("/submit", status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    request: Request,
    feedback: FeedbackCreate,
    db: AsyncSession = Depends(get_async_session),
):
    """Public submission; always stored as pending."""
    created = FeedbackRead.model_validate(await crud.create_feedback(db, feedback))
    request.app.state.task_queue.submit(
        f"notify-new-{created.id}", email_utils.send_new_feedback_notification, created
    )
    return {"success": True, "message": "Feedback submitted successfully.", "data": created.to_json()}


@feedback_router.get("")
async def get_feedback_list(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[str] = Query(None, alias="status"),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_async_session),
    ctx: RequestContext = Depends(get_request_context),
):
    if status_filter and status_filter not in FEEDBACK_STATUSES:
        raise ValidationError("Invalid status. Valid statuses are: pending, approved, rejected.")
    if category and category not in FEEDBACK_CATEGORIES:
        raise ValidationError(f"Invalid category. Valid categories are: {', '.join(FEEDBACK_CATEGORIES)}.")

    items, total = await crud.list_feedback(
        db, page=page, limit=limit, status=status_filter, category=category, search=search
    )
    return {
        "success": True,
        "message": "Feedback retrieved successfully.",
        "data": [FeedbackRead.model_validate(item).to_json() for item in items],
        "pagination": {
            "currentPage": page,
            "totalPages": ceil(total / limit) if total else 0,
            "totalFeedback": total,
            "hasNextPage": page * limit < total,
            "hasPrevPage": page > 1,
        },
    }


@feedback_router.get("/analytics")
async def get_analytics(
    db: AsyncSession = Depends(get_async_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return {
        "success": True,
        "message": "Analytics retrieved successfully.",
        "data": await aggregation.analytics(db),
    }


@feedback_router.get("/report/summary")
async def get_summary_report(
    db: AsyncSession = Depends(get_async_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return {"success": True, "data": await aggregation.summary_report(db)}


@feedback_router.get("/export")
async def export_feedback(
    status_filter: Optional[str] = Query(None, alias="status"),
    category: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: AsyncSession = Depends(get_async_session),
    ctx: RequestContext = Depends(get_request_context),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """Download the filtered feedback as a CSV attachment."""
    filters = parse_export_filters(status_filter, category, start_date, end_date)
    result = await export_to_csv(db, filters)
    if result is None:
        raise NotFoundError("No data to export")

    await audit.record_safely(
        "export",
        "feedback",
        ctx.admin,
        details={"exportCount": result.count, "filters": filters.to_dict()},
        ip_address=ctx.ip_address,
        user_agent=ctx.user_agent,
    )

    return StreamingResponse(
        io.StringIO(result.content),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


@feedback_router.get("/audit-logs")
async def get_audit_logs(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None),
    admin_id: Optional[int] = Query(None, alias="adminId", ge=1, le=MAX_ID),
    ctx: RequestContext = Depends(get_request_context),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    logs, pagination = await audit.list(action=action, admin_id=admin_id, page=page, limit=limit)
    return {
        "success": True,
        "data": [log.to_json() for log in logs],
        "pagination": pagination.to_json(),
    }


# =========================================================
# DYNAMIC ROUTES
# =========================================================
@feedback_router.put("/{feedback_id}/approve")
async def approve_feedback(
    feedback_id: str,
    ctx: RequestContext = Depends(get_request_context),
    engine: ModerationEngine = Depends(get_moderation_engine),
):
    updated = await engine.set_status(_feedback_id(feedback_id), "approved", ctx)
    return {"success": True, "message": "Feedback status updated successfully.", "data": updated.to_json()}


@feedback_router.put("/{feedback_id}/reject")
async def reject_feedback(
    feedback_id: str,
    ctx: RequestContext = Depends(get_request_context),
    engine: ModerationEngine = Depends(get_moderation_engine),
):
    updated = await engine.set_status(_feedback_id(feedback_id), "rejected", ctx)
    return {"success": True, "message": "Feedback status updated successfully.", "data": updated.to_json()}


@feedback_router.patch("/{feedback_id}")
async def update_feedback_status(
    feedback_id: str,
    payload: StatusUpdate,
    ctx: RequestContext = Depends(get_request_context),
    engine: ModerationEngine = Depends(get_moderation_engine),
):
    feedback_pk = _feedback_id(feedback_id)
    updated = await engine.set_status(feedback_pk, payload.status, ctx)
    return {"success": True, "message": "Feedback status updated successfully.", "data": updated.to_json()}


@feedback_router.delete("/{feedback_id}")
async def delete_feedback(
    feedback_id: str,
    ctx: RequestContext = Depends(get_request_context),
    engine: ModerationEngine = Depends(get_moderation_engine),
):
    await engine.delete(_feedback_id(feedback_id), ctx)
    return {"success": True, "message": "Feedback deleted successfully."}


@feedback_router.get("/{feedback_id}")
async def get_feedback(
    feedback_id: str,
    db: AsyncSession = Depends(get_async_session),
    ctx: RequestContext = Depends(get_request_context),
):
    feedback = await crud.get_feedback(db, _feedback_id(feedback_id))
    if feedback is None:
        raise NotFoundError("Feedback not found.")
    return {
        "success": True,
        "message": "Feedback retrieved successfully.",
        "data": FeedbackRead.model_validate(feedback).to_json(),
    }
