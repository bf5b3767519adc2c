"""
Moderation lifecycle for feedback items.

Any status can move to any other status (re-review model); repeating a
transition is allowed and is audited again. The order inside a transition
is fixed: validate, mutate the store, audit (best-effort), then hand the
notification to the task queue.
"""

import logging
from typing import Any, Awaitable, Callable, Dict

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_system import crud, email_utils
from feedback_system.audit import AuditRecorder, get_audit_recorder
from feedback_system.auth_deps import RequestContext
from feedback_system.database import get_async_session
from feedback_system.errors import InvalidStatus, NotFoundError
from feedback_system.models import FEEDBACK_STATUSES
from feedback_system.schemas import FeedbackRead
from feedback_system.tasks import TaskQueue

logger = logging.getLogger(__name__)

AUDIT_ACTION_FOR_STATUS = {
    "approved": "approve",
    "rejected": "reject",
    "pending": "update",
}

NOTIFY_STATUSES = ("approved", "rejected")


class ModerationEngine:
    """Audit writes are awaited inline (own session, contained by record_safely) so the
    trail is in place when the request returns; only notifications go to the task queue."""

    def __init__(
        self,
        db: AsyncSession,
        audit: AuditRecorder,
        tasks: TaskQueue,
        notifier: Callable[[FeedbackRead], Awaitable[Any]] = email_utils.send_status_notification,
    ):
        self.db = db
        self.audit = audit
        self.tasks = tasks
        self.notifier = notifier

    async def set_status(self, feedback_id: int, new_status: Any, ctx: RequestContext) -> FeedbackRead:
        if not isinstance(new_status, str) or new_status not in FEEDBACK_STATUSES:
            raise InvalidStatus()

        updated = await crud.update_feedback_status(self.db, feedback_id, new_status)
        if updated is None:
            raise NotFoundError("Feedback not found.")

        logger.info(f"Feedback {feedback_id} set to {new_status} by admin {ctx.admin.id}")

        await self.audit.record_safely(
            AUDIT_ACTION_FOR_STATUS[new_status],
            "feedback",
            ctx.admin,
            entity_id=feedback_id,
            details={"status": new_status, "feedbackCategory": updated.category},
            ip_address=ctx.ip_address,
            user_agent=ctx.user_agent,
        )

        if new_status in NOTIFY_STATUSES:
            self._notify(updated)

        return updated

    async def delete(self, feedback_id: int, ctx: RequestContext) -> Dict[str, Any]:
        deleted = await crud.delete_feedback(self.db, feedback_id)
        if deleted is None:
            raise NotFoundError("Feedback not found.")

        logger.info(f"Feedback {feedback_id} deleted by admin {ctx.admin.id}")

        # The row is gone; keep what it looked like at delete time
        await self.audit.record_safely(
            "delete",
            "feedback",
            ctx.admin,
            entity_id=feedback_id,
            details={
                "deletedName": deleted["name"],
                "deletedCategory": deleted["category"],
                "deletedStatus": deleted["status"],
            },
            ip_address=ctx.ip_address,
            user_agent=ctx.user_agent,
        )
        return deleted

    def _notify(self, feedback: FeedbackRead) -> None:
        try:
            self.tasks.submit(f"notify-{feedback.status}-{feedback.id}", self.notifier, feedback)
        except Exception:
            logger.exception(f"Could not queue notification for feedback {feedback.id}")


def get_moderation_engine(
    request: Request,
    db: AsyncSession = Depends(get_async_session),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> ModerationEngine:
    return ModerationEngine(db, audit, request.app.state.task_queue)
