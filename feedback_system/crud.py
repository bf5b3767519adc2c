from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func, or_
from datetime import datetime
from typing import List, Optional, Tuple, Dict, Any
import logging

from feedback_system import models, schemas
from feedback_system.utils import utcnow

logger = logging.getLogger(__name__)


def _feedback_filters(
    status: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> list:
    conditions = []
    if status:
        conditions.append(models.Feedback.status == status)
    if category:
        conditions.append(models.Feedback.category == category)
    if search:
        pattern = f"%{search.lower()}%"
        conditions.append(
            or_(
                func.lower(models.Feedback.name).like(pattern),
                func.lower(models.Feedback.email).like(pattern),
                func.lower(models.Feedback.message).like(pattern),
            )
        )
    if start_date:
        conditions.append(models.Feedback.created_at >= start_date)
    if end_date:
        conditions.append(models.Feedback.created_at <= end_date)
    return conditions


async def create_feedback(db: AsyncSession, feedback: schemas.FeedbackCreate) -> models.Feedback:
    now = utcnow()
    db_feedback = models.Feedback(
        name=feedback.name,
        email=feedback.email,
        category=feedback.category,
        rating=feedback.rating,
        message=feedback.message,
        status="pending",
        created_at=now,
        updated_at=now,
    )
    db.add(db_feedback)
    await db.commit()
    await db.refresh(db_feedback)
    logger.info(f"Created feedback {db_feedback.id} ({db_feedback.category})")
    return db_feedback


async def get_feedback(db: AsyncSession, feedback_id: int) -> Optional[models.Feedback]:
    result = await db.execute(select(models.Feedback).where(models.Feedback.id == feedback_id))
    return result.scalar_one_or_none()


async def list_feedback(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
) -> Tuple[List[models.Feedback], int]:
    conditions = _feedback_filters(status=status, category=category, search=search)

    total = (
        await db.execute(select(func.count(models.Feedback.id)).where(*conditions))
    ).scalar_one()
    result = await db.execute(
        select(models.Feedback)
        .where(*conditions)
        .order_by(models.Feedback.created_at.desc(), models.Feedback.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def find_feedback_for_export(
    db: AsyncSession,
    status: Optional[str] = None,
    category: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> List[models.Feedback]:
    conditions = _feedback_filters(status=status, category=category, start_date=start_date, end_date=end_date)
    result = await db.execute(
        select(models.Feedback)
        .where(*conditions)
        .order_by(models.Feedback.created_at.desc(), models.Feedback.id.desc())
    )
    return list(result.scalars().all())


async def update_feedback_status(
    db: AsyncSession, feedback_id: int, status: str
) -> Optional[schemas.FeedbackRead]:
    """
    Set the status with a single UPDATE ... RETURNING.

    No read-modify-write: the row is never loaded and written back, so two
    moderators racing on the same item each get a consistent row. Returns
    None when no row matched.
    """
    result = await db.execute(
        update(models.Feedback)
        .where(models.Feedback.id == feedback_id)
        .values(status=status, updated_at=utcnow())
        .returning(models.Feedback)
        .execution_options(synchronize_session=False)
    )
    row = result.scalar_one_or_none()
    updated = schemas.FeedbackRead.model_validate(row) if row is not None else None
    await db.commit()
    return updated


async def delete_feedback(db: AsyncSession, feedback_id: int) -> Optional[Dict[str, Any]]:
    """Delete atomically, returning the row's name/category/status as they were."""
    result = await db.execute(
        delete(models.Feedback)
        .where(models.Feedback.id == feedback_id)
        .returning(
            models.Feedback.id,
            models.Feedback.name,
            models.Feedback.category,
            models.Feedback.status,
        )
        .execution_options(synchronize_session=False)
    )
    row = result.first()
    await db.commit()
    if row is None:
        return None
    return {"id": row.id, "name": row.name, "category": row.category, "status": row.status}
