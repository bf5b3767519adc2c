import csv
import io
import logging
import time
from dataclasses import dataclass, asdict
from datetime import date, datetime, time as dt_time, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from feedback_system import crud
from feedback_system.errors import ValidationError
from feedback_system.models import FEEDBACK_CATEGORIES, FEEDBACK_STATUSES
from feedback_system.utils import format_datetime

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["ID", "Name", "Email", "Category", "Rating", "Message", "Status", "Submitted Date"]


@dataclass
class ExportFilters:
    status: Optional[str] = None
    category: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            key: value.isoformat() if isinstance(value, datetime) else value
            for key, value in asdict(self).items()
        }


@dataclass
class ExportResult:
    content: str
    filename: str
    count: int


def _parse_date(raw: str, field: str, end_of_day: bool = False) -> datetime:
    raw = raw.strip()
    # fromisoformat only accepts a trailing Z from Python 3.11
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        if len(raw) == 10:
            day = date.fromisoformat(raw)
            return datetime.combine(day, dt_time.max if end_of_day else dt_time.min)
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"Invalid {field}. Use YYYY-MM-DD or an ISO 8601 timestamp.")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_export_filters(
    status: Optional[str] = None,
    category: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> ExportFilters:
    if status and status not in FEEDBACK_STATUSES:
        raise ValidationError("Invalid status. Valid statuses are: pending, approved, rejected.")
    if category and category not in FEEDBACK_CATEGORIES:
        raise ValidationError(f"Invalid category. Valid categories are: {', '.join(FEEDBACK_CATEGORIES)}.")

    filters = ExportFilters(
        status=status or None,
        category=category or None,
        start_date=_parse_date(start_date, "startDate") if start_date else None,
        end_date=_parse_date(end_date, "endDate", end_of_day=True) if end_date else None,
    )
    if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
        raise ValidationError("startDate cannot be after endDate.")
    return filters


async def export_to_csv(db: AsyncSession, filters: ExportFilters) -> Optional[ExportResult]:
    """Render the filtered feedback as CSV, newest first. None when nothing matches."""
    rows = await crud.find_feedback_for_export(
        db,
        status=filters.status,
        category=filters.category,
        start_date=filters.start_date,
        end_date=filters.end_date,
    )
    if not rows:
        logger.info(f"Export matched no feedback: {filters.to_dict()}")
        return None

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(EXPORT_COLUMNS)
    for item in rows:
        writer.writerow([
            item.id,
            item.name,
            item.email,
            item.category,
            item.rating,
            item.message,
            item.status,
            format_datetime(item.created_at),
        ])
    content = output.getvalue()
    output.close()

    logger.info(f"Exported {len(rows)} feedback rows")
    return ExportResult(
        content=content,
        filename=f"feedback_export_{int(time.time() * 1000)}.csv",
        count=len(rows),
    )
