"""
Dashboard statistics derived from the feedback store.

Each public function issues exactly one grouped SELECT and derives all of
its numbers from that one result set, so totals, averages and breakdowns
always agree with each other even while moderators are writing.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_system.models import FEEDBACK_STATUSES, Feedback
from feedback_system.schemas import (
    CategoryCount,
    CategorySummary,
    DashboardStats,
    StatusCount,
    StatusCounts,
)

logger = logging.getLogger(__name__)

UNKNOWN_CATEGORY = "Unknown"


async def _grouped_snapshot(db: AsyncSession) -> List[Tuple]:
    """One pass: (status, category, count, rating_sum) per group."""
    result = await db.execute(
        select(
            Feedback.status,
            Feedback.category,
            func.count(Feedback.id),
            func.coalesce(func.sum(Feedback.rating), 0),
        ).group_by(Feedback.status, Feedback.category)
    )
    return [tuple(row) for row in result.all()]


def _average(rating_sum: float, count: int) -> float:
    return round(rating_sum / count, 2) if count else 0.0


def _sorted_categories(counts: Dict[str, int]) -> List[CategoryCount]:
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [CategoryCount(category=category, count=count) for category, count in ordered]


def summarize(rows: List[Tuple]) -> DashboardStats:
    total = 0
    rating_sum = 0
    by_status: Dict[str, int] = {status: 0 for status in FEEDBACK_STATUSES}
    by_category: Dict[str, int] = defaultdict(int)

    for status, category, count, ratings in rows:
        total += count
        rating_sum += ratings or 0
        if status in by_status:
            by_status[status] += count
        by_category[category or UNKNOWN_CATEGORY] += count

    return DashboardStats(
        total_feedback=total,
        average_rating=_average(rating_sum, total),
        pending_count=by_status["pending"],
        approved_count=by_status["approved"],
        rejected_count=by_status["rejected"],
        counts_by_status=StatusCounts(**by_status),
        category_distribution=_sorted_categories(by_category),
    )


async def dashboard_stats(db: AsyncSession) -> DashboardStats:
    return summarize(await _grouped_snapshot(db))


async def category_distribution(db: AsyncSession) -> List[CategoryCount]:
    return (await dashboard_stats(db)).category_distribution


async def analytics(db: AsyncSession) -> Dict:
    """Totals plus category and status breakdowns (status keys as stored)."""
    rows = await _grouped_snapshot(db)
    stats = summarize(rows)

    status_totals: Dict[str, int] = defaultdict(int)
    for status, _category, count, _ratings in rows:
        status_totals[status] += count

    return {
        "totalFeedback": stats.total_feedback,
        "averageRating": stats.average_rating,
        "categoryCount": [c.to_json() for c in stats.category_distribution],
        "statusCount": [
            StatusCount(status=status, count=count).to_json()
            for status, count in sorted(status_totals.items(), key=lambda item: (-item[1], item[0]))
        ],
    }


async def summary_report(db: AsyncSession) -> Dict:
    """Per-category count and average rating alongside the dashboard numbers."""
    rows = await _grouped_snapshot(db)
    stats = summarize(rows)

    per_category: Dict[str, List[int]] = defaultdict(lambda: [0, 0])
    for _status, category, count, ratings in rows:
        bucket = per_category[category or UNKNOWN_CATEGORY]
        bucket[0] += count
        bucket[1] += ratings or 0

    by_category = [
        CategorySummary(category=category, count=count, average_rating=_average(ratings, count))
        for category, (count, ratings) in sorted(per_category.items(), key=lambda item: (-item[1][0], item[0]))
    ]
    logger.info(f"Summary report built over {stats.total_feedback} feedback items")
    return {
        "total": stats.total_feedback,
        "averageRating": stats.average_rating,
        "byStatus": stats.counts_by_status.to_json(),
        "byCategory": [c.to_json() for c in by_category],
    }
