from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from natours.core.errors import AppError
from natours.models.tour import Tour
from natours.resources import TOURS

STATS_MIN_RATING = 4.5
MONTHLY_PLAN_LIMIT = 12


def _round(value: Any) -> float | None:
    return None if value is None else round(float(value), 2)


def tour_stats(db: Session) -> list[dict[str, Any]]:
    difficulty = func.upper(Tour.difficulty)
    conditions = TOURS.query(db).find({"ratings_average": {"$gte": STATS_MIN_RATING}}).where_expressions()
    stmt = (
        select(
            difficulty.label("difficulty"),
            func.count(Tour.id).label("num_tours"),
            func.coalesce(func.sum(Tour.ratings_quantity), 0).label("num_ratings"),
            func.avg(Tour.ratings_average).label("avg_rating"),
            func.avg(Tour.price).label("avg_price"),
            func.min(Tour.price).label("min_price"),
            func.max(Tour.price).label("max_price"),
        )
        .where(*conditions)
        .group_by(difficulty)
        .order_by(func.avg(Tour.price).asc())
    )
    return [
        {
            "difficulty": row.difficulty,
            "num_tours": int(row.num_tours),
            "num_ratings": int(row.num_ratings),
            "avg_rating": _round(row.avg_rating),
            "avg_price": _round(row.avg_price),
            "min_price": _round(row.min_price),
            "max_price": _round(row.max_price),
        }
        for row in db.execute(stmt).all()
    ]


def _parse_start_date(raw: Any) -> datetime | None:
    try:
        value = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        return None
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value.astimezone(timezone.utc)


def monthly_plan(db: Session, year: int) -> list[dict[str, Any]]:
    if year < 1 or year > 9998:
        raise AppError(f"Invalid year: {year}.", 400)
    start = datetime(year, 1, 1, tzinfo=timezone.utc)
    end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)

    # start_dates is a JSON list, so each tour is unwound here rather than in SQL.
    tours_by_month: dict[int, list[str]] = defaultdict(list)
    for tour in TOURS.query(db).sort("name").rows():
        for raw in tour.start_dates or []:
            starts_at = _parse_start_date(raw)
            if starts_at is not None and start <= starts_at < end:
                tours_by_month[starts_at.month].append(tour.name)

    plan = [
        {"month": month, "num_tour_starts": len(names), "tours": names}
        for month, names in tours_by_month.items()
    ]
    plan.sort(key=lambda item: (-item["num_tour_starts"], item["month"]))
    return plan[:MONTHLY_PLAN_LIMIT]
