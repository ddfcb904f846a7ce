# library_api/services/status_resolver.py
"""
Borrowing status derivations.

Every listing, overdue query and report goes through these helpers so that
"active", "overdue" and "returned" mean the same thing everywhere. The SQL
criteria at the bottom are the query-side mirror of ``resolve_status``.
"""
import math
from datetime import datetime

from sqlalchemy import and_

from library_api.models.borrowing import Borrowing

ACTIVE = "active"
OVERDUE = "overdue"
RETURNED = "returned"
OPEN = "open"

STATUSES = (ACTIVE, OVERDUE, RETURNED)

_SECONDS_PER_DAY = 24 * 60 * 60


def _whole_days(seconds: float) -> int:
    return math.floor(seconds / _SECONDS_PER_DAY)


def resolve_status(borrowing, now: datetime) -> str:
    if borrowing.return_date is not None:
        return RETURNED
    if borrowing.due_date < now:
        return OVERDUE
    return ACTIVE


def days_overdue(borrowing, now: datetime) -> int | None:
    """None for returned borrowings, otherwise max(0, whole days past due)."""
    if borrowing.return_date is not None:
        return None
    return max(0, _whole_days((now - borrowing.due_date).total_seconds()))


def days_until_due(borrowing, now: datetime) -> int | None:
    # negative once the due date has passed
    if borrowing.return_date is not None:
        return None
    return _whole_days((borrowing.due_date - now).total_seconds())


def was_overdue(borrowing) -> bool | None:
    if borrowing.return_date is None:
        return None
    return borrowing.return_date > borrowing.due_date


def describe(borrowing, now: datetime) -> dict:
    return {
        "status": resolve_status(borrowing, now),
        "days_overdue": days_overdue(borrowing, now),
        "days_until_due": days_until_due(borrowing, now),
    }


def count_by_status(borrowings, now: datetime) -> dict:
    counts = {status: 0 for status in STATUSES}
    for b in borrowings:
        counts[resolve_status(b, now)] += 1
    return counts


def status_criteria(status: str, now: datetime):
    """SQLAlchemy filter matching ``resolve_status(b, now) == status``."""
    if status == RETURNED:
        return Borrowing.return_date.is_not(None)
    if status == OVERDUE:
        return and_(Borrowing.return_date.is_(None), Borrowing.due_date < now)
    if status == ACTIVE:
        return and_(Borrowing.return_date.is_(None), Borrowing.due_date >= now)
    if status == OPEN:
        return Borrowing.return_date.is_(None)
    raise ValueError(f"unknown borrowing status: {status}")
