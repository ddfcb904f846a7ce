from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from library_api.services import status_resolver as sr

NOW = datetime(2025, 3, 10, 12, 0)


def make(due, returned=None):
    return SimpleNamespace(due_date=due, return_date=returned)


def test_open_and_not_due_is_active():
    b = make(NOW + timedelta(days=3))
    assert sr.resolve_status(b, NOW) == sr.ACTIVE
    assert sr.days_overdue(b, NOW) == 0
    assert sr.days_until_due(b, NOW) == 3


def test_due_yesterday_is_overdue():
    b = make(NOW - timedelta(days=1))
    assert sr.resolve_status(b, NOW) == sr.OVERDUE
    assert sr.days_overdue(b, NOW) >= 1
    assert sr.days_until_due(b, NOW) == -1


def test_returned_wins_regardless_of_due_date():
    b = make(NOW - timedelta(days=30), returned=NOW - timedelta(days=2))
    assert sr.resolve_status(b, NOW) == sr.RETURNED
    assert sr.days_overdue(b, NOW) is None
    assert sr.days_until_due(b, NOW) is None
    assert sr.was_overdue(b) is True


def test_due_exactly_now_is_still_active():
    b = make(NOW)
    assert sr.resolve_status(b, NOW) == sr.ACTIVE
    assert sr.days_until_due(b, NOW) == 0


def test_partial_days_are_floored():
    b = make(NOW - timedelta(hours=30))
    assert sr.days_overdue(b, NOW) == 1
    # a few hours late: overdue but zero whole days
    b = make(NOW - timedelta(hours=2))
    assert sr.resolve_status(b, NOW) == sr.OVERDUE
    assert sr.days_overdue(b, NOW) == 0
    assert sr.days_until_due(b, NOW) == -1


def test_was_overdue_for_on_time_return():
    b = make(NOW, returned=NOW - timedelta(days=1))
    assert sr.was_overdue(b) is False
    assert sr.was_overdue(make(NOW)) is None


def test_count_by_status():
    rows = [
        make(NOW + timedelta(days=1)),
        make(NOW - timedelta(days=1)),
        make(NOW - timedelta(days=5)),
        make(NOW, returned=NOW),
    ]
    assert sr.count_by_status(rows, NOW) == {"active": 1, "overdue": 2, "returned": 1}


def test_describe_bundles_all_fields():
    assert sr.describe(make(NOW + timedelta(days=2)), NOW) == {
        "status": "active",
        "days_overdue": 0,
        "days_until_due": 2,
    }


def test_unknown_status_criteria_rejected():
    with pytest.raises(ValueError):
        sr.status_criteria("lost", NOW)
