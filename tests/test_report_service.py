from datetime import datetime, timedelta

import pytest

from library_api.errors import ValidationFailure


@pytest.fixture
def ledger(services, clock):
    """Three books, two borrowers, five borrowings spread over early March."""
    b1 = services.catalog.add_book({"title": "Popular", "author": "A", "isbn": "p-1", "quantity": 5})
    b2 = services.catalog.add_book({"title": "Niche", "author": "B", "isbn": "n-1", "quantity": 5})
    ada = services.borrowers.register_borrower({"name": "Ada", "email": "ada@example.com"})
    bob = services.borrowers.register_borrower({"name": "Bob", "email": "bob@example.com"})

    start = clock.now
    ids = []
    for book_id, borrower_id, due_days in [
        (b1["id"], ada["id"], 1),
        (b1["id"], ada["id"], 14),
        (b1["id"], bob["id"], 14),
        (b2["id"], ada["id"], 2),
    ]:
        ids.append(services.borrowings.checkout(book_id, borrower_id, due_date=clock.now + timedelta(days=due_days))["id"])
        clock.advance(hours=1)

    services.borrowings.return_book(ids[1])
    clock.advance(days=3)
    return {"start": start, "books": (b1, b2), "borrowers": (ada, bob), "ids": ids}


def test_report_summary_and_analytics(services, ledger, clock):
    report = services.reports.get_borrowing_report(ledger["start"], clock.now)

    assert report["summary"]["total"] == 4
    assert report["summary"]["returned"] == 1
    assert report["summary"]["overdue"] == 2
    assert report["summary"]["active"] == 1
    assert report["analytics"]["return_rate"] == 25
    assert report["analytics"]["overdue_rate"] == 50

    top_book = report["analytics"]["most_borrowed_books"][0]
    assert (top_book["title"], top_book["count"]) == ("Popular", 3)
    top_borrower = report["analytics"]["top_borrowers"][0]
    assert (top_borrower["name"], top_borrower["count"]) == ("Ada", 3)


def test_report_range_filters_by_checkout_date(services, ledger):
    start = ledger["start"]
    report = services.reports.get_borrowing_report(start, start + timedelta(minutes=90))
    assert report["summary"]["total"] == 2


def test_report_counts_agree_with_listing(services, ledger, clock):
    report = services.reports.get_borrowing_report(ledger["start"], clock.now)
    assert report["summary"]["overdue"] == len(services.borrowings.get_all_borrowings(status="overdue"))
    assert report["summary"]["active"] == len(services.borrowings.get_all_borrowings(status="active"))


def test_empty_range(services):
    report = services.reports.get_borrowing_report(datetime(2000, 1, 1), datetime(2000, 1, 2))
    assert report["summary"]["total"] == 0
    assert report["analytics"]["return_rate"] == 0
    assert report["analytics"]["most_borrowed_books"] == []


def test_inverted_range_rejected(services):
    with pytest.raises(ValidationFailure):
        services.reports.get_borrowing_report(datetime(2025, 2, 1), datetime(2025, 1, 1))


def test_export_rows(services, ledger, clock):
    rows = services.reports.export_rows(ledger["start"], clock.now)
    assert len(rows) == 4
    first = rows[0]
    assert first["book_title"] == "Popular"
    assert first["borrower_email"] == "ada@example.com"
    assert first["checkout_date"] == ledger["start"].date().isoformat()
    assert first["status"] == "overdue"
    assert rows[1]["status"] == "returned"
    assert rows[1]["return_date"] is not None
