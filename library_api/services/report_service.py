# library_api/services/report_service.py
from datetime import datetime

from library_api.errors import ValidationFailure
from library_api.services import status_resolver
from library_api.unit_of_work import SqlAlchemyUnitOfWork
from library_api.utils.timeutil import utcnow

TOP_N = 5


def _percent(part: int, total: int) -> int:
    return round(part / total * 100) if total else 0


class ReportService:
    """Read-only aggregations over the ledger for reports and exports."""

    def __init__(self, uow_factory=SqlAlchemyUnitOfWork, clock=utcnow):
        self._uow_factory = uow_factory
        self._clock = clock

    @staticmethod
    def _check_range(from_date: datetime, to_date: datetime):
        if from_date > to_date:
            raise ValidationFailure("From date must be before to date")

    def get_borrowing_report(self, from_date: datetime, to_date: datetime) -> dict:
        self._check_range(from_date, to_date)
        now = self._clock()

        with self._uow_factory() as uow:
            rows = uow.borrowings.list_checked_out_between(from_date, to_date)
            counts = status_resolver.count_by_status(rows, now)

            most_borrowed = [
                {"book_id": r.id, "title": r.title, "author": r.author, "count": r.borrow_count}
                for r in uow.borrowings.tally_by_book(from_date, to_date, limit=TOP_N)
            ]
            top_borrowers = [
                {"borrower_id": r.id, "name": r.name, "email": r.email, "count": r.borrow_count}
                for r in uow.borrowings.tally_by_borrower(from_date, to_date, limit=TOP_N)
            ]

        total = len(rows)
        return {
            "summary": {
                "total": total,
                "returned": counts[status_resolver.RETURNED],
                "active": counts[status_resolver.ACTIVE],
                "overdue": counts[status_resolver.OVERDUE],
                "period": {"from": from_date, "to": to_date},
            },
            "analytics": {
                "return_rate": _percent(counts[status_resolver.RETURNED], total),
                "overdue_rate": _percent(counts[status_resolver.OVERDUE], total),
                "most_borrowed_books": most_borrowed,
                "top_borrowers": top_borrowers,
            },
        }

    def export_rows(self, from_date: datetime, to_date: datetime) -> list[dict]:
        self._check_range(from_date, to_date)
        now = self._clock()

        with self._uow_factory() as uow:
            rows = uow.borrowings.list_checked_out_between(from_date, to_date)
            return [
                {
                    "id": x.id,
                    "book_title": x.book.title,
                    "book_author": x.book.author,
                    "book_isbn": x.book.isbn,
                    "borrower_name": x.borrower.name,
                    "borrower_email": x.borrower.email,
                    "checkout_date": x.checkout_date.date().isoformat(),
                    "due_date": x.due_date.date().isoformat(),
                    "return_date": x.return_date.date().isoformat() if x.return_date else None,
                    "status": status_resolver.resolve_status(x, now),
                }
                for x in rows
            ]
