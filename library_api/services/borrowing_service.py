# library_api/services/borrowing_service.py
import math
from datetime import datetime, timedelta

from flask import current_app

from library_api.errors import AvailabilityDrift, Conflict, NotFound, ValidationFailure
from library_api.models.borrowing import Borrowing
from library_api.services import status_resolver
from library_api.unit_of_work import SqlAlchemyUnitOfWork
from library_api.utils.serializers import borrowing_to_dict
from library_api.utils.timeutil import utcnow

DEFAULT_LOAN_DAYS = 14


class BorrowingService:
    """
    Checkout/return engine and the read side of the borrowing ledger.

    The store is injected through ``uow_factory``; every public call opens its
    own unit of work. Role checks are the caller's job.
    """

    def __init__(self, uow_factory=SqlAlchemyUnitOfWork, clock=utcnow,
                 loan_days: int = DEFAULT_LOAN_DAYS, max_page_size: int = 100):
        self._uow_factory = uow_factory
        self._clock = clock
        self.loan_days = loan_days
        self.max_page_size = max_page_size

    # ------------------------------------------------------------------
    # Write side
    # ------------------------------------------------------------------
    def checkout(self, book_id: int, borrower_id: int, due_date: datetime | None = None) -> dict:
        now = self._clock()
        if due_date is not None and due_date <= now:
            raise ValidationFailure("due_date must be after the checkout date")

        with self._uow_factory() as uow:
            borrower = uow.borrowers.get(borrower_id)
            if not borrower:
                raise NotFound("Borrower", borrower_id)

            book = uow.books.get(book_id)
            if not book:
                raise NotFound("Book", book_id)

            if book.available_quantity <= 0:
                current_app.logger.info(f"[borrowing] checkout rejected, book={book_id} unavailable")
                raise Conflict(Conflict.BOOK_UNAVAILABLE)

            # holds off a concurrent borrower delete until this borrowing is committed
            if not uow.borrowers.lock(borrower_id):
                raise NotFound("Borrower", borrower_id)

            # re-checked inside the UPDATE; loses to a concurrent checkout of the last copy
            if not uow.books.decrement_available(book_id):
                current_app.logger.info(f"[borrowing] checkout lost race, book={book_id}")
                raise Conflict(Conflict.BOOK_UNAVAILABLE)

            borrowing = Borrowing(
                book_id=book_id,
                borrower_id=borrower_id,
                checkout_date=now,
                due_date=due_date or now + timedelta(days=self.loan_days),
                return_date=None,
                created_at=now,
                updated_at=now,
            )
            uow.borrowings.add(borrowing)
            uow.refresh(book)
            uow.refresh(borrowing)

            result = borrowing_to_dict(borrowing, now, full_book=True)

        current_app.logger.info(
            f"[borrowing] checkout book={book_id} borrower={borrower_id} borrowing={result['id']}"
        )
        return result

    def return_book(self, borrowing_id: int) -> dict:
        now = self._clock()

        with self._uow_factory() as uow:
            borrowing = uow.borrowings.get(borrowing_id)
            if not borrowing:
                raise NotFound("Borrowing", borrowing_id)

            if not borrowing.is_open:
                raise Conflict(Conflict.ALREADY_RETURNED)

            if not uow.borrowings.mark_returned(borrowing_id, now):
                raise Conflict(Conflict.ALREADY_RETURNED)

            # counter already at quantity; undo the close rather than commit a broken invariant
            if not uow.books.increment_available(borrowing.book_id):
                raise AvailabilityDrift(borrowing.book_id)

            uow.refresh(borrowing)
            uow.refresh(borrowing.book)

            result = borrowing_to_dict(borrowing, now, full_book=True)
            result["was_overdue"] = status_resolver.was_overdue(borrowing)

        current_app.logger.info(
            f"[borrowing] return borrowing={borrowing_id} book={result['book_id']} "
            f"was_overdue={result['was_overdue']}"
        )
        return result

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    def get_borrowing(self, borrowing_id: int) -> dict:
        now = self._clock()
        with self._uow_factory() as uow:
            borrowing = uow.borrowings.get(borrowing_id)
            if not borrowing:
                raise NotFound("Borrowing", borrowing_id)
            return borrowing_to_dict(borrowing, now)

    def get_borrower_open_borrowings(self, borrower_id: int) -> list[dict]:
        now = self._clock()
        with self._uow_factory() as uow:
            if not uow.borrowers.get(borrower_id):
                raise NotFound("Borrower", borrower_id)
            rows = uow.borrowings.list_open_by_borrower(borrower_id)
            return [borrowing_to_dict(x, now) for x in rows]

    def get_overdue(self, page: int = 1, limit: int = 20) -> dict:
        if page < 1:
            raise ValidationFailure("page must be >= 1")
        if limit < 1 or limit > self.max_page_size:
            raise ValidationFailure(f"limit must be between 1 and {self.max_page_size}")

        now = self._clock()
        with self._uow_factory() as uow:
            total = uow.borrowings.count_overdue(now)
            rows = uow.borrowings.page_overdue(now, offset=(page - 1) * limit, limit=limit)
            data = [borrowing_to_dict(x, now) for x in rows]

        return {
            "data": data,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit) if total else 0,
            },
        }

    def get_all_borrowings(self, status: str | None = None, book_id: int | None = None,
                           borrower_id: int | None = None) -> list[dict]:
        if status is not None and status not in status_resolver.STATUSES + (status_resolver.OPEN,):
            raise ValidationFailure(
                "status must be one of: open, active, overdue, returned"
            )

        now = self._clock()
        with self._uow_factory() as uow:
            rows = uow.borrowings.list_filtered(
                now, status=status, book_id=book_id, borrower_id=borrower_id
            )
            return [borrowing_to_dict(x, now) for x in rows]
