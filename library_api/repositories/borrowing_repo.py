from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.orm import joinedload

from library_api.models.book import Book
from library_api.models.borrower import Borrower
from library_api.models.borrowing import Borrowing
from library_api.services.status_resolver import OVERDUE, status_criteria


class BorrowingRepo:
    def __init__(self, session):
        self.session = session

    def _with_parties(self):
        return select(Borrowing).options(
            joinedload(Borrowing.book),
            joinedload(Borrowing.borrower),
        )

    def get(self, borrowing_id: int):
        return self.session.execute(
            self._with_parties().where(Borrowing.id == borrowing_id)
        ).scalar_one_or_none()

    def add(self, borrowing: Borrowing):
        self.session.add(borrowing)
        self.session.flush()
        return borrowing

    def mark_returned(self, borrowing_id: int, returned_at: datetime) -> bool:
        """Closes the borrowing only if it is still open."""
        result = self.session.execute(
            update(Borrowing)
            .where(Borrowing.id == borrowing_id, Borrowing.return_date.is_(None))
            .values(return_date=returned_at, updated_at=returned_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def list_open_by_borrower(self, borrower_id: int):
        return self.session.execute(
            self._with_parties()
            .where(Borrowing.borrower_id == borrower_id, Borrowing.return_date.is_(None))
            .order_by(Borrowing.checkout_date.desc(), Borrowing.id.desc())
        ).scalars().all()

    def list_open(self, book_id: int | None = None, borrower_id: int | None = None):
        stmt = select(Borrowing).where(Borrowing.return_date.is_(None))
        if book_id is not None:
            stmt = stmt.where(Borrowing.book_id == book_id)
        if borrower_id is not None:
            stmt = stmt.where(Borrowing.borrower_id == borrower_id)
        return self.session.execute(stmt).scalars().all()

    def list_filtered(self, now: datetime, status: str | None = None,
                      book_id: int | None = None, borrower_id: int | None = None):
        stmt = self._with_parties()
        if status:
            stmt = stmt.where(status_criteria(status, now))
        if book_id is not None:
            stmt = stmt.where(Borrowing.book_id == book_id)
        if borrower_id is not None:
            stmt = stmt.where(Borrowing.borrower_id == borrower_id)
        return self.session.execute(
            stmt.order_by(Borrowing.checkout_date.desc(), Borrowing.id.desc())
        ).scalars().all()

    def count_overdue(self, now: datetime) -> int:
        return self.session.execute(
            select(func.count(Borrowing.id)).where(status_criteria(OVERDUE, now))
        ).scalar_one()

    def page_overdue(self, now: datetime, offset: int, limit: int):
        return self.session.execute(
            self._with_parties()
            .where(status_criteria(OVERDUE, now))
            .order_by(Borrowing.due_date.asc(), Borrowing.id.asc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()

    def list_checked_out_between(self, from_date: datetime, to_date: datetime):
        return self.session.execute(
            self._with_parties()
            .where(Borrowing.checkout_date >= from_date, Borrowing.checkout_date <= to_date)
            .order_by(Borrowing.checkout_date.asc(), Borrowing.id.asc())
        ).scalars().all()

    def tally_by_book(self, from_date: datetime, to_date: datetime, limit: int = 5):
        count = func.count(Borrowing.id).label("borrow_count")
        return self.session.execute(
            select(Book.id, Book.title, Book.author, count)
            .join(Borrowing, Borrowing.book_id == Book.id)
            .where(Borrowing.checkout_date >= from_date, Borrowing.checkout_date <= to_date)
            .group_by(Book.id, Book.title, Book.author)
            .order_by(count.desc(), Book.id.asc())
            .limit(limit)
        ).all()

    def tally_by_borrower(self, from_date: datetime, to_date: datetime, limit: int = 5):
        count = func.count(Borrowing.id).label("borrow_count")
        return self.session.execute(
            select(Borrower.id, Borrower.name, Borrower.email, count)
            .join(Borrowing, Borrowing.borrower_id == Borrower.id)
            .where(Borrowing.checkout_date >= from_date, Borrowing.checkout_date <= to_date)
            .group_by(Borrower.id, Borrower.name, Borrower.email)
            .order_by(count.desc(), Borrower.id.asc())
            .limit(limit)
        ).all()
