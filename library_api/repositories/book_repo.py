from sqlalchemy import func, or_, select, update

from library_api.models.book import Book
from library_api.models.borrowing import Borrowing


class BookRepo:
    def __init__(self, session):
        self.session = session

    def get(self, book_id: int):
        return self.session.get(Book, book_id)

    def get_by_isbn(self, isbn: str):
        return self.session.execute(
            select(Book).filter_by(isbn=isbn)
        ).scalar_one_or_none()

    def list_all(self, search: str | None = None):
        stmt = select(Book)
        if search:
            like = f"%{search}%"
            stmt = stmt.where(or_(
                Book.title.ilike(like),
                Book.author.ilike(like),
                Book.isbn.ilike(like),
            ))
        return self.session.execute(stmt.order_by(Book.title, Book.id)).scalars().all()

    def add(self, book: Book):
        self.session.add(book)
        self.session.flush()
        return book

    def delete(self, book: Book):
        self.session.delete(book)
        self.session.flush()

    def lock(self, book_id: int) -> bool:
        """
        No-op write on the book row. Until the unit of work ends the row is
        write-locked (on SQLite the whole database), so checkouts and returns
        of this book wait for us and the open-borrowing count cannot move.
        Returns False if the book is gone.
        """
        result = self.session.execute(
            update(Book)
            .where(Book.id == book_id)
            .values(updated_at=Book.updated_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def decrement_available(self, book_id: int) -> bool:
        """
        Conditional decrement. The availability check is part of the UPDATE
        itself, so of two racing checkouts on the last copy only one matches.
        """
        result = self.session.execute(
            update(Book)
            .where(Book.id == book_id, Book.available_quantity > 0)
            .values(available_quantity=Book.available_quantity - 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def increment_available(self, book_id: int, by: int = 1) -> bool:
        result = self.session.execute(
            update(Book)
            .where(Book.id == book_id, Book.available_quantity + by <= Book.quantity)
            .values(available_quantity=Book.available_quantity + by)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def count_open_borrowings(self, book_id: int) -> int:
        return self.session.execute(
            select(func.count(Borrowing.id)).where(
                Borrowing.book_id == book_id,
                Borrowing.return_date.is_(None),
            )
        ).scalar_one()

    def open_counts(self) -> dict:
        """book_id -> number of open borrowings, for books that have any."""
        rows = self.session.execute(
            select(Borrowing.book_id, func.count(Borrowing.id))
            .where(Borrowing.return_date.is_(None))
            .group_by(Borrowing.book_id)
        ).all()
        return {book_id: count for book_id, count in rows}
