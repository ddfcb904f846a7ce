# library_api/services/catalog_service.py
from flask import current_app

from library_api.errors import Conflict, NotFound, ValidationFailure
from library_api.models.book import Book
from library_api.unit_of_work import SqlAlchemyUnitOfWork
from library_api.utils.serializers import book_to_dict


class CatalogService:
    def __init__(self, uow_factory=SqlAlchemyUnitOfWork):
        self._uow_factory = uow_factory

    def list_books(self, search: str | None = None):
        with self._uow_factory() as uow:
            return [book_to_dict(b) for b in uow.books.list_all(search)]

    def get_book(self, book_id: int):
        with self._uow_factory() as uow:
            return book_to_dict(self._get_or_404(uow, book_id))

    def add_book(self, data: dict):
        quantity = data.get("quantity", 1)
        if quantity < 0:
            raise ValidationFailure("quantity must be >= 0")

        with self._uow_factory() as uow:
            if uow.books.get_by_isbn(data["isbn"]):
                raise Conflict(Conflict.DUPLICATE_ISBN)

            book = Book(
                title=data["title"],
                author=data["author"],
                isbn=data["isbn"],
                location=data.get("location"),
                quantity=quantity,
                available_quantity=quantity,
            )
            uow.books.add(book)
            result = book_to_dict(book)

        current_app.logger.info(f"[catalog] book added id={result['id']} isbn={result['isbn']}")
        return result

    def update_book(self, book_id: int, data: dict):
        if "quantity" in data and data["quantity"] < 0:
            raise ValidationFailure("quantity must be >= 0")

        with self._uow_factory() as uow:
            book = self._get_or_404(uow, book_id)

            if "isbn" in data and data["isbn"] != book.isbn:
                other = uow.books.get_by_isbn(data["isbn"])
                if other and other.id != book.id:
                    raise Conflict(Conflict.DUPLICATE_ISBN)

            if "quantity" in data:
                # open count and new counter both under the row lock
                if not uow.books.lock(book.id):
                    raise NotFound("Book", book_id)
                uow.refresh(book)

                # available is derived from the ledger, never taken from input
                quantity = data["quantity"]
                checked_out = uow.books.count_open_borrowings(book.id)
                if quantity < checked_out:
                    raise Conflict(Conflict.QUANTITY_BELOW_CHECKED_OUT)
                book.quantity = quantity
                book.available_quantity = quantity - checked_out

            for k in ["title", "author", "isbn", "location"]:
                if k in data:
                    setattr(book, k, data[k])

            uow.flush()
            result = book_to_dict(book)

        current_app.logger.info(f"[catalog] book updated id={book_id}")
        return result

    def delete_book(self, book_id: int, force: bool = False):
        with self._uow_factory() as uow:
            book = self._get_or_404(uow, book_id)

            # the guard only holds while nobody can check the book out
            if not uow.books.lock(book_id):
                raise NotFound("Book", book_id)

            open_count = uow.books.count_open_borrowings(book_id)
            if open_count and not force:
                raise Conflict(
                    Conflict.HAS_ACTIVE_BORROWINGS,
                    f"Book has {open_count} active borrowing(s); return them first",
                )

            # borrowing history goes with the book
            uow.books.delete(book)

        if force:
            current_app.logger.warning(
                f"[catalog] book force-deleted id={book_id} open_borrowings={open_count}"
            )
        else:
            current_app.logger.info(f"[catalog] book deleted id={book_id}")

    def force_delete_book(self, book_id: int):
        self.delete_book(book_id, force=True)

    def audit_availability(self):
        """Books whose stored counter disagrees with quantity minus open borrowings."""
        with self._uow_factory() as uow:
            open_counts = uow.books.open_counts()
            return [
                row for row in (
                    self._drift_row(b, open_counts.get(b.id, 0)) for b in uow.books.list_all()
                )
                if row
            ]

    def reconcile_availability(self):
        """
        Rewrites available_quantity for every drifted book. Each book is locked
        and recounted before the write, so the first scan may be stale.
        """
        suspects = [row["book_id"] for row in self.audit_availability()]
        fixed = []

        with self._uow_factory() as uow:
            for book_id in suspects:
                if not uow.books.lock(book_id):
                    continue
                book = uow.books.get(book_id)
                uow.refresh(book)

                row = self._drift_row(book, uow.books.count_open_borrowings(book_id))
                if row:
                    book.available_quantity = row["expected_available"]
                    fixed.append(row)

        for row in fixed:
            current_app.logger.warning(
                f"[catalog] reconciled book={row['book_id']} "
                f"{row['available_quantity']} -> {row['expected_available']}"
            )
        return fixed

    @staticmethod
    def _drift_row(book, checked_out: int):
        expected = book.quantity - checked_out
        if book.available_quantity == expected:
            return None
        return {
            "book_id": book.id,
            "title": book.title,
            "quantity": book.quantity,
            "checked_out": checked_out,
            "available_quantity": book.available_quantity,
            "expected_available": expected,
        }

    @staticmethod
    def _get_or_404(uow, book_id: int):
        book = uow.books.get(book_id)
        if not book:
            raise NotFound("Book", book_id)
        return book
