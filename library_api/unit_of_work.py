# library_api/unit_of_work.py
from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError

from library_api.errors import StorageFailure
from library_api.extensions import db
from library_api.repositories.book_repo import BookRepo
from library_api.repositories.borrower_repo import BorrowerRepo
from library_api.repositories.borrowing_repo import BorrowingRepo
from library_api.repositories.user_repo import UserRepo


def _default_session():
    return db.session


class SqlAlchemyUnitOfWork:
    """
    One all-or-nothing transaction against the store.

        with uow_factory() as uow:
            uow.books.decrement_available(book_id)
            uow.borrowings.add(borrowing)

    Leaving the block normally commits. Any exception (including an aborted
    request) rolls everything back; SQLAlchemy errors come out as StorageFailure.
    """

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or _default_session
        self.session = None

    def __enter__(self):
        self.session = self._session_factory()
        self.books = BookRepo(self.session)
        self.borrowers = BorrowerRepo(self.session)
        self.borrowings = BorrowingRepo(self.session)
        self.users = UserRepo(self.session)
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.rollback()
            if isinstance(exc, SQLAlchemyError):
                self._log_failure(exc)
                raise StorageFailure("Storage operation failed, please retry") from exc
            return False

        try:
            self.commit()
        except SQLAlchemyError as e:
            self.rollback()
            self._log_failure(e)
            raise StorageFailure("Storage operation failed, please retry") from e
        return False

    def flush(self):
        self.session.flush()

    def refresh(self, instance):
        self.session.refresh(instance)

    def commit(self):
        self.session.commit()

    def rollback(self):
        if self.session is not None:
            self.session.rollback()

    @staticmethod
    def _log_failure(exc):
        if has_app_context():
            current_app.logger.error(f"[uow] transaction rolled back: {exc}")
