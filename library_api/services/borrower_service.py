# library_api/services/borrower_service.py
from flask import current_app

from library_api.errors import AvailabilityDrift, Conflict, NotFound
from library_api.models.borrower import Borrower
from library_api.unit_of_work import SqlAlchemyUnitOfWork
from library_api.utils.serializers import borrower_to_dict
from library_api.utils.timeutil import utcnow


class BorrowerService:
    def __init__(self, uow_factory=SqlAlchemyUnitOfWork):
        self._uow_factory = uow_factory

    def list_borrowers(self):
        with self._uow_factory() as uow:
            return [borrower_to_dict(b) for b in uow.borrowers.list_all()]

    def get_borrower(self, borrower_id: int):
        with self._uow_factory() as uow:
            return borrower_to_dict(self._get_or_404(uow, borrower_id))

    def register_borrower(self, data: dict):
        with self._uow_factory() as uow:
            if uow.borrowers.get_by_email(data["email"]):
                raise Conflict(Conflict.DUPLICATE_EMAIL)

            borrower = uow.borrowers.add(Borrower(name=data["name"], email=data["email"]))
            result = borrower_to_dict(borrower)

        current_app.logger.info(f"[borrowers] registered id={result['id']}")
        return result

    def update_borrower(self, borrower_id: int, data: dict):
        with self._uow_factory() as uow:
            borrower = self._get_or_404(uow, borrower_id)

            if "email" in data:
                other = uow.borrowers.get_by_email(data["email"])
                if other and other.id != borrower.id:
                    raise Conflict(Conflict.DUPLICATE_EMAIL)

            for k in ["name", "email"]:
                if k in data:
                    setattr(borrower, k, data[k])

            uow.flush()
            return borrower_to_dict(borrower)

    def delete_borrower(self, borrower_id: int, force: bool = False):
        with self._uow_factory() as uow:
            borrower = self._get_or_404(uow, borrower_id)

            # checkouts lock the borrower too, so none can land between the guard and the delete
            if not uow.borrowers.lock(borrower_id):
                raise NotFound("Borrower", borrower_id)

            open_rows = uow.borrowings.list_open(borrower_id=borrower_id)
            if open_rows and not force:
                raise Conflict(
                    Conflict.HAS_ACTIVE_BORROWINGS,
                    f"Borrower has {len(open_rows)} active borrowing(s); return them first",
                )

            # open borrowings disappear with the borrower, so their copies count as available again
            now = utcnow()
            for x in open_rows:
                if not uow.borrowings.mark_returned(x.id, now):
                    continue
                if not uow.books.increment_available(x.book_id):
                    raise AvailabilityDrift(x.book_id)

            uow.borrowers.delete(borrower)

        if force:
            current_app.logger.warning(
                f"[borrowers] borrower force-deleted id={borrower_id} open_borrowings={len(open_rows)}"
            )
        else:
            current_app.logger.info(f"[borrowers] borrower deleted id={borrower_id}")

    def force_delete_borrower(self, borrower_id: int):
        self.delete_borrower(borrower_id, force=True)

    @staticmethod
    def _get_or_404(uow, borrower_id: int):
        borrower = uow.borrowers.get(borrower_id)
        if not borrower:
            raise NotFound("Borrower", borrower_id)
        return borrower
