from sqlalchemy import func, select, update

from library_api.models.borrower import Borrower
from library_api.models.borrowing import Borrowing


class BorrowerRepo:
    def __init__(self, session):
        self.session = session

    def get(self, borrower_id: int):
        return self.session.get(Borrower, borrower_id)

    def get_by_email(self, email: str):
        return self.session.execute(
            select(Borrower).where(func.lower(Borrower.email) == email.lower())
        ).scalar_one_or_none()

    def list_all(self):
        return self.session.execute(
            select(Borrower).order_by(Borrower.name, Borrower.id)
        ).scalars().all()

    def add(self, borrower: Borrower):
        self.session.add(borrower)
        self.session.flush()
        return borrower

    def delete(self, borrower: Borrower):
        self.session.delete(borrower)
        self.session.flush()

    def lock(self, borrower_id: int) -> bool:
        """Write-locks the borrower row until the unit of work ends. False if the borrower is gone."""
        result = self.session.execute(
            update(Borrower)
            .where(Borrower.id == borrower_id)
            .values(updated_at=Borrower.updated_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def count_open_borrowings(self, borrower_id: int) -> int:
        return self.session.execute(
            select(func.count(Borrowing.id)).where(
                Borrowing.borrower_id == borrower_id,
                Borrowing.return_date.is_(None),
            )
        ).scalar_one()
