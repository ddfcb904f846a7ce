from flask import current_app

from library_api.services.auth_service import AuthService
from library_api.services.borrower_service import BorrowerService
from library_api.services.borrowing_service import BorrowingService
from library_api.services.catalog_service import CatalogService
from library_api.services.report_service import ReportService
from library_api.unit_of_work import SqlAlchemyUnitOfWork
from library_api.utils.timeutil import utcnow


class Services:
    """The service instances one app works with, wired to the same store and clock."""

    def __init__(self, config, uow_factory=SqlAlchemyUnitOfWork, clock=utcnow):
        self.catalog = CatalogService(uow_factory)
        self.borrowers = BorrowerService(uow_factory)
        self.borrowings = BorrowingService(
            uow_factory,
            clock=clock,
            loan_days=config.get("LOAN_PERIOD_DAYS", 14),
            max_page_size=config.get("MAX_PAGE_SIZE", 100),
        )
        self.reports = ReportService(uow_factory, clock=clock)
        self.auth = AuthService(uow_factory)


def get_services() -> Services:
    return current_app.extensions["library_services"]
