from library_api.models.book import Book
from library_api.models.borrower import Borrower
from library_api.models.borrowing import Borrowing
from library_api.models.user import User

__all__ = ["Book", "Borrower", "Borrowing", "User"]
