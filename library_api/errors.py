# library_api/errors.py


class LibraryError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self):
        return {"success": False, "error": self.code, "message": self.message}


class NotFound(LibraryError):
    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")

    def to_dict(self):
        data = super().to_dict()
        data["entity"] = self.entity
        return data


class Conflict(LibraryError):
    status_code = 409
    code = "conflict"

    BOOK_UNAVAILABLE = "BookUnavailable"
    ALREADY_RETURNED = "AlreadyReturned"
    HAS_ACTIVE_BORROWINGS = "HasActiveBorrowings"
    DUPLICATE_ISBN = "DuplicateIsbn"
    DUPLICATE_EMAIL = "DuplicateEmail"
    DUPLICATE_USER = "DuplicateUser"
    QUANTITY_BELOW_CHECKED_OUT = "QuantityBelowCheckedOut"

    MESSAGES = {
        BOOK_UNAVAILABLE: "Book not available for checkout",
        ALREADY_RETURNED: "Book has already been returned",
        HAS_ACTIVE_BORROWINGS: "Record has active borrowings",
        DUPLICATE_ISBN: "A book with this ISBN already exists",
        DUPLICATE_EMAIL: "A borrower with this email already exists",
        DUPLICATE_USER: "Username or email already registered",
        QUANTITY_BELOW_CHECKED_OUT: "Quantity cannot be lower than the number of copies checked out",
    }

    def __init__(self, reason: str, message: str | None = None):
        self.reason = reason
        super().__init__(message or self.MESSAGES.get(reason, reason))

    def to_dict(self):
        data = super().to_dict()
        data["reason"] = self.reason
        return data


class ValidationFailure(LibraryError):
    status_code = 400
    code = "validation_failure"


class StorageFailure(LibraryError):
    """Transaction aborted or store unreachable. Safe for the caller to retry."""

    status_code = 503
    code = "storage_failure"


class AvailabilityDrift(LibraryError):
    """A book's available counter no longer matches its open borrowings; the write is rolled back."""

    status_code = 500
    code = "availability_drift"

    def __init__(self, book_id: int):
        self.book_id = book_id
        super().__init__(
            f"Availability counter of book {book_id} is out of sync, run /api/v1/books/reconcile"
        )

    def to_dict(self):
        data = super().to_dict()
        data["book_id"] = self.book_id
        return data
