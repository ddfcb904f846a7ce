# library_api/utils/validators.py
"""Request payload parsing. Everything here raises ValidationFailure (HTTP 400)."""
import re
from datetime import date, datetime, time

from library_api.errors import ValidationFailure
from library_api.utils.timeutil import to_naive_utc

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_str(data: dict, key: str, max_len: int | None = None) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailure(f"{key} is required")
    value = value.strip()
    if max_len and len(value) > max_len:
        raise ValidationFailure(f"{key} must be at most {max_len} characters")
    return value


def optional_str(data: dict, key: str, max_len: int | None = None):
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationFailure(f"{key} must be a string")
    value = value.strip()
    if max_len and len(value) > max_len:
        raise ValidationFailure(f"{key} must be at most {max_len} characters")
    return value or None


def parse_int(value, name: str, minimum: int | None = None, default=None) -> int:
    if value is None or value == "":
        if default is not None:
            return default
        raise ValidationFailure(f"{name} is required")
    # JSON true/false would otherwise pass as 1/0
    if isinstance(value, bool):
        raise ValidationFailure(f"{name} must be an integer")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationFailure(f"{name} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationFailure(f"{name} must be an integer")
    if minimum is not None and number < minimum:
        raise ValidationFailure(f"{name} must be >= {minimum}")
    return number


def parse_id(value, name: str) -> int:
    return parse_int(value, name, minimum=1)


def parse_datetime(value, name: str, end_of_day: bool = False) -> datetime:
    """
    ISO-8601 date or datetime. Aware values are converted to naive UTC.
    A bare date means midnight, or the last instant of that day with end_of_day.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailure(f"{name} must be an ISO-8601 date")
    value = value.strip()
    try:
        if _DATE_ONLY.match(value):
            d = date.fromisoformat(value)
            return datetime.combine(d, time.max if end_of_day else time.min)
        return to_naive_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        raise ValidationFailure(f"{name} must be an ISO-8601 date")


def parse_date_range(args) -> tuple[datetime, datetime]:
    from_date = parse_datetime(args.get("from"), "from")
    to_date = parse_datetime(args.get("to"), "to", end_of_day=True)
    return from_date, to_date


def validate_email(value: str) -> str:
    if not _EMAIL.match(value):
        raise ValidationFailure("email is not a valid address")
    return value.lower()


def book_payload(data: dict, partial: bool = False) -> dict:
    out = {}
    for key, max_len in [("title", 200), ("author", 200), ("isbn", 32)]:
        if not partial or key in data:
            out[key] = require_str(data, key, max_len)
    if not partial or "location" in data:
        out["location"] = optional_str(data, "location", 120)
    if "quantity" in data:
        out["quantity"] = parse_int(data.get("quantity"), "quantity", minimum=0)
    elif not partial:
        out["quantity"] = 1
    return out


def borrower_payload(data: dict, partial: bool = False) -> dict:
    out = {}
    if not partial or "name" in data:
        out["name"] = require_str(data, "name", 200)
    if not partial or "email" in data:
        out["email"] = validate_email(require_str(data, "email", 255))
    return out


def checkout_payload(data: dict) -> dict:
    due_date = data.get("due_date")
    return {
        "book_id": parse_id(data.get("book_id"), "book_id"),
        "borrower_id": parse_id(data.get("borrower_id"), "borrower_id"),
        "due_date": parse_datetime(due_date, "due_date") if due_date is not None else None,
    }
