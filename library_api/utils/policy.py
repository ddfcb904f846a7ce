# library_api/utils/policy.py
from functools import wraps

from flask import current_app, jsonify
from flask_jwt_extended import get_jwt, verify_jwt_in_request

ADMIN = "admin"
LIBRARIAN = "librarian"
MEMBER = "member"
ROLES = (ADMIN, LIBRARIAN, MEMBER)

CIRCULATION = "circulation"
CATALOG_WRITE = "catalog.write"
BORROWERS_WRITE = "borrowers.write"
READ = "read"
REPORTS = "reports"
ADMINISTER = "admin"

DEFAULT_GRANTS = {
    CIRCULATION: {ADMIN, LIBRARIAN},
    CATALOG_WRITE: {ADMIN, LIBRARIAN},
    BORROWERS_WRITE: {ADMIN, LIBRARIAN},
    READ: {ADMIN, LIBRARIAN, MEMBER},
    REPORTS: {ADMIN, LIBRARIAN},
    ADMINISTER: {ADMIN},
}


class Policy:
    """Which roles hold which capability. Consulted by the HTTP layer only."""

    def __init__(self, grants: dict | None = None):
        self.grants = {k: set(v) for k, v in (grants or DEFAULT_GRANTS).items()}

    def allows(self, role: str | None, capability: str) -> bool:
        return role in self.grants.get(capability, set())


def get_policy() -> Policy:
    return current_app.extensions["library_policy"]


def current_role():
    return (get_jwt() or {}).get("role")


def forbidden(capability: str):
    return jsonify({
        "success": False,
        "error": "forbidden",
        "message": f"Access denied, '{capability}' capability required",
    }), 403


def capability_required(capability: str):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if not get_policy().allows(current_role(), capability):
                return forbidden(capability)
            return fn(*args, **kwargs)
        return wrapper
    return decorator
