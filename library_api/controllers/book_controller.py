# library_api/controllers/book_controller.py

from flask import Blueprint, request, jsonify

from library_api.registry import get_services
from library_api.utils import policy
from library_api.utils.policy import capability_required
from library_api.utils.validators import book_payload

book_bp = Blueprint("books", __name__)


@book_bp.get("/books")
def list_books():
    search = (request.args.get("search") or "").strip() or None
    return jsonify({"success": True, "data": get_services().catalog.list_books(search)})


@book_bp.get("/books/<int:book_id>")
def get_book(book_id: int):
    return jsonify({"success": True, "data": get_services().catalog.get_book(book_id)})


@book_bp.post("/books")
@capability_required(policy.CATALOG_WRITE)
def create_book():
    data = request.get_json(silent=True) or {}
    book = get_services().catalog.add_book(book_payload(data))
    return jsonify({"success": True, "data": book}), 201


@book_bp.put("/books/<int:book_id>")
@capability_required(policy.CATALOG_WRITE)
def update_book(book_id: int):
    data = request.get_json(silent=True) or {}
    book = get_services().catalog.update_book(book_id, book_payload(data, partial=True))
    return jsonify({"success": True, "data": book})


@book_bp.delete("/books/<int:book_id>")
@capability_required(policy.CATALOG_WRITE)
def delete_book(book_id: int):
    if request.args.get("force") == "1":
        # cascades into borrowing history
        if not policy.get_policy().allows(policy.current_role(), policy.ADMINISTER):
            return policy.forbidden(policy.ADMINISTER)
        get_services().catalog.force_delete_book(book_id)
    else:
        get_services().catalog.delete_book(book_id)
    return "", 204


@book_bp.get("/books/audit")
@capability_required(policy.ADMINISTER)
def audit_books():
    return jsonify({"success": True, "data": get_services().catalog.audit_availability()})


@book_bp.post("/books/reconcile")
@capability_required(policy.ADMINISTER)
def reconcile_books():
    fixed = get_services().catalog.reconcile_availability()
    return jsonify({"success": True, "data": fixed})
