# library_api/controllers/borrowing_controller.py

from flask import Blueprint, current_app, request, jsonify

from library_api.registry import get_services
from library_api.utils import policy
from library_api.utils.policy import capability_required
from library_api.utils.validators import checkout_payload, parse_id, parse_int

borrowing_bp = Blueprint("borrowings", __name__)


@borrowing_bp.post("/borrowings")
@capability_required(policy.CIRCULATION)
def checkout_book():
    data = request.get_json(silent=True) or {}
    payload = checkout_payload(data)
    borrowing = get_services().borrowings.checkout(**payload)
    return jsonify({"success": True, "data": borrowing}), 201


@borrowing_bp.put("/borrowings/<int:borrowing_id>/return")
@capability_required(policy.CIRCULATION)
def return_book(borrowing_id: int):
    borrowing = get_services().borrowings.return_book(borrowing_id)
    return jsonify({"success": True, "data": borrowing})


@borrowing_bp.get("/borrowings")
@capability_required(policy.READ)
def all_borrowings():
    args = request.args
    status = (args.get("status") or "").strip().lower() or None
    book_id = parse_id(args["book_id"], "book_id") if args.get("book_id") else None
    borrower_id = parse_id(args["borrower_id"], "borrower_id") if args.get("borrower_id") else None

    rows = get_services().borrowings.get_all_borrowings(
        status=status, book_id=book_id, borrower_id=borrower_id
    )
    return jsonify({"success": True, "data": rows})


@borrowing_bp.get("/borrowings/overdue")
@capability_required(policy.READ)
def overdue_borrowings():
    page = parse_int(request.args.get("page"), "page", minimum=1, default=1)
    limit = parse_int(
        request.args.get("limit"), "limit", minimum=1,
        default=current_app.config.get("DEFAULT_PAGE_SIZE", 20),
    )
    result = get_services().borrowings.get_overdue(page=page, limit=limit)
    return jsonify({"success": True, **result})


@borrowing_bp.get("/borrowings/<int:borrowing_id>")
@capability_required(policy.READ)
def get_borrowing(borrowing_id: int):
    return jsonify({"success": True, "data": get_services().borrowings.get_borrowing(borrowing_id)})
