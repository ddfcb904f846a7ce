# library_api/controllers/borrower_controller.py

from flask import Blueprint, request, jsonify

from library_api.registry import get_services
from library_api.utils import policy
from library_api.utils.policy import capability_required
from library_api.utils.validators import borrower_payload

borrower_bp = Blueprint("borrowers", __name__)


@borrower_bp.get("/borrowers")
@capability_required(policy.READ)
def list_borrowers():
    return jsonify({"success": True, "data": get_services().borrowers.list_borrowers()})


@borrower_bp.get("/borrowers/<int:borrower_id>")
@capability_required(policy.READ)
def get_borrower(borrower_id: int):
    return jsonify({"success": True, "data": get_services().borrowers.get_borrower(borrower_id)})


@borrower_bp.post("/borrowers")
@capability_required(policy.BORROWERS_WRITE)
def register_borrower():
    data = request.get_json(silent=True) or {}
    borrower = get_services().borrowers.register_borrower(borrower_payload(data))
    return jsonify({"success": True, "data": borrower}), 201


@borrower_bp.put("/borrowers/<int:borrower_id>")
@capability_required(policy.BORROWERS_WRITE)
def update_borrower(borrower_id: int):
    data = request.get_json(silent=True) or {}
    borrower = get_services().borrowers.update_borrower(
        borrower_id, borrower_payload(data, partial=True)
    )
    return jsonify({"success": True, "data": borrower})


@borrower_bp.delete("/borrowers/<int:borrower_id>")
@capability_required(policy.BORROWERS_WRITE)
def delete_borrower(borrower_id: int):
    if request.args.get("force") == "1":
        if not policy.get_policy().allows(policy.current_role(), policy.ADMINISTER):
            return policy.forbidden(policy.ADMINISTER)
        get_services().borrowers.force_delete_borrower(borrower_id)
    else:
        get_services().borrowers.delete_borrower(borrower_id)
    return "", 204


@borrower_bp.get("/borrowers/<int:borrower_id>/borrowings")
@capability_required(policy.READ)
def borrower_open_borrowings(borrower_id: int):
    rows = get_services().borrowings.get_borrower_open_borrowings(borrower_id)
    return jsonify({"success": True, "data": rows})
