from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity, verify_jwt_in_request

from library_api.registry import get_services
from library_api.utils import policy
from library_api.utils.validators import require_str, validate_email

auth_bp = Blueprint("auth", __name__)


@auth_bp.post("/register", endpoint="auth_register")
def register():
    data = request.get_json(silent=True) or {}

    username = require_str(data, "username", 80)
    email = validate_email(require_str(data, "email", 255))
    password = require_str(data, "password")

    # only an admin token may hand out a role other than member
    role = policy.MEMBER
    if data.get("role") and data.get("role") != policy.MEMBER:
        verify_jwt_in_request(optional=True)
        if not policy.get_policy().allows(policy.current_role(), policy.ADMINISTER):
            return policy.forbidden(policy.ADMINISTER)
        role = data["role"]

    user = get_services().auth.register(username=username, email=email, password=password, role=role)
    return jsonify({"success": True, "data": user}), 201


@auth_bp.post("/login", endpoint="auth_login")
def login():
    data = request.get_json(silent=True) or {}
    token, user = get_services().auth.login(
        (data.get("username") or "").strip(),
        (data.get("password") or "").strip()
    )
    return jsonify({"success": True, "access_token": token, "user": user})


@auth_bp.get("/me", endpoint="auth_me")
@jwt_required()
def me():
    user = get_services().auth.get_user(int(get_jwt_identity()))
    return jsonify({"success": True, "user": user})
