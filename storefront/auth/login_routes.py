# storefront/auth/login_routes.py
# Admin sign-in and the token-protected dashboard ping
from flask import Blueprint, jsonify
from flask_login import current_user

from storefront.api.utils.payload import json_payload
from storefront.auth.guards import admin_required
from storefront.services.tokens import issue_admin_token

admin_auth_bp = Blueprint("admin_auth", __name__, url_prefix="/api/admin")


@admin_auth_bp.post("/login")
def login():
    data = json_payload(allow_form=True)
    token = issue_admin_token(data.get("username"), data.get("password"))
    return jsonify({"token": token}), 200


@admin_auth_bp.get("/dashboard")
@admin_required
def dashboard():
    return jsonify({"message": f"Welcome Admin {current_user.username}!"}), 200
