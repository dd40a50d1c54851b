# storefront/auth/user_routes.py
from flask import Blueprint, jsonify
from flask_login import current_user

from storefront.api.utils.payload import json_payload
from storefront.auth.guards import user_required
from storefront.errors import NotFound
from storefront.extensions import db
from storefront.models import User
from storefront.services.tokens import issue_user_token, register_user

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.post("/register")
def register():
    data = json_payload()
    register_user(data.get("fullName"), data.get("email"), data.get("password"))
    return jsonify({"message": "User registered successfully"}), 200


@users_bp.post("/login")
def login():
    data = json_payload()
    token, user = issue_user_token(data.get("email"), data.get("password"))
    return jsonify({"token": token, "user": user.to_public_dict()}), 200


@users_bp.get("/me")
@user_required
def me():
    user = db.session.get(User, current_user.id)
    if user is None:
        raise NotFound("User not found")
    return jsonify({"user": user.to_public_dict()}), 200
