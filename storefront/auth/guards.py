# storefront/auth/guards.py
from functools import wraps

from flask import current_app, g
from flask_login import current_user

from storefront.errors import Forbidden, Unauthorized
from storefront.extensions import login_manager
from storefront.services.tokens import ADMIN, USER, verify_token


def bearer_token(req) -> str | None:
    header = req.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


@login_manager.request_loader
def load_principal(req):
    """Turn ``Authorization: Bearer <jwt>`` into the current principal."""
    token = bearer_token(req)
    if token is None:
        return None
    try:
        return verify_token(token)
    except Unauthorized as e:
        g.auth_error = e.message
        current_app.logger.info("Rejected bearer token: %s", e.message)
        return None


def _principal_required(kind: str, forbidden_message: str):
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if not current_user.is_authenticated:
                raise Unauthorized(g.get("auth_error") or "No token provided")
            if current_user.kind != kind:
                raise Forbidden(forbidden_message)
            return view(*args, **kwargs)

        return wrapped

    return decorator


admin_required = _principal_required(ADMIN, "Admin privileges required")
user_required = _principal_required(USER, "Customer account required")
