# storefront/auth/__init__.py
# guards first: the route modules import the decorators from it
from .guards import admin_required, user_required, load_principal  # noqa: F401
from .login_routes import admin_auth_bp
from .user_routes import users_bp

__all__ = ["admin_required", "user_required", "admin_auth_bp", "users_bp"]
