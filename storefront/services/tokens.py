# storefront/services/tokens.py
"""Bearer tokens for the two principal kinds: admins and shoppers."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app
from flask_login import UserMixin
from sqlalchemy.exc import IntegrityError

from storefront.errors import Conflict, Unauthorized, ValidationError
from storefront.extensions import bcrypt, db
from storefront.models import Admin, User

ADMIN = "admin"
USER = "user"

INVALID_ADMIN_LOGIN = "Invalid username or password"
INVALID_USER_LOGIN = "Invalid email or password"


class Principal(UserMixin):
    """Authenticated actor rebuilt from token claims, no DB lookup."""

    def __init__(self, kind: str, id: int, username: str | None = None, email: str | None = None):
        self.kind = kind
        self.id = id
        self.username = username
        self.email = email

    @classmethod
    def from_claims(cls, claims: dict) -> "Principal":
        return cls(
            kind=claims["kind"],
            id=int(claims["id"]),
            username=claims.get("username"),
            email=claims.get("email"),
        )

    @property
    def is_admin(self) -> bool:
        return self.kind == ADMIN

    def get_id(self):
        return f"{self.kind}:{self.id}"

    def __repr__(self):
        return f"<Principal {self.kind}:{self.id}>"


def _encode(claims: dict, ttl_seconds: int) -> str:
    cfg = current_app.config
    now = datetime.now(timezone.utc)
    payload = dict(claims, iat=now, exp=now + timedelta(seconds=ttl_seconds))
    return jwt.encode(payload, cfg["JWT_SECRET"], algorithm=cfg.get("JWT_ALGORITHM", "HS256"))


def verify_token(token: str | None, kind: str | None = None) -> Principal:
    if not token:
        raise Unauthorized("No token provided")
    cfg = current_app.config
    try:
        claims = jwt.decode(
            token,
            cfg["JWT_SECRET"],
            algorithms=[cfg.get("JWT_ALGORITHM", "HS256")],
            options={"require": ["exp", "id", "kind"]},
        )
        principal = Principal.from_claims(claims)
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except (jwt.InvalidTokenError, KeyError, TypeError, ValueError):
        raise Unauthorized("Invalid or expired token")

    if principal.kind not in (ADMIN, USER):
        raise Unauthorized("Invalid or expired token")
    if kind is not None and principal.kind != kind:
        raise Unauthorized("Invalid or expired token")
    return principal


# checked for unknown accounts so every failed login costs one bcrypt round
_dummy_hashes: dict[int, str] = {}


def _text(val) -> str | None:
    return val if isinstance(val, str) else None


def _burn_password_check(password: str) -> None:
    rounds = current_app.config.get("BCRYPT_LOG_ROUNDS", 12)
    if rounds not in _dummy_hashes:
        _dummy_hashes[rounds] = bcrypt.generate_password_hash("not-a-real-password").decode("utf-8")
    bcrypt.check_password_hash(_dummy_hashes[rounds], password)


def _password_matches(account, password: str) -> bool:
    if account is None:
        _burn_password_check(password)
        return False
    return account.check_password(password)


# --- Admins ---------------------------------------------------------------

def issue_admin_token(username, password) -> str:
    username = (_text(username) or "").strip()
    password = _text(password)
    if not username or password is None:
        raise Unauthorized(INVALID_ADMIN_LOGIN)

    admin = Admin.query.filter_by(username=username).first()

    # same answer, and the same bcrypt cost, for unknown user and wrong password
    if not _password_matches(admin, password):
        current_app.logger.info("Failed admin login for %r", username)
        raise Unauthorized(INVALID_ADMIN_LOGIN)

    return _encode(
        {"id": admin.id, "username": admin.username, "kind": ADMIN},
        current_app.config["ADMIN_TOKEN_TTL"],
    )


# --- Shoppers -------------------------------------------------------------

def _normalize_email(email) -> str:
    return (_text(email) or "").strip().lower()


def register_user(full_name, email, password) -> User:
    if not all(isinstance(v, str) for v in (full_name, email, password)):
        raise ValidationError("Full name, email and password are required")
    full_name = full_name.strip()
    email = _normalize_email(email)
    if not (full_name and email and password):
        raise ValidationError("Full name, email and password are required")
    if "@" not in email:
        raise ValidationError("Invalid email address")

    if User.query.filter_by(email=email).first():
        raise Conflict("Email already registered")

    user = User(full_name=full_name, email=email)
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # lost a race with a concurrent registration
        db.session.rollback()
        raise Conflict("Email already registered")
    return user


def issue_user_token(email, password) -> tuple[str, User]:
    email = _normalize_email(email)
    password = _text(password)
    if not email or password is None:
        raise Unauthorized(INVALID_USER_LOGIN)

    user = User.query.filter_by(email=email).first()
    if not _password_matches(user, password):
        raise Unauthorized(INVALID_USER_LOGIN)

    token = _encode(
        {"id": user.id, "email": user.email, "kind": USER},
        current_app.config["USER_TOKEN_TTL"],
    )
    return token, user
