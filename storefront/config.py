# storefront/config.py
import os
from dotenv import load_dotenv

BASE_DIR = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(BASE_DIR, ".env"))

INSTANCE_DIR = os.path.join(BASE_DIR, "instance")


def _env(key: str, default=None):
    v = os.getenv(key)
    return v if v not in (None, "", "None") else default


def _env_bool(key: str, default: bool = False) -> bool:
    v = os.getenv(key)
    if v in (None, "", "None"):
        return default
    return str(v).strip().lower() in ("1", "true", "t", "yes", "y", "on")


def _env_int(key: str, default: int) -> int:
    try:
        return int(_env(key, default))
    except (TypeError, ValueError):
        return default


def _env_list(key: str, default: list[str]) -> list[str]:
    v = _env(key)
    if v is None:
        return list(default)
    return [item.strip() for item in v.split(",") if item.strip()]


def _resolve_sqlite_uri(db_url: str | None) -> str:
    if not db_url:
        os.makedirs(INSTANCE_DIR, exist_ok=True)
        db_path = os.path.join(INSTANCE_DIR, "storefront.db")
        return "sqlite:///" + db_path.replace("\\", "/")

    if db_url.startswith("sqlite:///"):
        raw_path = db_url.replace("sqlite:///", "", 1)
        if not os.path.isabs(raw_path):
            raw_path = os.path.join(BASE_DIR, raw_path)
        db_path = os.path.normpath(raw_path)
        os.makedirs(os.path.dirname(db_path), exist_ok=True)
        return "sqlite:///" + db_path.replace("\\", "/")

    # mysql://… from hosting dashboards needs an explicit driver
    if db_url.startswith("mysql://"):
        return db_url.replace("mysql://", "mysql+pymysql://", 1)

    return db_url


class Config:
    SECRET_KEY = _env("SECRET_KEY", "dev-please-change-me")

    # Bearer tokens for admins and shoppers
    JWT_SECRET = _env("JWT_SECRET", SECRET_KEY)
    JWT_ALGORITHM = _env("JWT_ALGORITHM", "HS256")
    ADMIN_TOKEN_TTL = _env_int("ADMIN_TOKEN_TTL", 3600)
    USER_TOKEN_TTL = _env_int("USER_TOKEN_TTL", 7200)
    BCRYPT_LOG_ROUNDS = _env_int("BCRYPT_LOG_ROUNDS", 12)

    SQLALCHEMY_DATABASE_URI = _resolve_sqlite_uri(_env("DATABASE_URL"))
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    UPLOAD_FOLDER = _env("UPLOAD_FOLDER", os.path.join(BASE_DIR, "uploads"))
    UPLOAD_URL_PREFIX = "/uploads"
    MAX_IMAGE_SIZE = _env_int("MAX_IMAGE_SIZE", 10 * 1024 * 1024)
    MAX_IMAGES_PER_REQUEST = _env_int("MAX_IMAGES_PER_REQUEST", 10)
    # whole multipart body: ten images plus form fields
    MAX_CONTENT_LENGTH = _env_int("MAX_CONTENT_LENGTH", 110 * 1024 * 1024)

    CORS_ORIGINS = _env_list(
        "CORS_ORIGINS",
        ["http://localhost:5173", "https://ammar-group-web.vercel.app"],
    )

    MAIL_SERVER = _env("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = _env_int("MAIL_PORT", 465)
    MAIL_USE_SSL = _env_bool("MAIL_USE_SSL", True)
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", False)
    MAIL_USERNAME = _env("MAIL_USERNAME")
    MAIL_PASSWORD = _env("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = _env("MAIL_DEFAULT_SENDER", _env("MAIL_USERNAME"))
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND", False)
    MAIL_DEBUG = _env_bool("MAIL_DEBUG", False)
    MAIL_CHECK_DNS = _env_bool("MAIL_CHECK_DNS", True)

    # New orders go here; falls back to the mailbox we send from
    ORDER_NOTIFY_EMAIL = _env("ORDER_NOTIFY_EMAIL", _env("MAIL_USERNAME"))
    ORDER_CURRENCY_SYMBOL = _env("ORDER_CURRENCY_SYMBOL", "₹")
    STORE_NAME = _env("STORE_NAME", "Ammar Group")


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    JWT_SECRET = "test-jwt-secret-with-enough-bytes-0123456789"
    BCRYPT_LOG_ROUNDS = 4
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    MAIL_SERVER = "localhost"
    MAIL_SUPPRESS_SEND = True
    MAIL_CHECK_DNS = False
    MAIL_DEFAULT_SENDER = "shop@example.com"
    ORDER_NOTIFY_EMAIL = "owner@example.com"
