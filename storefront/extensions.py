# storefront/extensions.py
from __future__ import annotations

import socket
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_bcrypt import Bcrypt
from flask_migrate import Migrate
from flask_cors import CORS
from flask_mail import Mail

# Keep extension instances in one place to avoid circular imports
db = SQLAlchemy()
login_manager = LoginManager()
bcrypt = Bcrypt()
migrate = Migrate()
cors = CORS()
mail = Mail()

FALLBACK_MAIL_SERVER = "smtp.gmail.com"


def _flag(v, default=False) -> bool:
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower() if v is not None else ""
    if not s:
        return default
    return s in ("1", "true", "t", "yes", "y", "on")


def _mail_host(server: str | None) -> str:
    """'smtps://mail.example.com/' -> 'mail.example.com'"""
    s = (server or "").strip()
    if "://" in s:
        s = s.split("://", 1)[1]
    return s.split("/", 1)[0]


def _resolves(app, host: str, port) -> None:
    try:
        infos = socket.getaddrinfo(host, port or 0, proto=socket.IPPROTO_TCP)
    except OSError as e:
        app.logger.error("Order mail will fail: cannot resolve MAIL_SERVER=%r (%s)", host, e)
        return
    if not any(i[4] for i in infos):
        app.logger.warning("MAIL_SERVER=%r resolved to no addresses", host)


def init_mail(app):
    """
    Normalize the MAIL_* settings order notifications depend on, then bind
    Flask-Mail. A hosting dashboard typically pastes a URL into MAIL_SERVER or
    enables SSL and TLS together; both would only surface as a failed order.
    """
    cfg = app.config

    host = _mail_host(cfg.get("MAIL_SERVER"))
    if not host:
        host = FALLBACK_MAIL_SERVER
        app.logger.warning("MAIL_SERVER not set, using %s", host)
    cfg["MAIL_SERVER"] = host

    use_ssl = _flag(cfg.get("MAIL_USE_SSL"))
    use_tls = _flag(cfg.get("MAIL_USE_TLS")) and not use_ssl
    cfg["MAIL_USE_SSL"], cfg["MAIL_USE_TLS"] = use_ssl, use_tls

    try:
        cfg["MAIL_PORT"] = int(cfg.get("MAIL_PORT"))
    except (TypeError, ValueError):
        cfg["MAIL_PORT"] = 465 if use_ssl else (587 if use_tls else 25)
        app.logger.info("MAIL_PORT invalid, using %s", cfg["MAIL_PORT"])

    cfg["MAIL_DEFAULT_SENDER"] = cfg.get("MAIL_DEFAULT_SENDER") or cfg.get("MAIL_USERNAME")
    if not cfg.get("ORDER_NOTIFY_EMAIL"):
        cfg["ORDER_NOTIFY_EMAIL"] = cfg["MAIL_DEFAULT_SENDER"]
        if not cfg["ORDER_NOTIFY_EMAIL"]:
            app.logger.warning("Neither ORDER_NOTIFY_EMAIL nor MAIL_USERNAME is set; orders cannot be delivered")

    if _flag(cfg.get("MAIL_CHECK_DNS"), True) and not cfg.get("MAIL_SUPPRESS_SEND"):
        _resolves(app, host, cfg["MAIL_PORT"])

    app.logger.info(
        "Mail: %s:%s ssl=%s tls=%s sender=%s orders->%s",
        host, cfg["MAIL_PORT"], use_ssl, use_tls,
        cfg.get("MAIL_DEFAULT_SENDER"), cfg.get("ORDER_NOTIFY_EMAIL"),
    )

    mail.init_app(app)
