# storefront/app.py
import logging
import os

from flask import Flask, jsonify, send_from_directory
from sqlalchemy import event
from sqlalchemy.engine import Engine

from storefront.config import BASE_DIR, Config

# Show INFO logs even outside the werkzeug access log
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Extensions
from storefront.extensions import db, login_manager, bcrypt, migrate, cors, init_mail
from storefront.errors import register_error_handlers

# Blueprints
from storefront.auth import admin_auth_bp, users_bp
from storefront.api.routes.product_routes import api_products
from storefront.api.routes.order_routes import order_bp
from storefront.cli import register_commands
from storefront import models as _models  # noqa: F401


@event.listens_for(Engine, "connect")
def _sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless asked per connection
    if dbapi_connection.__class__.__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.json.ensure_ascii = False

    # Init extensions
    db.init_app(app)
    migrate.init_app(app, db, directory=os.path.join(BASE_DIR, "migrations"))
    login_manager.init_app(app)
    login_manager.session_protection = None
    bcrypt.init_app(app)
    init_mail(app)

    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}},
        methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

    register_error_handlers(app)
    register_commands(app)

    # Register blueprints
    app.register_blueprint(api_products)
    app.register_blueprint(order_bp)
    app.register_blueprint(admin_auth_bp)
    app.register_blueprint(users_bp)

    @app.get("/uploads/<path:filename>")
    def uploaded_file(filename):
        return send_from_directory(app.config["UPLOAD_FOLDER"], filename)

    @app.get("/api/health")
    def health():
        return jsonify({"status": "ok"}), 200

    app.logger.info(
        "Storefront ready: db=%s uploads=%s",
        app.config["SQLALCHEMY_DATABASE_URI"].split(":", 1)[0],
        app.config["UPLOAD_FOLDER"],
    )
    return app
