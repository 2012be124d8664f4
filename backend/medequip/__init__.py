# backend/medequip/__init__.py
from __future__ import annotations

import os

from flask import Flask, current_app, request

from .config import Config
from .extensions import db, migrate
from .services.blob_store import StoreError

MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "migrations")

def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db, directory=MIGRATIONS_DIR)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.departments import departments_bp
    from .routes.categories import categories_bp
    from .routes.equipment import equipment_bp
    from .routes.usage import usage_bp
    from .routes.notifications import notifications_bp
    from .routes.stats import stats_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(departments_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(equipment_bp)
    app.register_blueprint(usage_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(stats_bp)

    @app.errorhandler(StoreError)
    def handle_store_error(exc):
        current_app.logger.exception("Equipment state store unavailable")
        return {"error": "Store unavailable"}, 503

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
