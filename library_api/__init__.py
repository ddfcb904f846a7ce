import logging
from datetime import date, datetime

from flask import Flask, jsonify
from flask.json.provider import DefaultJSONProvider

from library_api.config import Config
from library_api.errors import LibraryError
from library_api.extensions import db, migrate, jwt


class LibraryJSONProvider(DefaultJSONProvider):
    @staticmethod
    def default(o):
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


def _register_error_handlers(app):
    @app.errorhandler(LibraryError)
    def handle_library_error(e):
        if e.status_code >= 500:
            app.logger.error(f"[api] {e.code}: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify({"success": False, "error": "not_found", "message": "Resource not found"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return jsonify({"success": False, "error": "method_not_allowed", "message": str(e)}), 405


def create_app(config_object=Config, services=None, policy=None):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.json = LibraryJSONProvider(app)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # 1) db first, everything else needs the engine/session
    db.init_app(app)

    # 2) other extensions
    migrate.init_app(app, db)
    jwt.init_app(app)

    # 3) models must be imported before create_all / migrations see them
    from library_api import models  # noqa: F401

    if app.config.get("AUTO_CREATE_TABLES"):
        with app.app_context():
            db.create_all()

    # 4) services and policy (injectable for tests)
    from library_api.registry import Services
    from library_api.utils.policy import Policy

    app.extensions["library_services"] = services or Services(app.config)
    app.extensions["library_policy"] = policy or Policy()

    # 5) API blueprints
    from library_api.controllers.auth_controller import auth_bp
    from library_api.controllers.book_controller import book_bp
    from library_api.controllers.borrower_controller import borrower_bp
    from library_api.controllers.borrowing_controller import borrowing_bp
    from library_api.controllers.report_controller import report_bp
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(book_bp, url_prefix="/api/v1")
    app.register_blueprint(borrower_bp, url_prefix="/api/v1")
    app.register_blueprint(borrowing_bp, url_prefix="/api/v1")
    app.register_blueprint(report_bp, url_prefix="/api/v1")

    _register_error_handlers(app)

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    return app
