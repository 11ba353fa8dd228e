import logging

from flask import Flask, jsonify
from orderdesk.extensions import db, jwt, ma, bcrypt, cors
from orderdesk.config import Config
from orderdesk.errors import register_error_handlers


def _register_jwt_callbacks():
    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({"error": f"Unauthorized: {reason}"}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({"error": f"Unauthorized: {reason}"}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({"error": "Session expired"}), 401


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # 1. Initialize extensions
    db.init_app(app)
    jwt.init_app(app)
    ma.init_app(app)
    bcrypt.init_app(app)
    _register_jwt_callbacks()

    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}},
        supports_credentials=True,
    )

    # 2. Errors and CLI
    register_error_handlers(app)

    from orderdesk.cli import register_commands

    register_commands(app)

    # 3. Register Blueprints
    from orderdesk.routes.shared.auth_routes import auth_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")

    from orderdesk.routes.admin import admin_group_bp

    app.register_blueprint(admin_group_bp, url_prefix="/api/admin")

    return app
