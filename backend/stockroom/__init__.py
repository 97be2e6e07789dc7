# backend/stockroom/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate
from .responses import error_response


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.products import products_bp
    from .routes.references import categories_bp, brands_bp, firms_bp
    from .routes.purchases import purchases_bp
    from .routes.sells import sells_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(brands_bp)
    app.register_blueprint(firms_bp)
    app.register_blueprint(purchases_bp)
    app.register_blueprint(sells_bp)
    app.register_blueprint(reports_bp)

    @app.errorhandler(404)
    def not_found(_exc):
        return error_response("Resource not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(_exc):
        return error_response("Method not allowed", 405)

    @app.errorhandler(500)
    def internal_error(_exc):
        return error_response("Internal server error", 500)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config.get("CORS_ORIGINS", set()):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
