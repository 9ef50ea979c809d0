from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import cors, init_database


def register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"success": False, "error": e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        app.logger.exception("Unhandled error")
        return jsonify({"success": False, "error": "Something went wrong. Please try again."}), 500


def create_app(config_class: type[Config] = Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Extensions
    cors.init_app(app, resources={r"/api/*": {"origins": "*"}})
    init_database(app)

    register_error_handlers(app)

    # Blueprints
    from .routes.pages import bp as pages_bp
    from .routes.public_api import bp as public_api
    from .routes.admin_api import bp as admin_api

    app.register_blueprint(pages_bp)
    app.register_blueprint(public_api, url_prefix="/api")
    app.register_blueprint(admin_api, url_prefix="/api/admin")

    return app
