from flask import Flask
from flasgger import Swagger
from flask_cors import CORS
import logging

from .config import get_config
from .errors import register_error_handlers
from models import storage  # DBStorage singleton (scoped_session)
from utils.security import CredentialCodec

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "Vidshare API",
        "version": "1.0.0",
        "description": "REST API for users, videos, tweets, comments, likes, subscriptions and playlists.",
    },
    "basePath": "/",  # blueprints are mounted under /api/v1
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def create_app(config_name: str | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Cookies carry credentials, so CORS must allow them
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # One codec per app; views reach it through utils.security.get_codec()
    app.extensions["credential_codec"] = CredentialCodec.from_config(app.config)

    # Global error handlers that return the uniform envelope
    register_error_handlers(app)

    from .health import bp as health_bp
    from .session import bp as session_bp
    from .users import bp as users_bp
    from .videos import bp as videos_bp
    from .tweets import bp as tweets_bp
    from .comments import bp as comments_bp
    from .likes import bp as likes_bp
    from .subscriptions import bp as subscriptions_bp
    from .playlists import bp as playlists_bp
    from .dashboard import bp as dashboard_bp

    for blueprint in (
        health_bp,
        session_bp,
        users_bp,
        videos_bp,
        tweets_bp,
        comments_bp,
        likes_bp,
        subscriptions_bp,
        playlists_bp,
        dashboard_bp,
    ):
        # the registration prefix replaces the blueprint's own, so join them here
        app.register_blueprint(blueprint, url_prefix="/api/v1" + (blueprint.url_prefix or ""))

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Vidshare API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
