"""The web application: routes, cross-origin headers and the server command."""

from __future__ import annotations

import argparse
from collections.abc import Callable
from typing import Any

from flask import Blueprint, Flask, jsonify, request
from pymongo import MongoClient

from .cache import RedisCache, connect_redis
from .config import Config, load_config
from .controllers import AuthController
from .middleware import allowed_roles, deserialize_user
from .repository import AuthRepository
from .services import AuthService

ALLOW_ORIGINS = "http://localhost:3000"
ALLOW_HEADERS = "Origin, Content-Type, Accept"
ALLOW_METHODS = "GET, POST"
DATABASE_NAME = "jwt_auth_api"
COLLECTION_NAME = "users"
HEALTH_MESSAGE = "JSON Web Token Authentication and Authorization"


def setup_routes(
    blueprint: Blueprint,
    controller: AuthController,
    authenticate: Callable[[Callable[..., Any]], Callable[..., Any]],
) -> None:
    """Attach the auth and user endpoints to *blueprint*."""
    blueprint.add_url_rule("/sign-up", "sign_up", controller.sign_up_user, methods=["POST"])
    blueprint.add_url_rule("/sign-in", "sign_in", controller.sign_in_user, methods=["POST"])
    blueprint.add_url_rule(
        "/logout", "logout", authenticate(controller.log_out_user), methods=["GET"]
    )
    blueprint.add_url_rule(
        "/refresh", "refresh", authenticate(controller.refresh_token), methods=["POST"]
    )
    blueprint.add_url_rule(
        "/users/me", "get_me", authenticate(controller.get_me_handler), methods=["GET"]
    )
    blueprint.add_url_rule(
        "/users/",
        "get_users",
        authenticate(allowed_roles(["admin", "moderator"])(controller.get_users_handler)),
        methods=["GET"],
    )


def _healthchecker() -> Any:
    return jsonify({"status": "success", "message": HEALTH_MESSAGE}), 200


def _not_found(_error: Exception) -> Any:
    return (
        jsonify(
            {
                "status": "fail",
                "message": f"Path: {request.path} does not exists on this server",
            }
        ),
        404,
    )


def _preflight() -> Any:
    if request.method == "OPTIONS" and "Access-Control-Request-Method" in request.headers:
        response = jsonify({})
        response.status_code = 204
        response.set_data(b"")
        if request.headers.get("Origin") == ALLOW_ORIGINS:
            response.headers["Access-Control-Allow-Methods"] = ALLOW_METHODS
            response.headers["Access-Control-Allow-Headers"] = ALLOW_HEADERS
        return response
    return None


def _cors(response: Any) -> Any:
    response.headers.add("Vary", "Origin")
    if request.headers.get("Origin") == ALLOW_ORIGINS:
        response.headers["Access-Control-Allow-Origin"] = ALLOW_ORIGINS
        response.headers["Access-Control-Allow-Credentials"] = "true"
    return response


def create_app(config: Config, cache: RedisCache, users: Any) -> Flask:
    """Build the application over a session cache and a user collection."""
    app = Flask(__name__)

    repo = AuthRepository(users)
    service = AuthService(repo, cache, config)
    controller = AuthController(service, cache, users, config)

    api = Blueprint("api", __name__, url_prefix="/api")
    setup_routes(api, controller, deserialize_user(cache, users, config))
    api.add_url_rule("/healthchecker", "healthchecker", _healthchecker, methods=["GET"])
    app.register_blueprint(api)

    app.before_request(_preflight)
    app.after_request(_cors)
    app.register_error_handler(404, _not_found)
    app.register_error_handler(405, _not_found)
    return app


def main(argv: list[str] | None = None) -> int:
    """Load settings, connect to MongoDB and Redis, and serve the API."""
    parser = argparse.ArgumentParser(
        prog="jwtauthapi", description="JWT authentication and authorization API server."
    )
    parser.add_argument(
        "--config-dir", default=".", help="directory holding app.env (default: current)"
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config_dir)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Could not load config: {exc}") from exc

    client: MongoClient = MongoClient(config.db_uri)
    try:
        client.admin.command("ping")
        print("Connected to MongoDB successfully")
        users = client[DATABASE_NAME][COLLECTION_NAME]
        cache = connect_redis(config.redis_uri)
        app = create_app(config, cache, users)
        app.run(host="0.0.0.0", port=int(config.port))
    finally:
        client.close()
    return 0