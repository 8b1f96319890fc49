from datetime import timedelta
from types import SimpleNamespace

import pytest
from bson import ObjectId
from flask import Blueprint, Flask

from jwtauthapi.app import create_app, main, setup_routes
from jwtauthapi.cache import RedisCache
from jwtauthapi.config import Config
from jwtauthapi.passwords import hash_password

PASSWORD = "password"


class FakeRedis:
    def __init__(self):
        self.data = {}

    def set(self, key, value, ex=None, px=None):
        self.data[key] = value.encode("utf-8") if isinstance(value, str) else value

    def get(self, key):
        return self.data.get(key)

    def delete(self, *keys):
        for key in keys:
            self.data.pop(key, None)


class FakeCollection:
    def __init__(self):
        self.docs = []

    def insert_one(self, document):
        self.docs.append(dict(document))
        return SimpleNamespace(inserted_id=document["_id"])

    def find_one(self, query):
        for doc in self.docs:
            if all(doc.get(k) == v for k, v in query.items()):
                return dict(doc)
        return None

    def find(self, query, skip=0, limit=0):
        if skip < 0:
            raise ValueError("skip must be >= 0")
        docs = self.docs[skip:]
        return iter(docs[:limit] if limit else docs)


@pytest.fixture
def env():
    users = FakeCollection()
    config = Config(
        access_jwt_secret="secret",
        refresh_jwt_secret="secret",
        access_jwt_expires_in=timedelta(minutes=15),
        refresh_jwt_expires_in=timedelta(hours=1),
        access_jwt_max_age=15,
        refresh_jwt_max_age=60,
    )
    app = create_app(config, RedisCache(FakeRedis()), users)
    return SimpleNamespace(client=app.test_client(use_cookies=False), users=users)


def login_as(env, role):
    email = f"{role}@example.com"
    env.users.docs.append(
        {
            "_id": ObjectId(),
            "name": role,
            "email": email,
            "password": hash_password(PASSWORD),
            "role": role,
        }
    )
    response = env.client.post("/api/sign-in", json={"email": email, "password": PASSWORD})
    for header in response.headers.getlist("Set-Cookie"):
        if header.startswith("session_id="):
            return header.split(";", 1)[0].partition("=")[2]
    raise AssertionError("no session cookie")


def test_healthchecker(env):
    response = env.client.get("/api/healthchecker")
    assert response.status_code == 200
    assert response.get_json() == {
        "status": "success",
        "message": "JSON Web Token Authentication and Authorization",
    }


def test_unknown_path(env):
    response = env.client.get("/nowhere")
    assert response.status_code == 404
    assert response.get_json() == {
        "status": "fail",
        "message": "Path: /nowhere does not exists on this server",
    }


def test_wrong_method_falls_through_to_not_found(env):
    response = env.client.get("/api/sign-up")
    assert response.status_code == 404
    assert response.get_json()["status"] == "fail"


def test_users_list_allowed_for_admin(env):
    session_id = login_as(env, "admin")
    response = env.client.get("/api/users/", headers={"Cookie": f"session_id={session_id}"})
    assert response.status_code == 200
    body = response.get_json()
    assert body["results"] == 1
    assert body["users"][0]["role"] == "admin"


def test_users_list_forbidden_for_plain_user(env):
    session_id = login_as(env, "user")
    response = env.client.get("/api/users/", headers={"Cookie": f"session_id={session_id}"})
    assert response.status_code == 403
    assert response.get_json()["message"] == (
        "Access denied. You are not allowed to perform this action"
    )


def test_users_me_requires_session(env):
    response = env.client.get("/api/users/me")
    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid or expired session"


def test_cors_headers_for_allowed_origin(env):
    response = env.client.get(
        "/api/healthchecker", headers={"Origin": "http://localhost:3000"}
    )
    assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
    assert response.headers["Access-Control-Allow-Credentials"] == "true"


def test_cors_headers_absent_for_other_origin(env):
    response = env.client.get("/api/healthchecker", headers={"Origin": "http://example.com"})
    assert "Access-Control-Allow-Origin" not in response.headers


def test_preflight(env):
    response = env.client.open(
        "/api/sign-in",
        method="OPTIONS",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert response.status_code == 204
    assert response.headers["Access-Control-Allow-Methods"] == "GET, POST"


def test_setup_routes_registers_endpoints():
    calls = []

    def authenticate(view):
        calls.append(view)
        return view

    controller = SimpleNamespace(
        sign_up_user=lambda: "",
        sign_in_user=lambda: "",
        log_out_user=lambda: "",
        refresh_token=lambda: "",
        get_me_handler=lambda: "",
        get_users_handler=lambda: "",
    )
    blueprint = Blueprint("api", __name__, url_prefix="/api")
    setup_routes(blueprint, controller, authenticate)
    app = Flask(__name__)
    app.register_blueprint(blueprint)
    rules = {(r.rule, m) for r in app.url_map.iter_rules() for m in r.methods}
    assert ("/api/sign-up", "POST") in rules
    assert ("/api/sign-in", "POST") in rules
    assert ("/api/logout", "GET") in rules
    assert ("/api/refresh", "POST") in rules
    assert ("/api/users/me", "GET") in rules
    assert ("/api/users/", "GET") in rules
    assert len(calls) == 4


def test_main_without_config_exits(tmp_path):
    with pytest.raises(SystemExit) as info:
        main(["--config-dir", str(tmp_path)])
    assert "Could not load config" in str(info.value)