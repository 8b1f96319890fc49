import uuid
from datetime import timedelta
from types import SimpleNamespace

import pytest
from bson import ObjectId

from jwtauthapi.cache import REFRESH_PREFIX, CacheValue, RedisCache
from jwtauthapi.config import Config
from jwtauthapi.models import SignInInput, SignUpInput
from jwtauthapi.passwords import compare_hash_and_password
from jwtauthapi.repository import AuthRepository
from jwtauthapi.services import AuthService, InvalidCredentialsError
from jwtauthapi.tokens import decode_token


class FakeCollection:
    def __init__(self):
        self.documents = []

    def insert_one(self, document):
        stored = dict(document)
        stored.setdefault("_id", ObjectId())
        self.documents.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"])

    def find_one(self, query):
        for document in self.documents:
            if all(document.get(key) == value for key, value in query.items()):
                return dict(document)
        return None


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.expirations = {}

    def set(self, key, value, ex=None, px=None):
        self.store[key] = value.encode() if isinstance(value, str) else value
        self.expirations[key] = ex if ex is not None else px

    def get(self, key):
        return self.store.get(key)

    def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)


@pytest.fixture
def config():
    return Config(
        access_jwt_secret="placeholder",
        refresh_jwt_secret="secret",
        access_jwt_expires_in=timedelta(minutes=15),
        refresh_jwt_expires_in=timedelta(hours=1),
    )


@pytest.fixture
def redis_client():
    return FakeRedis()


@pytest.fixture
def cache(redis_client):
    return RedisCache(redis_client)


@pytest.fixture
def collection():
    return FakeCollection()


@pytest.fixture
def service(collection, cache, config):
    return AuthService(AuthRepository(collection), cache, config)


@pytest.fixture
def registered(service):
    password = "password"
    return service.sign_up_user(
        SignUpInput(
            name="Alice",
            email="Alice@Example.com",
            password=password,
            password_confirm=password,
            photo="alice.png",
        )
    )


def sign_in(service, email="alice@example.com", session_id=""):
    password = "password"
    return service.sign_in_user(SignInInput(email=email, password=password), session_id)


def test_sign_up_lowercases_email_and_hashes(registered, collection):
    assert registered.email == "alice@example.com"
    assert registered.name == "Alice"
    assert registered.photo == "alice.png"
    assert registered.password != "password"
    compare_hash_and_password(registered.password, "password")
    assert collection.documents[0]["_id"] == registered.id


def test_sign_up_rejects_overlong_password(service):
    password = "password" * 10
    with pytest.raises(ValueError, match="error hashing password"):
        service.sign_up_user(
            SignUpInput(
                name="Bob",
                email="bob@example.com",
                password=password,
                password_confirm=password,
            )
        )


def test_sign_in_unknown_email(service, registered):
    with pytest.raises(InvalidCredentialsError, match="invalid email or password"):
        sign_in(service, email="nobody@example.com")


def test_sign_in_wrong_password(service, registered):
    password = "secret"
    with pytest.raises(InvalidCredentialsError, match="invalid email or password"):
        service.sign_in_user(SignInInput(email="alice@example.com", password=password))


def test_sign_in_opens_new_session(service, registered, cache, redis_client, config):
    tokens = sign_in(service)
    assert str(uuid.UUID(tokens.session_id)) == tokens.session_id
    stored = cache.get_refresh_token(tokens.session_id)
    assert stored == CacheValue(user_id=str(registered.id), refresh_token=tokens.refresh_token)
    key = REFRESH_PREFIX + tokens.session_id
    assert redis_client.expirations[key] == int(config.refresh_jwt_expires_in.total_seconds())
    assert decode_token(tokens.access_token, "placeholder")["sub"] == str(registered.id)
    assert decode_token(tokens.refresh_token, "secret")["sub"] == str(registered.id)


def test_sign_in_case_insensitive_email(service, registered):
    tokens = sign_in(service, email="ALICE@example.com")
    assert decode_token(tokens.access_token, "placeholder")["sub"] == str(registered.id)


def test_sign_in_reuses_existing_session(service, registered, cache):
    cache.save_refresh_token(
        "existing-session", CacheValue(user_id=str(registered.id), refresh_token="token"), None
    )
    tokens = sign_in(service, session_id="existing-session")
    assert tokens.session_id == "existing-session"
    assert tokens.refresh_token == "token"
    assert decode_token(tokens.access_token, "placeholder")["sub"] == str(registered.id)


def test_sign_in_with_unknown_session_opens_new_one(service, registered, cache):
    tokens = sign_in(service, session_id="stale-session")
    assert tokens.session_id != "stale-session"
    assert cache.get_refresh_token("stale-session") is None
    assert cache.get_refresh_token(tokens.session_id).refresh_token == tokens.refresh_token