# jwtauthapi

An HTTP API for signing users up and in with JSON Web Tokens. Users are
stored in MongoDB; refresh tokens are kept in Redis under a session id that
the client carries in a `session_id` cookie. The application is built with
Flask.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Configuration

Settings are read by `jwtauthapi.config.load_config(path)` from a file named
`app.env` in the given directory; a missing file raises `FileNotFoundError`.
Environment variables with the same names take precedence over the file.

```
MONGODB_LOCAL_URI=mongodb://localhost:27017
REDIS_URL=localhost:6379
PORT=8000
ACCESS_JWT_SECRET=secret
ACCESS_JWT_EXPIRED_IN=15m
ACCESS_JWT_MAXAGE=15
REFRESH_JWT_SECRET=secret
REFRESH_JWT_EXPIRED_IN=60m
REFRESH_JWT_MAXAGE=60
CLIENT_ORIGIN=http://localhost:3000
```

Token lifetimes (`*_EXPIRED_IN`) are durations such as `90s`, `15m` or
`1h30m`, parsed by `jwtauthapi.config.parse_duration`. The `*_MAXAGE`
values are whole numbers: cookie lifetimes in minutes, and for
`REFRESH_JWT_MAXAGE` also the lifetime in hours of a session rotated by
`/api/refresh`.

## Running the server

From the directory holding `app.env`:

```
jwtauthapi
```

or point at another directory:

```
jwtauthapi --config-dir /path/to/settings
```

The command pings MongoDB, uses the database `jwt_auth_api` and its
collection `users`, connects to Redis at `REDIS_URL` (`host:port`), and
serves the API on `0.0.0.0` at the configured port.

## Endpoints

All routes live under `/api`.

| Method | Path                 | Access                               | Purpose                                 |
|--------|----------------------|--------------------------------------|-----------------------------------------|
| POST   | `/api/sign-up`       | public                               | Create a user                           |
| POST   | `/api/sign-in`       | public                               | Issue access and refresh tokens         |
| GET    | `/api/logout`        | valid session                        | Drop the session and clear cookies      |
| POST   | `/api/refresh`       | valid session                        | Issue new tokens under a new session id |
| GET    | `/api/users/me`      | valid session                        | The signed-in user                      |
| GET    | `/api/users/`        | session with role admin or moderator | Paged user list (`page`, `limit`)       |
| GET    | `/api/healthchecker` | public                               | Liveness check                          |

Any other path (or a wrong method) answers `404` with
`{"status": "fail", "message": "Path: ... does not exists on this server"}`.

A valid session means a `session_id` cookie whose stored refresh token
verifies against `REFRESH_JWT_SECRET` and names an existing user; otherwise
the request is refused with `401` (or `403` if the user no longer exists).

Sign-up body:

```json
{
  "name": "Jane",
  "email": "jane@example.com",
  "password": "password",
  "password_confirm": "password"
}
```

Names must be 2 to 50 characters, passwords 8 to 100, and the e-mail must
be a valid address. Failed checks return `400` with a list of
`{"field", "tag", "value"}` entries, one per failing field. Passwords are
stored as bcrypt hashes and e-mail addresses in lower case.

Sign-in body:

```json
{"email": "jane@example.com", "password": "password"}
```

A successful sign-in sets the `access_token` and `session_id` cookies and
returns both tokens in the response body. Signing in again with a known
`session_id` cookie keeps that session's refresh token.

Cross-origin requests are allowed from `http://localhost:3000` with
credentials, for the methods `GET` and `POST`.

## Using it as a library

`jwtauthapi.app.create_app(config, cache, users)` builds the Flask
application from a `Config`, a `jwtauthapi.cache.RedisCache` and a MongoDB
collection, so the server can be embedded or tested without the command.
`jwtauthapi.cache.connect_redis(addr)` creates a cache for a Redis server.

Other pieces:

- `jwtauthapi.tokens`: `generate_token(ttl, user_id, private_key)` signs an
  HS256 token; `decode_token(token, secret)` verifies one and returns its
  claims.
- `jwtauthapi.passwords`: `hash_password` and `compare_hash_and_password`
  (the latter raises `ValueError` on a mismatch).
- `jwtauthapi.validation.validate_struct(payload)` checks a payload
  dataclass against its field rules and returns a list of `ErrorResponse`.
- `jwtauthapi.services.AuthService` and
  `jwtauthapi.repository.AuthRepository` hold the sign-up and sign-in logic
  and user storage.

## Not included

The server does not publish API documentation (no OpenAPI or Swagger
endpoint); the table above is the reference for its routes.