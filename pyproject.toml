[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "jwtauthapi"
version = "1.0.0"
description = "JSON Web Token authentication and authorization API backed by MongoDB and Redis sessions"
requires-python = ">=3.10"
keywords = ["jwt", "authentication", "authorization", "session", "flask", "redis", "mongodb"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Session",
    "Topic :: Security",
]
dependencies = [
    "flask",
    "pymongo",
    "redis",
    "pyjwt",
    "bcrypt",
    "python-dotenv",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
jwtauthapi = "jwtauthapi.app:main"

[tool.hatch.build.targets.wheel]
packages = ["jwtauthapi"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
