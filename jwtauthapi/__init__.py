"""JWT authentication and authorization API with MongoDB users and Redis sessions."""

__version__ = "1.0.0"