"""Persistence of user accounts in a MongoDB collection."""

from __future__ import annotations

from typing import Any

from .models import SignInInput, User

_NO_DOCUMENTS = "mongo: no documents in result"


class UserNotFoundError(LookupError):
    """No stored user matched the query."""

    def __init__(self, message: str = _NO_DOCUMENTS) -> None:
        super().__init__(message)


class AuthRepository:
    """Stores and looks up users in a collection."""

    def __init__(self, collection: Any) -> None:
        self.collection = collection

    def sign_up_user(self, user: User) -> User:
        """Insert *user* and return it as it was stored."""
        result = self.collection.insert_one(user.to_document())
        document = self.collection.find_one({"_id": result.inserted_id})
        if document is None:
            raise UserNotFoundError()
        return User.from_document(document)

    def sign_in_user(self, payload: SignInInput) -> User:
        """Return the user with the payload's e-mail, compared in lower case."""
        document = self.collection.find_one({"email": payload.email.lower()})
        if document is None:
            raise UserNotFoundError()
        return User.from_document(document)