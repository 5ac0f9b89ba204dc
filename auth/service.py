"""
auth/service.py -- Sign-up and sign-in.

AuthService is constructed once at startup with the UserStore it uses and is
reached by route handlers through app.state. It holds no per-request state.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import logging

from auth.models import User
from auth.store import UserStore
from auth.tokens import authenticate_user, create_access_token, hash_password, password_within_limit
from core.errors import FieldValidationError, InvalidCredentialsError, MissingFieldsError

logger = logging.getLogger("cinereview.auth")


class AuthService:
    def __init__(self, store: UserStore) -> None:
        self.store = store

    def sign_up(self, name: str | None, username: str | None, password: str | None) -> User:
        """Register a new account.

        Presence and the bcrypt byte limit are checked before the store is
        touched. A duplicate username surfaces as AlreadyExistsError from UserStore.create_user().
        """
        if not username or not password:
            raise MissingFieldsError("Please include both username and password to signup.")
        if not password_within_limit(password):
            raise FieldValidationError("Password must be at most 72 bytes when UTF-8 encoded.")
        user = self.store.create_user(
            User(
                name=name or "",
                username=username,
                hashed_password=hash_password(password),
            )
        )
        logger.info("New user registered: %s", user.username)
        return user

    def sign_in(self, username: str | None, password: str | None) -> str:
        """Verify credentials and return a signed access token.

        Unknown username and wrong password raise the same
        InvalidCredentialsError so the response is no user-existence oracle.
        """
        if not username or not password:
            raise MissingFieldsError("Please include both username and password to signin.")
        user = authenticate_user(self.store, username, password)
        if user is None:
            logger.info("Failed sign-in for %s", username)
            raise InvalidCredentialsError()
        return create_access_token(user.id, user.username)
