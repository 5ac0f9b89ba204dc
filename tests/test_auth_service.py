"""Unit tests for auth/store.py and auth/service.py.

Covers:
- UserStore.create_user() assigns an id and rejects duplicate usernames
- Concurrent sign-ups for one username: exactly one succeeds
- AuthService.sign_up() checks presence and the bcrypt byte limit before
  touching the store
- AuthService.sign_in() returns a verifiable token and hides user existence
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from auth.models import User
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import hash_password, verify_authorization, verify_password
from core.errors import AlreadyExistsError, FieldValidationError, InvalidCredentialsError, MissingFieldsError


class TestUserStore:
    def test_create_and_lookup(self, user_store: UserStore) -> None:
        created = user_store.create_user(User(name="A", username="alice", hashed_password=hash_password("p1")))
        assert created.id
        assert created.created_at

        by_name = user_store.get_by_username("alice")
        by_id = user_store.get_by_id(created.id)
        assert by_name == by_id
        assert by_name.name == "A"

    def test_lookup_missing(self, user_store: UserStore) -> None:
        assert user_store.get_by_username("ghost") is None
        assert user_store.get_by_id("0" * 32) is None

    def test_duplicate_username_rejected(self, user_store: UserStore) -> None:
        user_store.create_user(User(username="alice", hashed_password=hash_password("p1")))
        with pytest.raises(AlreadyExistsError):
            user_store.create_user(User(username="alice", hashed_password=hash_password("p2")))
        assert user_store.count_users("alice") == 1

    def test_username_is_case_sensitive(self, user_store: UserStore) -> None:
        user_store.create_user(User(username="alice", hashed_password="x"))
        user_store.create_user(User(username="Alice", hashed_password="x"))
        assert user_store.count_users() == 2


def test_concurrent_signups_single_winner(tmp_path) -> None:
    """Eight threads race to register one username; the UNIQUE constraint picks one."""
    store = UserStore(f"sqlite:///{tmp_path / 'race.db'}")
    service = AuthService(store)

    def attempt(i: int) -> str:
        try:
            service.sign_up(f"racer {i}", "racer", f"pw{i}")
            return "ok"
        except AlreadyExistsError:
            return "exists"

    try:
        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(attempt, range(8)))
        assert outcomes.count("ok") == 1
        assert outcomes.count("exists") == 7
        assert store.count_users("racer") == 1
    finally:
        store.close()


class TestSignUp:
    def test_sign_up_stores_hash_only(self, user_store: UserStore) -> None:
        service = AuthService(user_store)
        user = service.sign_up("A", "alice", "p1")
        stored = user_store.get_by_username("alice")
        assert stored.id == user.id
        assert stored.hashed_password != "p1"
        assert verify_password("p1", stored.hashed_password)

    @pytest.mark.parametrize(
        ("username", "password"),
        [(None, "p1"), ("alice", None), ("", "p1"), ("alice", "")],
    )
    def test_missing_fields_before_store(self, username, password) -> None:
        class ExplodingStore:
            def create_user(self, user):
                raise AssertionError("store must not be touched")

        with pytest.raises(MissingFieldsError):
            AuthService(ExplodingStore()).sign_up("A", username, password)

    def test_password_over_byte_limit_rejected(self, user_store: UserStore) -> None:
        service = AuthService(user_store)
        with pytest.raises(FieldValidationError):
            service.sign_up("A", "alice", "\u00e9" * 40)
        assert user_store.get_by_username("alice") is None

    def test_duplicate(self, user_store: UserStore) -> None:
        service = AuthService(user_store)
        service.sign_up("A", "alice", "p1")
        with pytest.raises(AlreadyExistsError) as exc_info:
            service.sign_up("B", "alice", "p2")
        assert "already exists" in exc_info.value.message


class TestSignIn:
    def test_token_identifies_user(self, user_store: UserStore) -> None:
        service = AuthService(user_store)
        user = service.sign_up("A", "alice", "p1")
        token = service.sign_in("alice", "p1")
        principal = verify_authorization(f"JWT {token}")
        assert principal.id == user.id
        assert principal.username == "alice"

    def test_wrong_password_and_unknown_user_look_the_same(self, user_store: UserStore) -> None:
        service = AuthService(user_store)
        service.sign_up("A", "alice", "p1")

        with pytest.raises(InvalidCredentialsError) as wrong_pw:
            service.sign_in("alice", "p2")
        with pytest.raises(InvalidCredentialsError) as unknown:
            service.sign_in("mallory", "p1")
        assert wrong_pw.value.message == unknown.value.message
        assert wrong_pw.value.status_code == unknown.value.status_code == 401
