"""
auth/tokens.py -- JWT, password hashing, and Authorization header utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       user_id, username (as "sub"), and an expiry unless
       TOKEN_EXPIRE_SECONDS=0. Decoding returns None on any failure;
       verify_authorization() turns that into UnauthorizedError.

  Passwords: bcrypt with a per-record random salt. The cost factor comes from
       Settings.bcrypt_rounds. _DUMMY_HASH enables timing equalization in
       authenticate_user() so response time does not reveal whether a
       username exists.

  Authorization header: "<scheme> <token>" where scheme is JWT, Bearer,
       or the configured Settings.token_scheme (case-insensitive). Every
       failure mode (missing header, unknown scheme, malformed value, bad
       signature, expired token) collapses into one UnauthorizedError so
       callers cannot tell them apart.

Layer rule: no imports from api/ or catalog/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from auth.models import PASSWORD_MAX_BYTES, Principal
from core.config import get_settings
from core.errors import UnauthorizedError

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("cinereview.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

ACCEPTED_SCHEMES = frozenset({"jwt", "bearer"})

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt rejects input past PASSWORD_MAX_BYTES, so callers check
    password_within_limit() first. AuthService.sign_up does.
    """
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def password_within_limit(plain: str) -> bool:
    """Return True if the UTF-8 encoding of plain fits bcrypt's input limit."""
    return len(plain.encode("utf-8")) <= PASSWORD_MAX_BYTES


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    bcrypt.checkpw compares in constant time. A malformed stored hash raises
    ValueError inside bcrypt; that is a mismatch, not an error.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Timing equalization dummy hash.
# Computed once at module load so the first sign-in attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("cinereview_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: str, username: str, expire_seconds: int | None = None) -> str:
    """Encode a signed JWT with user identity and optional expiry.

    Args:
        user_id:        Opaque user ID assigned by the store.
        username:       Username stored as the JWT subject claim.
        expire_seconds: Token lifetime in seconds. None uses
                        Settings.token_expire_seconds. 0 omits the exp claim
                        so the token never expires.
    """
    duration = _settings.token_expire_seconds if expire_seconds is None else expire_seconds
    payload: dict = {
        "sub": username,
        "user_id": user_id,
    }
    if duration:
        payload["exp"] = datetime.now(timezone.utc) + timedelta(seconds=duration)
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and verify a JWT. Returns the payload dict or None on any failure.

    jose checks the signature and, when present, the exp claim.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if not payload.get("user_id") or not payload.get("sub"):
        return None
    return payload


def format_authorization(token: str) -> str:
    """Return the token as handed to clients: "<scheme> <jwt>"."""
    return f"{_settings.token_scheme} {token}"


def verify_authorization(header: str | None) -> Principal:
    """Validate an Authorization header and return the Principal it carries.

    Raises UnauthorizedError for every failure mode. Nothing is cached
    between calls and the store is not consulted -- the signature is the
    proof of identity.
    """
    if not header:
        raise UnauthorizedError()
    parts = header.split()
    schemes = ACCEPTED_SCHEMES | {_settings.token_scheme.lower()}
    if len(parts) != 2 or parts[0].lower() not in schemes:
        raise UnauthorizedError()
    payload = decode_access_token(parts[1])
    if payload is None:
        raise UnauthorizedError()
    return Principal(id=str(payload["user_id"]), username=str(payload["sub"]))


# ---------------------------------------------------------------------------
# User authentication (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, username: str, password: str) -> User | None:
    """Authenticate a username/password pair with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown username: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure.
    """
    user = store.get_by_username(username)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user
