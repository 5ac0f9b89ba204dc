"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in catalog/models.py -- dataclasses own domain shape; stores and services do
the work.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

from dataclasses import dataclass

# bcrypt reads at most 72 bytes of input; bcrypt>=5 raises past that.
PASSWORD_MAX_BYTES = 72


@dataclass
class User:
    """A registered account.

    id is None before the record is written; the store assigns an opaque hex
    string on insert. hashed_password is the bcrypt hash only -- the plaintext
    is never stored, and no response model carries this field.
    """

    username: str
    hashed_password: str
    name: str = ""
    id: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Principal:
    """The identity decoded from a verified token, valid for one request."""

    id: str
    username: str
