"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, near-zero logic). Stores and
services do the work; these classes only own the domain shape.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A credential record as persisted by UserStore.

    hashed_password is a bcrypt artifact ($2b$<cost>$<salt+digest>). The salt
    lives inside the artifact, so there is no separate salt column. The
    plaintext password never reaches this class.

    email is required but not unique -- username is the login identifier.
    """

    username: str
    email: str
    hashed_password: str
    firstname: str | None = None
    lastname: str | None = None
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class PublicUser:
    """Sanitized view of a User -- everything except the password hash.

    This is the only user shape that leaves the auth services.
    """

    id: int
    username: str
    email: str
    firstname: str | None = None
    lastname: str | None = None

    @classmethod
    def from_user(cls, user: User) -> PublicUser:
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            firstname=user.firstname,
            lastname=user.lastname,
        )


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful login: the raw signed JWT plus who it is for."""

    token: str
    expires_in: int
    user: PublicUser
