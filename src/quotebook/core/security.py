"""Credential checking for the optional web page gate."""

from __future__ import annotations

import secrets
from dataclasses import dataclass

import bcrypt

# bcrypt only hashes the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class WebCredentials:
    """A single shared username and bcrypt password hash.

    The hash is computed once at startup so each request only pays for the
    bcrypt comparison.
    """

    username: str
    password_hash: bytes

    @classmethod
    def from_password(cls, username: str, password: str) -> WebCredentials:
        """Hash ``password`` and return credentials for ``username``.

        Raises:
            ValueError: If the password is longer than bcrypt can hash.
        """
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValueError(f"web password longer than {MAX_PASSWORD_BYTES} bytes")
        hashed = bcrypt.hashpw(encoded, bcrypt.gensalt())
        return cls(username=username, password_hash=hashed)

    @classmethod
    def parse(cls, web_auth: str | None) -> WebCredentials | None:
        """Build credentials from a ``user:password`` string.

        Returns:
            None when ``web_auth`` is empty or has no ``:`` separator.
        """
        if not web_auth:
            return None
        username, sep, password = web_auth.partition(":")
        if not sep:
            return None
        return cls.from_password(username, password)

    def verify(self, username: str, password: str) -> bool:
        """Return True if the supplied username and password match."""
        user_ok = secrets.compare_digest(
            username.encode("utf-8"), self.username.encode("utf-8")
        )
        try:
            password_ok = bcrypt.checkpw(password.encode("utf-8"), self.password_hash)
        except ValueError:
            return False
        return user_ok and password_ok
