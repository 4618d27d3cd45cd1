"""
Token signing and password hashing.

``TokenCodec`` signs and verifies the compact JWTs that carry an
``IdentityClaim``.  Access and refresh tokens use independent secrets and
lifetimes, so a leaked access secret cannot mint refresh tokens and the other
way around.

``PasswordHasher`` wraps bcrypt.  Verification recomputes the hash with the
stored salt and compares it with ``hmac.compare_digest``.
"""
import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import NamedTuple

import bcrypt
from jose import JWTError, jwt

from newsroom.errors import InvalidTokenError
from newsroom.models import Role

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

# bcrypt only reads the first 72 bytes of a password.
BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class IdentityClaim:
    """Who is acting on the current request."""

    id: int
    role: Role
    email: str

    @classmethod
    def from_user(cls, user) -> "IdentityClaim":
        return cls(id=user.id, role=Role(user.role), email=user.email)


class IssuedToken(NamedTuple):
    token: str
    cookie: str


def make_cookie(name: str, token: str, max_age: int) -> str:
    return f"{name}={token}; HttpOnly; Path=/; Max-Age={max_age}"


class TokenCodec:
    def __init__(
        self,
        access_secret: str,
        access_ttl: int,
        refresh_secret: str,
        refresh_ttl: int,
        algorithm: str = "HS256",
    ) -> None:
        self.access_secret = access_secret
        self.access_ttl = access_ttl
        self.refresh_secret = refresh_secret
        self.refresh_ttl = refresh_ttl
        self.algorithm = algorithm

    # ------------------------------------------------------------------
    # Primitive sign / verify
    # ------------------------------------------------------------------

    def encode(self, claim: IdentityClaim, secret: str, ttl_seconds: int) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "id": claim.id,
            "role": claim.role.value,
            "email": claim.email,
            "iat": now,
            "exp": now + timedelta(seconds=ttl_seconds),
        }
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def decode(self, token: str, secret: str) -> IdentityClaim:
        """
        Verify *token* against *secret* and return its claim.

        Raises ``InvalidTokenError`` for a bad signature, an expired token,
        a malformed token or a payload that is not an identity claim.
        """
        try:
            payload = jwt.decode(token, secret, algorithms=[self.algorithm])
        except JWTError as exc:
            raise InvalidTokenError(f"Invalid token: {exc}") from exc

        try:
            return IdentityClaim(
                id=int(payload["id"]),
                role=Role(payload["role"]),
                email=str(payload["email"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidTokenError("Invalid token payload") from exc

    # ------------------------------------------------------------------
    # Access / refresh helpers
    # ------------------------------------------------------------------

    def issue_access(self, claim: IdentityClaim) -> IssuedToken:
        token = self.encode(claim, self.access_secret, self.access_ttl)
        return IssuedToken(token, make_cookie(ACCESS_COOKIE, token, self.access_ttl))

    def issue_refresh(self, claim: IdentityClaim) -> IssuedToken:
        token = self.encode(claim, self.refresh_secret, self.refresh_ttl)
        return IssuedToken(token, make_cookie(REFRESH_COOKIE, token, self.refresh_ttl))

    def verify_access(self, token: str) -> IdentityClaim:
        return self.decode(token, self.access_secret)

    def verify_refresh(self, token: str) -> IdentityClaim:
        return self.decode(token, self.refresh_secret)


class PasswordHasher:
    def __init__(self, rounds: int = 10) -> None:
        self.rounds = rounds
        self._dummy_hash: str | None = None

    @staticmethod
    def _encode(password: str) -> bytes:
        return password.encode("utf-8")[:BCRYPT_MAX_BYTES]

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(self._encode(password), salt).decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        expected = hashed.encode("utf-8")
        try:
            actual = bcrypt.hashpw(self._encode(password), expected)
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False
        return hmac.compare_digest(actual, expected)

    def verify_dummy(self, password: str) -> bool:
        """
        Spend one verification on a throwaway hash.

        Used when the account does not exist so that the response time does
        not tell an unknown email apart from a wrong password.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("not-a-real-password")
        self.verify(password, self._dummy_hash)
        return False
