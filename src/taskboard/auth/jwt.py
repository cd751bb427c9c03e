"""JWT token issuing and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. The
token carries everything the request pipeline needs to build an
Identity — subject id, email, role — so no DB lookup happens per
request.

Wire shape of the claims: {sub, email, role, iat, exp}.

PyJWT verifies the signature before it looks at any claim. ``exp`` is
then checked against the codec's clock (the same one ``issue`` uses), so
a token with a good signature but a past ``exp`` is still rejected.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt

from taskboard.config import Settings
from taskboard.db.models import Role

REQUIRED_CLAIMS = ["sub", "email", "role", "iat", "exp"]


class TokenError(Exception):
    """Raised when token verification fails."""


class TokenExpired(TokenError):
    pass


class TokenInvalidSignature(TokenError):
    pass


class TokenMalformed(TokenError):
    pass


@dataclass(frozen=True)
class Claims:
    sub: str
    email: str
    role: Role
    iat: int
    exp: int


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    """Signs and verifies access tokens with the configured secret."""

    def __init__(
        self,
        settings: Settings,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.secret = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm
        self.default_ttl = timedelta(days=settings.token_ttl_days)
        self.clock = clock

    def issue(
        self,
        subject_id: str,
        email: str,
        role: Role,
        ttl: Optional[timedelta] = None,
    ) -> str:
        """Create a signed token. TTL defaults to settings.token_ttl_days."""
        issued_at = self.clock()
        expires = issued_at + (ttl if ttl is not None else self.default_ttl)
        payload = {
            "sub": subject_id,
            "email": email,
            "role": Role(role).value,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires.timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Claims:
        """Verify and decode a token.

        Returns the claims on success.
        Raises TokenExpired, TokenInvalidSignature or TokenMalformed.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={
                    "require": REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as e:
            raise TokenInvalidSignature(f"Invalid token signature: {e}")
        except jwt.InvalidTokenError as e:
            raise TokenMalformed(f"Malformed token: {e}")

        # Time claims are checked here so the injected clock governs expiry.
        for claim in ("iat", "exp"):
            value = payload[claim]
            if not isinstance(value, int) or isinstance(value, bool):
                raise TokenMalformed(f"Claim {claim!r} must be an integer timestamp")
        if payload["exp"] <= int(self.clock().timestamp()):
            raise TokenExpired("Token has expired")

        try:
            role = Role(payload["role"])
        except ValueError:
            raise TokenMalformed(f"Unknown role in token: {payload['role']!r}")

        if not isinstance(payload["sub"], str) or not payload["sub"]:
            raise TokenMalformed("Token subject must be a non-empty string")

        return Claims(
            sub=payload["sub"],
            email=payload["email"],
            role=role,
            iat=payload["iat"],
            exp=payload["exp"],
        )
