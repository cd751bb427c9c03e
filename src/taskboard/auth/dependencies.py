"""Authentication gate — bearer header → Identity.

Learn: Every protected router depends on get_current_identity. The gate
is a short state machine that stops at the first failure:

    no header        → MissingCredential
    not "Bearer <t>" → MalformedCredential
    token expired    → ExpiredCredential
    any other token problem → InvalidCredential
    otherwise        → Identity

All four failures become a 401 with the same header, but each is
logged under its own event name so they can be told apart in logs.
Nothing here is retried; the client simply sends a new request.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import structlog
from fastapi import Depends, Header

from taskboard.auth.jwt import TokenCodec, TokenError, TokenExpired
from taskboard.config import get_settings
from taskboard.db.models import Role
from taskboard.errors import (
    ExpiredCredential,
    InvalidCredential,
    MalformedCredential,
    MissingCredential,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class Identity:
    """The authenticated actor for one request. Never persisted."""

    subject_id: str
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def authenticate(authorization: Optional[str], codec: TokenCodec) -> Identity:
    """Turn a raw Authorization header value into a trusted Identity."""
    if not authorization:
        logger.warning("auth.missing_credential")
        raise MissingCredential()

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        logger.warning("auth.malformed_credential")
        raise MalformedCredential()

    try:
        claims = codec.verify(parts[1])
    except TokenExpired:
        logger.warning("auth.expired_credential")
        raise ExpiredCredential()
    except TokenError as e:
        logger.warning("auth.invalid_credential", reason=str(e))
        raise InvalidCredential()

    return Identity(subject_id=claims.sub, email=claims.email, role=claims.role)


@lru_cache
def get_token_codec() -> TokenCodec:
    """FastAPI dependency — the process-wide codec built from settings."""
    return TokenCodec(get_settings())


async def get_current_identity(
    authorization: Optional[str] = Header(None),
    codec: TokenCodec = Depends(get_token_codec),
) -> Identity:
    """Extract current identity (required — 401 if absent or invalid)."""
    identity = authenticate(authorization, codec)
    structlog.contextvars.bind_contextvars(
        subject_id=identity.subject_id, role=identity.role.value
    )
    return identity
