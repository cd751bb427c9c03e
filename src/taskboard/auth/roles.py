"""Role gate.

Learn: Each protected operation declares an OperationPolicy — a plain
record naming the operation and the roles allowed to call it. Routes
attach it at registration time:

    @router.post("/projects", dependencies=[Depends(role_gate(CREATE_PROJECT))])

An empty required_roles set means "any authenticated identity". The
gate's dependency itself depends on get_current_identity, so it can
only ever run after authentication has produced an Identity.
"""

from dataclasses import dataclass, field

import structlog
from fastapi import Depends

from taskboard.auth.dependencies import Identity, get_current_identity
from taskboard.db.models import Role
from taskboard.errors import InsufficientRole

logger = structlog.get_logger()


@dataclass(frozen=True)
class OperationPolicy:
    name: str
    required_roles: frozenset[Role] = field(default_factory=frozenset)


def authorize(identity: Identity, required_roles: frozenset[Role]) -> None:
    """Raise InsufficientRole unless identity.role is in required_roles."""
    if not required_roles:
        return
    if identity.role not in required_roles:
        logger.warning(
            "auth.insufficient_role",
            subject_id=identity.subject_id,
            role=identity.role.value,
            required=sorted(r.value for r in required_roles),
        )
        raise InsufficientRole()


def role_gate(policy: OperationPolicy):
    """Build the FastAPI dependency enforcing ``policy``."""

    async def _gate(identity: Identity = Depends(get_current_identity)) -> Identity:
        authorize(identity, policy.required_roles)
        return identity

    _gate.__name__ = f"role_gate_{policy.name.replace('.', '_')}"
    return _gate


ADMIN_ONLY = frozenset({Role.ADMIN})
ANY_ROLE: frozenset[Role] = frozenset()
