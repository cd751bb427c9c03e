"""Authentication and authorization.

Two gates run in front of every protected route:
1. Authentication — "Authorization: Bearer <jwt>" → Identity
2. Role gate — Identity.role checked against the route's OperationPolicy

What an identity may see once it is through both gates is decided by
taskboard.policy.scoping.
"""

from taskboard.auth.dependencies import Identity, authenticate, get_current_identity
from taskboard.auth.roles import OperationPolicy, authorize, role_gate

__all__ = [
    "Identity",
    "OperationPolicy",
    "authenticate",
    "authorize",
    "get_current_identity",
    "role_gate",
]
