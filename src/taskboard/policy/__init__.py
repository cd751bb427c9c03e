"""Resource visibility: scoping rules and referential checks."""

from taskboard.policy.scoping import (
    Action,
    ResourceKind,
    can_access,
    ensure_access,
    scope_predicate,
)

__all__ = ["Action", "ResourceKind", "can_access", "ensure_access", "scope_predicate"]
