# Overview: Role and brand checks applied before every mutation.

"""
Permission checking

Fail closed: an unknown role has no permissions, and a non-admin user with
no assigned brands can act on none. Denials are logged; grants are not.
"""

from __future__ import annotations

from flask import current_app

from ..permissions import DEFAULT_ROLE_PERMISSIONS, ROLE_ADMIN


class PermissionDeniedError(Exception):
    """Raised when the acting user lacks a permission or brand assignment."""
    pass


def get_actor_permissions(actor) -> set[str]:
    return set(DEFAULT_ROLE_PERMISSIONS.get(actor.role, ()))


def actor_has_permission(actor, permission_code: str) -> bool:
    return permission_code in get_actor_permissions(actor)


def require_permission(actor, permission_code: str, resource: str | None = None) -> None:
    """
    Require the actor's role to grant permission_code.

    Usage:
        require_permission(actor, "APPROVE_ORDER", resource=order.id)
    """
    if not actor_has_permission(actor, permission_code):
        current_app.logger.warning(
            "Permission denied: %s (%s) lacks %s on %s",
            actor.user_id, actor.role, permission_code, resource or "-",
        )
        raise PermissionDeniedError(f"Permission denied: {permission_code}")


def can_access_brand(actor, brand: str) -> bool:
    if actor.role == ROLE_ADMIN:
        return True
    return brand in actor.brands


def require_brand_access(actor, brand: str) -> None:
    if not can_access_brand(actor, brand):
        current_app.logger.warning(
            "Brand access denied: %s is not assigned to %s", actor.user_id, brand,
        )
        raise PermissionDeniedError(f"User {actor.user_id} is not assigned to brand {brand}")
