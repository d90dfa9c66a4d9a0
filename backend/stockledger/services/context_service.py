# Overview: Acting user/brand/location selected by the caller.

"""
Acting context

The caller (UI or API layer) selects who is acting and which brand and
location are active. The context is stored on flask.g, so it is scoped to
the current app/request context.

Operations read it at the moment they run: an order binds the brand and
location active at creation time, and later context changes never move it.
Explicit keyword arguments on service calls always win over the context.
The actor carries a role and assigned brands; the mutation services check
them through permission_service.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app, g

from ..permissions import ROLE_ADMIN, ROLE_EMPLOYEE
from ..validation import ValidationError
from .location_service import require_location
from .permission_service import require_brand_access


@dataclass(frozen=True)
class Actor:
    user_id: str
    user_name: str
    authorizer_name: str | None = None
    role: str = ROLE_EMPLOYEE
    brands: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "brands", tuple(self.brands))

    @property
    def authorized_by(self) -> str:
        return self.authorizer_name or self.user_name


SYSTEM_ACTOR = Actor(user_id="sys", user_name="System", role=ROLE_ADMIN)


@dataclass(frozen=True)
class ActingContext:
    actor: Actor
    brand: str
    location_id: str


def require_brand(brand: str | None) -> str:
    brands = current_app.config["BRANDS"]
    if brand not in brands:
        raise ValidationError(f"brand must be one of: {', '.join(brands)}")
    return brand


def set_acting_context(*, actor: Actor, brand: str, location_id: str) -> ActingContext:
    """Select the acting user, brand and location for subsequent operations."""
    require_brand(brand)
    require_brand_access(actor, brand)
    require_location(location_id)
    context = ActingContext(actor=actor, brand=brand, location_id=location_id)
    g.acting_context = context
    return context


def clear_acting_context() -> None:
    g.pop("acting_context", None)


def get_acting_context() -> ActingContext | None:
    return getattr(g, "acting_context", None)


def require_acting_context() -> ActingContext:
    context = get_acting_context()
    if context is None:
        raise ValidationError("Acting context not established")
    return context


def resolve_actor(actor: Actor | None = None) -> Actor:
    if actor is not None:
        return actor
    context = get_acting_context()
    if context is not None:
        return context.actor
    return SYSTEM_ACTOR


def resolve_location_id(location_id: str | None = None) -> str:
    if location_id is not None:
        return location_id
    context = get_acting_context()
    if context is None:
        raise ValidationError("location_id is required when no acting context is set")
    return context.location_id


def resolve_brand(brand: str | None = None) -> str:
    if brand is not None:
        return require_brand(brand)
    context = get_acting_context()
    if context is None:
        raise ValidationError("brand is required when no acting context is set")
    return context.brand
