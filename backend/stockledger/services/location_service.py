# Overview: Static location reference data.

from __future__ import annotations

from ..extensions import db
from ..models import Location
from ..validation import NotFoundError, ValidationError


def ensure_location(*, location_id: str, name: str, address: str | None = None) -> Location:
    """
    Register a location (configuration data).

    Safe to call repeatedly (idempotent); an existing row is returned as-is.
    """
    if not location_id or not str(location_id).strip():
        raise ValidationError("location_id is required")
    if not name or not str(name).strip():
        raise ValidationError("name is required")

    location = db.session.get(Location, location_id)
    if location:
        return location

    location = Location(id=location_id, name=name.strip(), address=address)
    db.session.add(location)
    db.session.flush()
    return location


def get_location(location_id: str) -> Location | None:
    return db.session.get(Location, location_id)


def require_location(location_id: str | None) -> Location:
    if not location_id:
        raise ValidationError("location_id is required")
    location = db.session.get(Location, location_id)
    if location is None:
        raise NotFoundError(f"Location {location_id} not found")
    return location


def list_locations() -> list[Location]:
    return db.session.query(Location).order_by(Location.name.asc(), Location.id.asc()).all()
