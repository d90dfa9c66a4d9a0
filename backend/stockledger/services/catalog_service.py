# backend/stockledger/services/catalog_service.py
"""
Catalog Service

- Product ids are unique across the whole catalog (every brand).
- Creating a product starts it with no stock rows, last_restock_amount = 0
  and one CATALOG_CREATE history entry.
- Updates are shallow: each catalog field present in the patch replaces the
  stored value. Identity, stock, restock memory and history are never
  overwritten; history is only appended to.
- Products are never physically deleted; archive_product changes status.
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product
from ..models.catalog import PRODUCT_STATUS_ACTIVE, PRODUCT_STATUS_ARCHIVED, PRODUCT_STATUSES
from ..models.ledger import LOG_TYPE_CATALOG_CREATE, LOG_TYPE_CATALOG_UPDATE
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    enforce_rules_product,
    validate_payload,
)
from .concurrency import lock_for_update, run_with_retry
from .context_service import Actor, resolve_actor
from .event_log_service import append_log_entry
from .permission_service import require_brand_access, require_permission
from .reference_service import new_catalog_number

PRODUCT_MUTABLE_FIELDS = {"brand", "name", "unit", "category", "price", "status", "observations"}

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_MUTABLE_FIELDS | {"id"},
    required_on_create={"id", "brand", "name"},
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_MUTABLE_FIELDS,
)


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _enforce_rules(patch: dict) -> None:
    enforce_rules_product(
        patch,
        brands=current_app.config["BRANDS"],
        statuses=PRODUCT_STATUSES,
    )


def get_product(product_id: str) -> Product | None:
    return db.session.get(Product, product_id)


def require_product(product_id: str) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def list_products(brand: str | None = None, include_inactive: bool = False) -> list[Product]:
    query = db.session.query(Product)
    if brand is not None:
        query = query.filter(Product.brand == brand)
    if not include_inactive:
        query = query.filter(Product.status == PRODUCT_STATUS_ACTIVE)
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def create_product(data: dict, *, actor: Actor | None = None) -> Product:
    """
    Create a catalog product.

    Raises:
        ValidationError: missing/invalid fields
        ConflictError: id already used by any product of any brand
        PermissionDeniedError: actor lacks MANAGE_INVENTORY or the brand
    """
    patch = validate_payload(
        model=Product,
        payload=data,
        policy=PRODUCT_CREATE_POLICY,
        partial=False,
    )
    _enforce_rules(patch)
    actor = resolve_actor(actor)
    require_permission(actor, "MANAGE_INVENTORY", resource=patch["id"])
    require_brand_access(actor, patch["brand"])

    def _op():
        if db.session.get(Product, patch["id"]) is not None:
            raise ConflictError(f"Product id {patch['id']} already exists in the catalog")

        p = Product(
            id=patch["id"],
            status=PRODUCT_STATUS_ACTIVE,
            unit="pcs",
            price=0,
            last_restock_amount=0,
        )
        apply_product_patch(p, patch)
        db.session.add(p)
        db.session.flush()

        append_log_entry(
            p,
            entry_type=LOG_TYPE_CATALOG_CREATE,
            event_number=new_catalog_number(),
            change=f"Created product {p.name} ({p.brand})",
            actor=actor,
        )
        return p

    product = run_with_retry(_op)
    current_app.logger.info("Product %s created by %s", patch["id"], actor.user_id)
    return product


def update_product(product_id: str, data: dict, *, actor: Actor | None = None) -> Product:
    """
    Shallow-merge catalog fields onto a product.

    Raises:
        ValidationError: unknown/protected fields or invalid values
        NotFoundError: unknown product id
    """
    patch = validate_payload(
        model=Product,
        payload=data,
        policy=PRODUCT_UPDATE_POLICY,
        partial=True,
    )
    _enforce_rules(patch)
    actor = resolve_actor(actor)
    require_permission(actor, "MANAGE_INVENTORY", resource=product_id)
    if "brand" in patch:
        require_brand_access(actor, patch["brand"])

    def _op():
        p = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if p is None:
            raise NotFoundError(f"Product {product_id} not found")

        require_brand_access(actor, p.brand)
        apply_product_patch(p, patch)
        append_log_entry(
            p,
            entry_type=LOG_TYPE_CATALOG_UPDATE,
            event_number=new_catalog_number(),
            change=f"Updated fields: {', '.join(sorted(patch.keys())) or 'none'}",
            actor=actor,
        )
        return p

    product = run_with_retry(_op)
    current_app.logger.info("Product %s updated by %s", product_id, actor.user_id)
    return product


def archive_product(product_id: str, *, actor: Actor | None = None) -> Product:
    """Soft-delete: status becomes ARCHIVED, ids and history are kept."""
    return update_product(product_id, {"status": PRODUCT_STATUS_ARCHIVED}, actor=actor)
