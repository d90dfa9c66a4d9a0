from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


PRODUCT_STATUS_ACTIVE = "ACTIVE"
PRODUCT_STATUS_INACTIVE = "INACTIVE"
PRODUCT_STATUS_ARCHIVED = "ARCHIVED"
PRODUCT_STATUS_DELETED = "DELETED"

PRODUCT_STATUSES = (
    PRODUCT_STATUS_ACTIVE,
    PRODUCT_STATUS_INACTIVE,
    PRODUCT_STATUS_ARCHIVED,
    PRODUCT_STATUS_DELETED,
)


class Location(db.Model):
    """
    Physical site holding its own stock quantities.

    Static reference data: created by seeding/configuration, never by the
    mutation engine.
    """
    __tablename__ = "locations"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Location id={self.id!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
        }


class Product(db.Model):
    """
    Catalog entry.

    ID DESIGN DECISION:
    Product.id is unique across the whole catalog, not per brand. Two brands
    cannot share a SKU id.

    STOCK:
    Quantities live in ProductLocationStock rows, one per location with
    recorded stock. A missing row means zero; always read through
    stock_ledger_service rather than the rows directly.

    HISTORY:
    Every stock/price/catalog mutation appends a LogEntry. Entries are never
    updated or deleted, and products are never physically deleted (status
    moves to ARCHIVED/INACTIVE/DELETED instead).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_brand_name", "brand", "name"),
        db.Index("ix_products_brand_status", "brand", "status"),
    )

    id = db.Column(db.String(64), primary_key=True)
    brand = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    unit = db.Column(db.String(32), nullable=False, default="pcs")
    category = db.Column(db.String(64), nullable=True)

    price = db.Column(db.Numeric(12, 2, asdecimal=True), nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default=PRODUCT_STATUS_ACTIVE)
    observations = db.Column(db.Text, nullable=True)

    # Last positive quantity added by a restock or transfer-in; sales never touch it
    last_restock_amount = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    stock_rows = db.relationship(
        "ProductLocationStock",
        back_populates="product",
        cascade="all, delete-orphan",
        lazy="select",
    )
    history = db.relationship(
        "LogEntry",
        back_populates="product",
        order_by="LogEntry.sequence",
        lazy="select",
    )

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def location_stocks(self) -> dict[str, int]:
        return {row.location_id: row.quantity for row in self.stock_rows}

    @property
    def total_stock(self) -> int:
        return sum(row.quantity for row in self.stock_rows)

    @property
    def is_active(self) -> bool:
        return self.status == PRODUCT_STATUS_ACTIVE

    def __repr__(self) -> str:
        return f"<Product id={self.id!r} brand={self.brand!r} name={self.name!r}>"

    def to_dict(self, include_history: bool = True) -> dict:
        data = {
            "id": self.id,
            "brand": self.brand,
            "name": self.name,
            "unit": self.unit,
            "category": self.category,
            "price": float(self.price) if self.price is not None else None,
            "status": self.status,
            "observations": self.observations,
            "location_stocks": self.location_stocks,
            "last_restock_amount": self.last_restock_amount,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_history:
            data["history"] = [entry.to_dict() for entry in self.history]
        return data


class ProductLocationStock(db.Model):
    """Quantity on hand of one product at one location."""
    __tablename__ = "product_location_stocks"

    product_id = db.Column(db.String(64), db.ForeignKey("products.id"), primary_key=True)
    location_id = db.Column(db.String(64), db.ForeignKey("locations.id"), primary_key=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)

    product = db.relationship("Product", back_populates="stock_rows")
    location = db.relationship("Location")

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "location_id": self.location_id,
            "quantity": self.quantity,
        }
