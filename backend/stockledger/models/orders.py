from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


ORDER_STATUS_PENDING = "PENDING"
ORDER_STATUS_CONFIRMED = "CONFIRMED"
ORDER_STATUS_PAID = "PAID"
ORDER_STATUS_PRODUCTION = "IN PRODUCTION"
ORDER_STATUS_SHIPPED = "SHIPPED/DELIVERED"
ORDER_STATUS_REJECTED = "REJECTED"

ORDER_STATUSES = (
    ORDER_STATUS_PENDING,
    ORDER_STATUS_CONFIRMED,
    ORDER_STATUS_PAID,
    ORDER_STATUS_PRODUCTION,
    ORDER_STATUS_SHIPPED,
    ORDER_STATUS_REJECTED,
)


class Order(db.Model):
    """
    Sales order.

    LIFECYCLE:
    1. PENDING: created, awaiting manager review
    2. CONFIRMED: approved; stock is deducted at location_id on entry
    3. PAID
    4. IN PRODUCTION
    5. SHIPPED/DELIVERED (terminal)
    REJECTED: refused while PENDING (terminal)

    location_id is fixed at creation to the creator's active location and
    never follows later context changes. Items are immutable after creation.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_brand_location_status", "brand", "location_id", "status"),
    )

    id = db.Column(db.String(32), primary_key=True)
    brand = db.Column(db.String(64), nullable=False)
    location_id = db.Column(db.String(64), db.ForeignKey("locations.id"), nullable=False, index=True)

    creator_id = db.Column(db.String(64), nullable=False)
    creator_name = db.Column(db.String(255), nullable=False)

    client_name = db.Column(db.String(255), nullable=False)
    client_email = db.Column(db.String(255), nullable=True)

    status = db.Column(db.String(32), nullable=False, default=ORDER_STATUS_PENDING, index=True)
    total = db.Column(db.Numeric(14, 2, asdecimal=True), nullable=False, default=0)
    manager_note = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    items = db.relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
        lazy="select",
    )

    def __repr__(self) -> str:
        return f"<Order id={self.id!r} brand={self.brand!r} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "brand": self.brand,
            "location_id": self.location_id,
            "creator_id": self.creator_id,
            "creator_name": self.creator_name,
            "client_name": self.client_name,
            "client_email": self.client_email,
            "status": self.status,
            "items": [item.to_dict() for item in self.items],
            "total": float(self.total) if self.total is not None else None,
            "manager_note": self.manager_note,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OrderItem(db.Model):
    """Individual line on an order."""
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(32), db.ForeignKey("orders.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)

    product_id = db.Column(db.String(64), db.ForeignKey("products.id"), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2, asdecimal=True), nullable=False)

    order = db.relationship("Order", back_populates="items")

    @property
    def line_total(self):
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price),
        }
