from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


LOG_TYPE_RESTOCK = "RESTOCK"
LOG_TYPE_SALE = "SALE"
LOG_TYPE_PRICE_CHANGE = "PRICE_CHANGE"
LOG_TYPE_CATALOG_CREATE = "CATALOG_CREATE"
LOG_TYPE_CATALOG_UPDATE = "CATALOG_UPDATE"

LOG_TYPES = (
    LOG_TYPE_RESTOCK,
    LOG_TYPE_SALE,
    LOG_TYPE_PRICE_CHANGE,
    LOG_TYPE_CATALOG_CREATE,
    LOG_TYPE_CATALOG_UPDATE,
)


class LogEntry(db.Model):
    """
    Append-only audit record for one product.

    - sequence is 1-based per product and equals insertion order.
    - event_number is a human-readable reference (PO/batch number, order id or
      a generated REST-/PRC-/CAT- code), not a key.
    - location_id is set for location-scoped events only (restock, sale,
      transfer legs); price and catalog events are global.
    - Rows are immutable once flushed (see stockledger.immutability).
    """
    __tablename__ = "product_log_entries"
    __table_args__ = (
        db.UniqueConstraint("product_id", "sequence", name="uq_log_product_sequence"),
        db.Index("ix_log_product_date", "product_id", "date"),
        db.Index("ix_log_event_number", "event_number"),
    )

    id = db.Column(db.String(64), primary_key=True)
    product_id = db.Column(db.String(64), db.ForeignKey("products.id"), nullable=False, index=True)
    sequence = db.Column(db.Integer, nullable=False)

    type = db.Column(db.String(32), nullable=False, index=True)
    event_number = db.Column(db.String(64), nullable=False)
    change = db.Column(db.String(255), nullable=False)
    date = db.Column(db.DateTime, nullable=False, default=utcnow)
    quantity = db.Column(db.String(64), nullable=True)

    user_id = db.Column(db.String(64), nullable=False)
    user_name = db.Column(db.String(255), nullable=False)
    authorizer_name = db.Column(db.String(255), nullable=True)

    location_id = db.Column(db.String(64), db.ForeignKey("locations.id"), nullable=True, index=True)

    product = db.relationship("Product", back_populates="history")

    def __repr__(self) -> str:
        return f"<LogEntry id={self.id!r} type={self.type} event_number={self.event_number!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "sequence": self.sequence,
            "type": self.type,
            "event_number": self.event_number,
            "change": self.change,
            "date": to_utc_z(self.date),
            "quantity": self.quantity,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "authorizer_name": self.authorizer_name or self.user_name,
            "location_id": self.location_id,
        }
