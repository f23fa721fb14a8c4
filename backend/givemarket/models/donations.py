from __future__ import annotations

from ..extensions import db
from givemarket.time_utils import to_utc_z


class Donation(db.Model):
    """
    Pledge toward an organization, either linked to an order (purchase) or
    standalone (direct).

    No version column: status changes go through a compare-and-swap UPDATE
    in donation_service.update_status, which is the concurrency guard.
    """
    __tablename__ = "donations"
    __table_args__ = (
        db.Index("ix_donations_org_type_status", "organization_id", "type", "status"),
        db.Index("ix_donations_user_created", "user_id", "created_at"),
        db.CheckConstraint("amount_cents > 0", name="ck_donations_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(16), nullable=False)  # purchase, direct
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    blockchain_tx_id = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship("User", backref=db.backref("donations", lazy=True))
    organization = db.relationship("Organization", backref=db.backref("donations", lazy=True))
    order = db.relationship("Order", backref=db.backref("donations", lazy=True))

    def __repr__(self) -> str:
        return f"<Donation id={self.id} type={self.type} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "organization_id": self.organization_id,
            "order_id": self.order_id,
            "amount_cents": self.amount_cents,
            "type": self.type,
            "status": self.status,
            "blockchain_tx_id": self.blockchain_tx_id,
            "created_at": to_utc_z(self.created_at),
            "completed_at": to_utc_z(self.completed_at) if self.completed_at else None,
            "updated_at": to_utc_z(self.updated_at),
        }
