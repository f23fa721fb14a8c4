from __future__ import annotations

from ..extensions import db
from givemarket.time_utils import to_utc_z


class Product(db.Model):
    """
    Seller-owned product gated by the approval workflow.

    approval_status is the source of truth; is_approved is a cached copy of
    approval_status == "approved" and is_active is only meaningful while
    approved. Transitions live in product_service (see
    lifecycle_service.PRODUCT_TRANSITIONS), never in ad-hoc route code.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_status_active", "approval_status", "is_active"),
        db.Index("ix_products_seller_status", "seller_id", "approval_status"),
        db.CheckConstraint("price_cents > 0", name="ck_products_price_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Ownership
    seller_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=True, index=True)

    # Bilingual catalog fields
    name_en = db.Column(db.String(255), nullable=False)
    name_ar = db.Column(db.String(255), nullable=True)
    description_en = db.Column(db.Text, nullable=True)
    description_ar = db.Column(db.Text, nullable=True)

    price_cents = db.Column(db.Integer, nullable=False)

    # Approval workflow
    approval_status = db.Column(db.String(32), nullable=False, default="draft", index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=False)
    is_approved = db.Column(db.Boolean, nullable=False, default=False)
    rejection_reason = db.Column(db.Text, nullable=True)
    approval_note = db.Column(db.Text, nullable=True)
    approved_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Soft delete
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    seller = db.relationship("User", foreign_keys=[seller_id])
    organization = db.relationship("Organization", backref=db.backref("products", lazy=True))

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_purchasable(self) -> bool:
        return (
            self.deleted_at is None
            and self.approval_status == "approved"
            and bool(self.is_approved)
            and bool(self.is_active)
        )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name_en={self.name_en!r} status={self.approval_status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "seller_id": self.seller_id,
            "creator_id": self.creator_id,
            "organization_id": self.organization_id,
            "name_en": self.name_en,
            "name_ar": self.name_ar,
            "description_en": self.description_en,
            "description_ar": self.description_ar,
            "price_cents": self.price_cents,
            "approval_status": self.approval_status,
            "is_active": self.is_active,
            "is_approved": self.is_approved,
            "rejection_reason": self.rejection_reason,
            "approval_note": self.approval_note,
            "approved_by": self.approved_by,
            "approved_at": to_utc_z(self.approved_at) if self.approved_at else None,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
