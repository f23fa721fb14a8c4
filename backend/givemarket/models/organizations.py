from __future__ import annotations

from ..extensions import db
from givemarket.time_utils import to_utc_z


class Organization(db.Model):
    """
    Verified beneficiary that products and donations route money toward.

    total_received_cents is a derived aggregate: the sum of completed direct
    donations. It is written by a single atomic UPDATE in
    organization_service.increment_total_received and nowhere else.
    """
    __tablename__ = "organizations"
    __table_args__ = (
        db.UniqueConstraint("name_en", name="uq_organizations_name_en"),
        db.UniqueConstraint("name_ar", name="uq_organizations_name_ar"),
        db.UniqueConstraint("blockchain_address", name="uq_organizations_blockchain_address"),
        db.CheckConstraint("total_received_cents >= 0", name="ck_organizations_total_received_nonneg"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name_en = db.Column(db.String(255), nullable=False)
    name_ar = db.Column(db.String(255), nullable=False)
    description_en = db.Column(db.Text, nullable=True)
    description_ar = db.Column(db.Text, nullable=True)
    logo_url = db.Column(db.String(512), nullable=True)
    blockchain_address = db.Column(db.String(128), nullable=False)

    total_received_cents = db.Column(db.BigInteger, nullable=False, default=0)

    # Verification workflow
    is_verified = db.Column(db.Boolean, nullable=False, default=False, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    verified_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    verified_at = db.Column(db.DateTime(timezone=True), nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def verification_status(self) -> str:
        if self.is_verified:
            return "verified"
        if self.rejection_reason:
            return "rejected"
        return "pending"

    def __repr__(self) -> str:
        return f"<Organization id={self.id} name_en={self.name_en!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name_en": self.name_en,
            "name_ar": self.name_ar,
            "description_en": self.description_en,
            "description_ar": self.description_ar,
            "logo_url": self.logo_url,
            "blockchain_address": self.blockchain_address,
            "total_received_cents": self.total_received_cents,
            "is_verified": self.is_verified,
            "verification_status": self.verification_status,
            "created_by": self.created_by,
            "verified_by": self.verified_by,
            "verified_at": to_utc_z(self.verified_at) if self.verified_at else None,
            "rejection_reason": self.rejection_reason,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
