"""Indication (referral link) model.

A slug under a doctor's namespace (/<user_slug>/<indication_slug>) that
attributes visits and captured leads to a referral source. Slugs are
unique per doctor, not globally.
"""

import uuid

from medlead.extensions import db


class Indication(db.Model):
    __tablename__ = "indications"
    __table_args__ = (
        db.UniqueConstraint("user_id", "slug", name="uq_indications_user_slug"),
    )

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False, index=True
    )
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(100), nullable=False)
    visits = db.Column(db.Integer, default=0, nullable=False)
    leads_count = db.Column("leads", db.Integer, default=0, nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    owner = db.relationship("User", back_populates="indications")
    leads = db.relationship("Lead", back_populates="indication", lazy="dynamic")

    def __repr__(self):
        return f"<Indication {self.slug}>"
