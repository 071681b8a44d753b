"""User model.

A user is a doctor: the owner of a public page, its leads and pipelines.
`slug` is the public namespace used in page URLs and lead capture.
Flask-Login integration via UserMixin.
"""

import uuid

from flask_login import UserMixin

from medlead.extensions import db


class User(UserMixin, db.Model):
    __tablename__ = "users"

    PLANS = ["free", "premium"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255))
    slug = db.Column(db.String(100), unique=True, nullable=False)
    phone = db.Column(db.String(50), nullable=True)  # WhatsApp fallback on the public page
    plan = db.Column(db.String(20), default="free", nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    leads = db.relationship("Lead", back_populates="owner", lazy="dynamic")
    pipelines = db.relationship(
        "Pipeline", back_populates="owner", lazy="dynamic"
    )
    indications = db.relationship(
        "Indication", back_populates="owner", lazy="dynamic"
    )
    page = db.relationship("Page", back_populates="owner", uselist=False)
    audit_events = db.relationship(
        "AuditEvent", back_populates="actor", lazy="dynamic"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "fullName": self.full_name,
            "slug": self.slug,
            "plan": self.plan,
        }

    def __repr__(self):
        return f"<User {self.email}>"
