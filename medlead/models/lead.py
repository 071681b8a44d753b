"""Lead model.

A contact captured from a doctor's public page, a form block, manual
entry or CSV import. Every lead has exactly one owner (user_id) and every
query over leads is scoped by it.

status holds a LeadStatus value (see lead_status.py). Leads removed from
the board keep their row with status "Removido"; only the explicit delete
endpoint destroys a lead.
"""

import uuid

from medlead.extensions import db
from medlead.models.lead_status import column_for_status, legacy_label


class Lead(db.Model):
    __tablename__ = "leads"

    # Fields a doctor may edit through the partial-update endpoint.
    MUTABLE_FIELDS = [
        "name",
        "phone",
        "email",
        "status",
        "source",
        "potentialValue",
        "appointmentDate",
        "appointmentTime",
        "medicalNotes",
        "pipelineId",
        "column",
    ]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False, index=True
    )
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(50), default="Novo", nullable=True, index=True)

    # --- Attribution ---
    source = db.Column(db.String(255), nullable=True)
    utm_source = db.Column(db.String(255), nullable=True)
    utm_medium = db.Column(db.String(255), nullable=True)
    utm_campaign = db.Column(db.String(255), nullable=True)
    utm_term = db.Column(db.String(255), nullable=True)
    utm_content = db.Column(db.String(255), nullable=True)

    # --- Scheduling / financial ---
    potential_value = db.Column(db.Numeric(12, 2), nullable=True)
    appointment_date = db.Column(db.DateTime(timezone=True), nullable=True)
    medical_notes = db.Column(db.Text, nullable=True)

    pipeline_id = db.Column(
        db.String(36),
        db.ForeignKey("pipelines.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    indication_id = db.Column(
        db.String(36), db.ForeignKey("indications.id"), nullable=True
    )
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    owner = db.relationship("User", back_populates="leads")
    pipeline = db.relationship("Pipeline", back_populates="leads")
    indication = db.relationship("Indication", back_populates="leads")

    @property
    def column(self):
        return column_for_status(self.status)

    def to_dict(self):
        """Serialize to the camelCase shape the dashboard consumes."""
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "status": self.status,
            "column": self.column,
            "legacyStatus": legacy_label(self.status),
            "source": self.source,
            "utmSource": self.utm_source,
            "utmMedium": self.utm_medium,
            "utmCampaign": self.utm_campaign,
            "utmTerm": self.utm_term,
            "utmContent": self.utm_content,
            "potentialValue": (
                float(self.potential_value)
                if self.potential_value is not None else None
            ),
            "appointmentDate": (
                self.appointment_date.isoformat()
                if self.appointment_date else None
            ),
            "medicalNotes": self.medical_notes,
            "pipelineId": self.pipeline_id,
            "indicationId": self.indication_id,
            "indication": (
                {"name": self.indication.name, "slug": self.indication.slug}
                if self.indication else None
            ),
            "user_id": self.user_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Lead {self.name} ({self.status})>"
