"""Pipeline model.

A doctor-owned, named grouping of leads rendered as a kanban board.
`columns` optionally customises the board (order and titles); when it is
NULL the default five-column board is used.

Deleting a pipeline never deletes its leads: their pipeline_id is set to
NULL in the same transaction (see pipeline_service.delete_pipeline).
"""

import uuid

from medlead.extensions import db
from medlead.models.lead_status import DEFAULT_COLUMNS


class Pipeline(db.Model):
    __tablename__ = "pipelines"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False, index=True
    )
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, default="", nullable=False)
    columns = db.Column(db.JSON, nullable=True)  # [{"id": "novos", "title": "Novos"}, ...]
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    owner = db.relationship("User", back_populates="pipelines")
    # passive_deletes: the service nulls lead.pipeline_id itself
    leads = db.relationship(
        "Lead", back_populates="pipeline", lazy="dynamic", passive_deletes=True
    )

    @property
    def board_columns(self):
        return self.columns or DEFAULT_COLUMNS

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description or "",
            "columns": self.board_columns,
        }

    def __repr__(self):
        return f"<Pipeline {self.name}>"
