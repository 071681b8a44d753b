"""Analytics event model.

Append-only attribution log: page views, referral clicks and lead
captures. Rows are written best-effort by analytics_service and are never
read back by the request that wrote them.
"""

import uuid

from medlead.extensions import db


class Event(db.Model):
    __tablename__ = "events"

    TYPES = ["lead", "click", "page_view"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    type = db.Column(db.String(30), nullable=False, index=True)
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False, index=True
    )
    indication_id = db.Column(
        db.String(36), db.ForeignKey("indications.id"), nullable=True
    )
    # No FK: a hard-deleted lead keeps its attribution history.
    lead_id = db.Column(db.String(36), nullable=True)
    ip = db.Column(db.String(100), nullable=True)
    user_agent = db.Column(db.String(500), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    def __repr__(self):
        return f"<Event {self.type} user={self.user_id}>"
