"""Public page and block models.

Each doctor has one page rendered at /<user_slug>. A page owns an ordered
list of blocks; `content` is the block's JSON payload, validated against
its type by medlead.blocks before it is stored.
"""

import uuid

from medlead.extensions import db


class Page(db.Model):
    __tablename__ = "pages"

    TEMPLATES = ["modern", "classic", "minimal", "light", "navy"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), unique=True, nullable=False
    )
    title = db.Column(db.String(255), nullable=False)
    subtitle = db.Column(db.String(500), nullable=True)
    template = db.Column(db.String(30), default="modern", nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    owner = db.relationship("User", back_populates="page")
    blocks = db.relationship(
        "Block",
        back_populates="page",
        order_by="Block.order",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Page {self.title}>"


class Block(db.Model):
    __tablename__ = "blocks"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    page_id = db.Column(
        db.String(36),
        db.ForeignKey("pages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = db.Column(db.String(30), nullable=False)
    content = db.Column(db.JSON, nullable=False, default=dict)
    order = db.Column(db.Integer, nullable=False, default=0)

    page = db.relationship("Page", back_populates="blocks")

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "content": self.content or {},
            "order": self.order,
        }

    def __repr__(self):
        return f"<Block {self.type} #{self.order}>"
