"""Pipeline service — owner-scoped create / list / delete.

Deleting a pipeline unassigns its leads (pipeline_id -> NULL) and deletes
the pipeline row in the caller's single transaction; leads are never
deleted with their pipeline.

Functions flush but do NOT commit — the caller commits (or rolls back).
"""

import bleach

from medlead.errors import ValidationError
from medlead.extensions import db
from medlead.models.audit import AuditEvent
from medlead.models.lead import Lead
from medlead.models.lead_status import validate_columns
from medlead.models.pipeline import Pipeline
from medlead.services.lead_service import owned_pipeline


def _sanitize(text):
    """Strip all HTML tags from user input."""
    if text is None:
        return text
    return bleach.clean(str(text), tags=[], strip=True).strip()


def list_pipelines(owner_id):
    return (
        Pipeline.query
        .filter_by(user_id=owner_id)
        .order_by(Pipeline.created_at, Pipeline.name)
        .all()
    )


def create_pipeline(owner_id, name, description=None, columns=None):
    """Create a pipeline for the caller.

    Args:
        owner_id: Caller's user id.
        name: Required, non-blank.
        description: Optional; stored as "" when absent.
        columns: Optional custom board, see lead_status.validate_columns().

    Raises:
        ValidationError: Blank name or malformed columns.
    """
    name = _sanitize(name) if isinstance(name, str) else None
    if not name:
        raise ValidationError("Nome é obrigatório")

    if columns is not None:
        columns = validate_columns(columns)

    pipeline = Pipeline(
        user_id=owner_id,
        name=name,
        description=_sanitize(description) or "",
        columns=columns,
    )
    db.session.add(pipeline)
    db.session.flush()

    db.session.add(AuditEvent(
        actor_user_id=owner_id,
        action="pipeline.created",
        metadata_={"pipeline_id": pipeline.id, "name": pipeline.name},
    ))
    db.session.flush()
    return pipeline


def delete_pipeline(owner_id, pipeline_id):
    """Unassign the pipeline's leads, then delete it.

    Both statements run in the current transaction; if either fails the
    caller's rollback leaves leads and pipeline untouched.

    Returns:
        Number of leads that were unassigned.

    Raises:
        NotFoundError: Missing pipeline or owned by another user.
    """
    pipeline = owned_pipeline(owner_id, pipeline_id)

    unassigned = (
        Lead.query
        .filter(Lead.pipeline_id == pipeline.id)
        .update({Lead.pipeline_id: None}, synchronize_session=False)
    )
    db.session.delete(pipeline)
    db.session.add(AuditEvent(
        actor_user_id=owner_id,
        action="pipeline.deleted",
        metadata_={
            "pipeline_id": pipeline.id,
            "name": pipeline.name,
            "unassigned_leads": unassigned,
        },
    ))
    db.session.flush()
    return unassigned
