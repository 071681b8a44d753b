"""Capture service — public lead ingestion from doctor pages.

Anonymous visitors submit name + phone on /<user_slug>[/<indication_slug>].
The owner is resolved from the slug; referral and pipeline hints that do
not belong to that owner are dropped silently rather than rejected, so a
stale or tampered link still produces a lead.

capture_lead() flushes but does NOT commit — the caller commits, then
records the analytics event with analytics_service.record_event().
"""

import logging

from medlead.errors import NotFoundError, ValidationError
from medlead.extensions import db
from medlead.models.audit import AuditEvent
from medlead.models.indication import Indication
from medlead.models.lead import Lead
from medlead.models.lead_status import LeadStatus
from medlead.models.pipeline import Pipeline
from medlead.models.user import User
from medlead.services.lead_service import optional_text, required_text

logger = logging.getLogger(__name__)

UTM_FIELDS = {
    "utmSource": "utm_source",
    "utmMedium": "utm_medium",
    "utmCampaign": "utm_campaign",
    "utmTerm": "utm_term",
    "utmContent": "utm_content",
}


def _hint(data, key):
    """Optional string hint from the form; any other JSON type counts as absent."""
    value = data.get(key)
    if not isinstance(value, str):
        return None
    return value.strip() or None


def resolve_owner(user_slug):
    """Active doctor for a public slug, or NotFoundError."""
    user = User.query.filter_by(slug=user_slug).first() if user_slug else None
    if user is None or not user.is_active:
        raise NotFoundError("Médico não encontrado")
    return user


def resolve_indication(owner_id, indication_slug):
    """Referral under this owner's namespace only; None if absent."""
    if not indication_slug:
        return None
    return Indication.query.filter_by(
        user_id=owner_id, slug=indication_slug
    ).first()


def _resolve_pipeline_id(owner_id, pipeline_id):
    if not pipeline_id:
        return None
    pipeline = db.session.get(Pipeline, pipeline_id)
    if pipeline is None or pipeline.user_id != owner_id:
        logger.info(
            f"Ignoring pipeline {pipeline_id} on capture: not owned by {owner_id}"
        )
        return None
    return pipeline.id


def derive_source(source, utm):
    """Legacy `source` string: explicit value, else utm_source[_medium][_campaign]."""
    if source:
        return source
    parts = [utm.get("utm_source"), utm.get("utm_medium"), utm.get("utm_campaign")]
    if not parts[0]:
        return None
    return "_".join(p for p in parts if p)


def capture_lead(data):
    """Create a lead from a public submission.

    Args:
        data: dict with name, phone, userSlug (required) and optional
            email, indicationSlug, pipelineId, source and utm* fields.

    Returns:
        tuple: (lead, owner, indication) — indication may be None.

    Raises:
        ValidationError: Missing name, phone or userSlug.
        NotFoundError: userSlug does not resolve to an active doctor.
    """
    missing = [
        key for key in ("name", "phone", "userSlug")
        if not (isinstance(data.get(key), str) and data.get(key).strip())
    ]
    if missing:
        raise ValidationError(
            "Campos obrigatórios: name, phone, userSlug"
        )

    owner = resolve_owner(data["userSlug"].strip())
    indication = resolve_indication(owner.id, _hint(data, "indicationSlug"))

    utm = {
        column: optional_text(data.get(key))
        for key, column in UTM_FIELDS.items()
    }

    lead = Lead(
        user_id=owner.id,
        name=required_text(data["name"], "Nome"),
        phone=required_text(data["phone"], "Telefone"),
        email=optional_text(data.get("email")),
        status=LeadStatus.NEW.value,
        source=derive_source(optional_text(data.get("source")), utm),
        indication_id=indication.id if indication else None,
        pipeline_id=_resolve_pipeline_id(owner.id, _hint(data, "pipelineId")),
        **utm,
    )
    db.session.add(lead)
    db.session.flush()

    db.session.add(AuditEvent(
        actor_user_id=None,
        action="lead.captured",
        metadata_={
            "lead_id": lead.id,
            "owner_id": owner.id,
            "indication_id": lead.indication_id,
            "source": lead.source,
        },
    ))
    db.session.flush()

    return lead, owner, indication
