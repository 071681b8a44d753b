"""Lead service — owner-scoped CRUD, partial updates, board mapping.

Every function takes the caller's user id as its first argument and only
ever touches leads (and pipelines) owned by that id. A lead that exists
but belongs to someone else raises NotFoundError, same as a missing one.

Free-text input is sanitized with bleach.clean(). Statuses go through
LeadStatus.parse() so only canonical values are written.

Functions flush but do NOT commit — the caller commits.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation

import bleach

from medlead.errors import NotFoundError, ValidationError
from medlead.extensions import db
from medlead.models.audit import AuditEvent
from medlead.models.lead import Lead
from medlead.models.lead_status import (
    LeadStatus,
    group_into_columns,
    status_for_column,
)
from medlead.models.pipeline import Pipeline

# leads.potential_value is Numeric(12, 2)
MAX_POTENTIAL_VALUE = Decimal("1e10")


def _sanitize(text):
    """Strip all HTML tags from user input."""
    if text is None:
        return text
    return bleach.clean(str(text), tags=[], strip=True).strip()


def required_text(value, label):
    text = _sanitize(value) if value is not None else ""
    if not text:
        raise ValidationError(f"{label} é obrigatório.")
    return text


def optional_text(value):
    if value is None:
        return None
    return _sanitize(value) or None


def parse_potential_value(value):
    """Parse a monetary amount into a Decimal.

    Accepts numbers and numeric strings; "1.500,50" and "1500,50" are read
    as Brazilian-formatted amounts. None or "" clears the value.

    Raises:
        ValidationError: For non-numeric, non-finite, negative or
            out-of-range (>= 10^10) input.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise ValidationError("Valor potencial inválido.")

    if isinstance(value, str):
        raw = value.strip().replace("R$", "").replace(" ", "")
        if "," in raw:
            raw = raw.replace(".", "").replace(",", ".")
    else:
        raw = str(value)

    try:
        amount = Decimal(raw)
        if not amount.is_finite():
            raise InvalidOperation
        if amount < 0:
            raise ValidationError("Valor potencial não pode ser negativo.")
        if amount >= MAX_POTENTIAL_VALUE:
            raise ValidationError("Valor potencial muito alto.")
        return amount.quantize(Decimal("0.01"))
    except InvalidOperation:
        raise ValidationError(f"Valor potencial inválido '{value}'.") from None


def parse_appointment(date_value, time_value=None):
    """Parse an appointment into an aware datetime.

    `date_value` is either a full ISO-8601 datetime ("2025-03-10T14:30:00Z")
    or a date ("2025-03-10"). A date may be combined with `time_value`
    ("14:30"); a date on its own means midnight. Naive values are taken
    as UTC. None or "" clears the appointment.

    Raises:
        ValidationError: If either part cannot be parsed.
    """
    if date_value is None or (isinstance(date_value, str) and not date_value.strip()):
        return None
    if not isinstance(date_value, str):
        raise ValidationError("Data de agendamento inválida.")

    raw = date_value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"

    try:
        if "T" in raw or " " in raw:
            when = datetime.fromisoformat(raw)
        else:
            day = date.fromisoformat(raw)
            at = time(0, 0)
            if time_value:
                at = time.fromisoformat(str(time_value).strip())
            when = datetime.combine(day, at)
    except ValueError:
        raise ValidationError(
            f"Data de agendamento inválida '{date_value}'."
        ) from None

    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when


def _owned_lead(owner_id, lead_id):
    lead = db.session.get(Lead, lead_id) if lead_id else None
    if lead is None or lead.user_id != owner_id:
        raise NotFoundError("Lead não encontrado")
    return lead


def owned_pipeline(owner_id, pipeline_id):
    """Return the caller's pipeline or raise NotFoundError."""
    pipeline = db.session.get(Pipeline, pipeline_id) if pipeline_id else None
    if pipeline is None or pipeline.user_id != owner_id:
        raise NotFoundError("Pipeline não encontrada")
    return pipeline


def _apply_changes(lead, owner_id, changes):
    """Apply a partial update to `lead`. Absent keys are left alone.

    Returns:
        The status value the lead had before the update.

    Raises:
        ValidationError: Unknown key or invalid value. Nothing is written
            to the lead before every key has been validated.
        NotFoundError: pipelineId that the caller does not own.
    """
    unknown = sorted(set(changes) - set(Lead.MUTABLE_FIELDS))
    if unknown:
        raise ValidationError(f"Campos não permitidos: {', '.join(unknown)}")
    if "status" in changes and "column" in changes:
        raise ValidationError("Informe 'status' ou 'column', não ambos.")

    updates = {}

    if "name" in changes:
        updates["name"] = required_text(changes["name"], "Nome")
    if "phone" in changes:
        updates["phone"] = required_text(changes["phone"], "Telefone")
    if "email" in changes:
        updates["email"] = optional_text(changes["email"])
    if "source" in changes:
        updates["source"] = optional_text(changes["source"])
    if "medicalNotes" in changes:
        updates["medical_notes"] = optional_text(changes["medicalNotes"])
    if "potentialValue" in changes:
        updates["potential_value"] = parse_potential_value(changes["potentialValue"])
    if "appointmentDate" in changes:
        updates["appointment_date"] = parse_appointment(
            changes["appointmentDate"], changes.get("appointmentTime")
        )
    elif "appointmentTime" in changes:
        raise ValidationError("appointmentTime requer appointmentDate.")

    if "pipelineId" in changes:
        pipeline_id = changes["pipelineId"] or None
        if pipeline_id is not None:
            owned_pipeline(owner_id, pipeline_id)
        updates["pipeline_id"] = pipeline_id

    if "status" in changes:
        updates["status"] = LeadStatus.parse(changes["status"]).value
    elif "column" in changes:
        pipeline_id = updates.get("pipeline_id", lead.pipeline_id)
        updates["status"] = _status_for_drop(owner_id, pipeline_id, changes["column"]).value

    old_status = lead.status
    for attr, value in updates.items():
        setattr(lead, attr, value)
    return old_status


def _status_for_drop(owner_id, pipeline_id, column_id):
    """Resolve a drag-and-drop target column against the lead's board."""
    status = status_for_column(column_id)
    if pipeline_id:
        pipeline = owned_pipeline(owner_id, pipeline_id)
        if column_id not in {c["id"] for c in pipeline.board_columns}:
            raise ValidationError(
                f"Coluna '{column_id}' não existe nesta pipeline."
            )
    return status


def _audit_status_change(owner_id, lead, old_status):
    if old_status == lead.status:
        return
    db.session.add(AuditEvent(
        actor_user_id=owner_id,
        action="lead.status_changed",
        metadata_={
            "lead_id": lead.id,
            "from": old_status,
            "to": lead.status,
        },
    ))


def list_leads(owner_id, pipeline_id=None):
    """Caller's leads, newest first, excluding soft-removed ones."""
    query = Lead.query.filter(
        Lead.user_id == owner_id,
        db.or_(Lead.status.is_(None), Lead.status != LeadStatus.REMOVED.value),
    )
    if pipeline_id:
        query = query.filter(Lead.pipeline_id == pipeline_id)
    return query.order_by(Lead.created_at.desc(), Lead.id).all()


def get_lead(owner_id, lead_id):
    """Direct lookup by id. Soft-removed leads are still returned."""
    return _owned_lead(owner_id, lead_id)


def create_lead(owner_id, data):
    """Manual entry by the doctor.

    Args:
        owner_id: Caller's user id.
        data: camelCase dict; name and phone required, everything in
            Lead.MUTABLE_FIELDS optional. Status defaults to "Novo".

    Returns:
        The created Lead.
    """
    fields = dict(data)
    lead = Lead(
        user_id=owner_id,
        name=required_text(fields.pop("name", None), "Nome"),
        phone=required_text(fields.pop("phone", None), "Telefone"),
        status=LeadStatus.NEW.value,
    )
    _apply_changes(lead, owner_id, fields)
    db.session.add(lead)
    db.session.flush()

    db.session.add(AuditEvent(
        actor_user_id=owner_id,
        action="lead.created",
        metadata_={"lead_id": lead.id, "status": lead.status},
    ))
    db.session.flush()
    return lead


def update_lead(owner_id, lead_id, changes):
    """Partial update (PATCH semantics) of one of the caller's leads."""
    if not isinstance(changes, dict):
        raise ValidationError("Corpo da requisição inválido.")
    lead = _owned_lead(owner_id, lead_id)
    old_status = _apply_changes(lead, owner_id, changes)
    db.session.flush()
    _audit_status_change(owner_id, lead, old_status)
    db.session.flush()
    return lead


def move_lead(owner_id, lead_id, column_id):
    """Drag-and-drop: set status from the target column only."""
    return update_lead(owner_id, lead_id, {"column": column_id})


def remove_lead(owner_id, lead_id):
    """Take a lead off the board without destroying it."""
    return update_lead(owner_id, lead_id, {"status": LeadStatus.REMOVED.value})


def bulk_update_status(owner_id, lead_ids, status):
    """Set one status on several leads. All ids must belong to the caller.

    Returns:
        Number of leads updated.
    """
    if not isinstance(lead_ids, list) or not lead_ids:
        raise ValidationError("IDs de leads inválidos")
    new_status = LeadStatus.parse(status)

    leads = Lead.query.filter(
        Lead.id.in_(lead_ids), Lead.user_id == owner_id
    ).all()
    if len(leads) != len(set(lead_ids)):
        raise NotFoundError("Um ou mais leads não foram encontrados")

    for lead in leads:
        old_status = lead.status
        lead.status = new_status.value
        _audit_status_change(owner_id, lead, old_status)
    db.session.flush()
    return len(leads)


def delete_lead(owner_id, lead_id):
    """Hard delete. Irreversible, unlike remove_lead()."""
    lead = _owned_lead(owner_id, lead_id)
    db.session.add(AuditEvent(
        actor_user_id=owner_id,
        action="lead.deleted",
        metadata_={"lead_id": lead.id, "name": lead.name},
    ))
    db.session.delete(lead)
    db.session.flush()


def build_board(owner_id, pipeline_id=None):
    """Kanban view: the pipeline's columns with the caller's leads in them.

    Without a pipeline id every non-removed lead is placed on the default
    board.
    """
    columns = None
    if pipeline_id:
        columns = owned_pipeline(owner_id, pipeline_id).board_columns
    leads = list_leads(owner_id, pipeline_id=pipeline_id)
    return group_into_columns(leads, columns)
