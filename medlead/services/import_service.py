"""Import service — bulk lead creation from CSV files or JSON rows.

Rows are validated one by one: valid rows become leads, invalid rows are
reported back with their 1-based row number and the reason. Column names
are matched case-insensitively against a synonym table so exports from
spreadsheets in English or Portuguese both work.

import_rows() flushes but does NOT commit — the caller commits.
"""

import logging

import pandas as pd

from medlead.errors import ServiceError, ValidationError
from medlead.extensions import db
from medlead.models.audit import AuditEvent
from medlead.models.lead_status import from_legacy
from medlead.services import lead_service

logger = logging.getLogger(__name__)

_FIELD_SYNONYMS = {
    "name": ("name", "nome", "full_name", "paciente"),
    "phone": ("phone", "telefone", "celular", "whatsapp", "phone_number"),
    "email": ("email", "e-mail", "email_address"),
    "status": ("status", "situacao", "situação"),
    "medicalNotes": ("medicalnotes", "medical_notes", "notes", "observacoes", "observações", "notas"),
    "source": ("source", "origem"),
}


def read_csv(stream):
    """Parse a CSV upload into a list of row dicts keyed by lead field.

    Every cell is read as text (phone numbers keep their leading zeros);
    empty rows are dropped. Columns that match no known field are ignored.

    Raises:
        ValidationError: Unreadable file or no name/phone column.
    """
    try:
        frame = pd.read_csv(
            stream, dtype=str, keep_default_na=False, skipinitialspace=True
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise ValidationError(f"Arquivo CSV inválido: {e}") from None

    mapping = _resolve_columns(frame.columns)
    if "name" not in mapping or "phone" not in mapping:
        raise ValidationError("O CSV precisa das colunas 'name' e 'phone'.")

    rows = []
    for _, record in frame.iterrows():
        row = {field: record[column].strip() for field, column in mapping.items()}
        if not any(row.values()):
            continue
        rows.append(row)
    return rows


def _resolve_columns(columns):
    normalised = {str(c).strip().lower(): c for c in columns}
    mapping = {}
    for field, synonyms in _FIELD_SYNONYMS.items():
        for candidate in synonyms:
            if candidate in normalised:
                mapping[field] = normalised[candidate]
                break
    return mapping


def _normalise_row(row):
    """Drop blanks and translate patient-list status labels.

    Patient-list exports nest status and notes under "lead"; those are
    flattened onto the row.
    """
    row = dict(row)
    nested = row.pop("lead", None)
    if isinstance(nested, dict):
        for key in ("status", "medicalNotes"):
            row.setdefault(key, nested.get(key))
    cleaned = {k: v for k, v in row.items() if v not in (None, "")}
    status = cleaned.get("status")
    if isinstance(status, str):
        try:
            cleaned["status"] = from_legacy(status).value
        except ValidationError:
            pass  # not a legacy label; lead_service validates it as a status
    return cleaned


def import_rows(owner_id, rows, max_rows):
    """Create leads for the caller from already-parsed rows.

    Args:
        owner_id: Caller's user id.
        rows: List of camelCase dicts (name, phone, email, status, ...).
        max_rows: Upper bound on len(rows).

    Returns:
        dict: {"imported", "total", "failed", "errors": [{"row", "error"}]}

    Raises:
        ValidationError: rows is not a list, or exceeds max_rows.
    """
    if not isinstance(rows, list):
        raise ValidationError("Formato de dados inválido")
    if len(rows) > max_rows:
        raise ValidationError(
            f"Máximo de {max_rows} linhas por importação ({len(rows)} enviadas)."
        )

    imported = 0
    errors = []
    for index, row in enumerate(rows, start=1):
        if not isinstance(row, dict):
            errors.append({"row": index, "error": "Linha inválida"})
            continue
        try:
            # create_lead validates the whole row before adding anything
            lead_service.create_lead(owner_id, _normalise_row(row))
            imported += 1
        except ServiceError as e:
            errors.append({"row": index, "error": e.message})

    db.session.add(AuditEvent(
        actor_user_id=owner_id,
        action="lead.imported",
        metadata_={"imported": imported, "failed": len(errors)},
    ))
    db.session.flush()

    logger.info(
        f"Lead import for {owner_id}: {imported} imported, {len(errors)} failed"
    )
    return {
        "imported": imported,
        "total": len(rows),
        "failed": len(errors),
        "errors": errors,
    }
