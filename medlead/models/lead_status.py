"""Lead status vocabulary and kanban column mapping.

Statuses are stored as plain strings on leads.status. LeadStatus is the
closed set of values the application writes; the patient list of older
releases stored lowercase labels ("novo", "agendado", "concluído") and
those are still recognised when read.

Columns are a presentation-level grouping of leads by status, not rows
of their own:

    novos -> Novo    agendados -> Agendado    compareceram -> Compareceu
    fechados -> Fechado    naoVieram -> Não veio

"Removido" is the soft-removal sentinel and never maps to a column.
"""

from enum import Enum

from medlead.errors import ValidationError


class LeadStatus(str, Enum):
    NEW = "Novo"
    SCHEDULED = "Agendado"
    ATTENDED = "Compareceu"
    CLOSED = "Fechado"
    NO_SHOW = "Não veio"
    REMOVED = "Removido"

    @classmethod
    def parse(cls, value):
        """Resolve a client- or database-supplied status to a member.

        Accepts the stored value, the member name, or a legacy lowercase
        label, ignoring case and surrounding whitespace. None or blank
        means NEW.

        Raises:
            ValidationError: If the value is not a known status.
        """
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.NEW
        if not isinstance(value, str):
            raise ValidationError("Status inválido")

        key = value.strip()
        if not key:
            return cls.NEW

        folded = key.casefold()
        for member in cls:
            if folded in (member.value.casefold(), member.name.casefold()):
                return member

        legacy = _LEGACY_TO_STATUS.get(folded)
        if legacy is not None:
            return legacy

        raise ValidationError(
            f"Status inválido '{value}'. Use um de: "
            f"{', '.join(m.value for m in cls)}"
        )


# Ordered default board. Pipelines without custom columns use this.
DEFAULT_COLUMNS = [
    {"id": "novos", "title": "Novos"},
    {"id": "agendados", "title": "Agendados"},
    {"id": "compareceram", "title": "Compareceram"},
    {"id": "fechados", "title": "Fechados"},
    {"id": "naoVieram", "title": "Não vieram"},
]

COLUMN_TO_STATUS = {
    "novos": LeadStatus.NEW,
    "agendados": LeadStatus.SCHEDULED,
    "compareceram": LeadStatus.ATTENDED,
    "fechados": LeadStatus.CLOSED,
    "naoVieram": LeadStatus.NO_SHOW,
}

STATUS_TO_COLUMN = {status: column for column, status in COLUMN_TO_STATUS.items()}

# Patient-list labels <-> pipeline statuses.
STATUS_TO_LEGACY = {
    LeadStatus.NEW: "novo",
    LeadStatus.SCHEDULED: "agendado",
    LeadStatus.ATTENDED: "concluído",
}

_LEGACY_TO_STATUS = {label: status for status, label in STATUS_TO_LEGACY.items()}


def status_for_column(column_id):
    """Return the LeadStatus a card dropped on `column_id` should receive.

    Raises:
        ValidationError: If the column id is not one of the board columns.
    """
    try:
        return COLUMN_TO_STATUS[column_id]
    except (KeyError, TypeError):
        raise ValidationError(f"Coluna inválida '{column_id}'.") from None


def column_for_status(status):
    """Return the column id a lead with `status` renders into.

    Empty or missing statuses land in "novos". Removed leads and strings
    outside the vocabulary return None (not rendered on the board).
    """
    if status is None or (isinstance(status, str) and not status.strip()):
        return "novos"
    try:
        member = LeadStatus.parse(status)
    except ValidationError:
        return None
    return STATUS_TO_COLUMN.get(member)


def legacy_label(status):
    """Lowercase patient-list label for a status, or None if it has none.

    Missing statuses read as "novo", like on the board. Strings outside
    the vocabulary have no label.
    """
    if status is None or (isinstance(status, str) and not status.strip()):
        return STATUS_TO_LEGACY[LeadStatus.NEW]
    try:
        return STATUS_TO_LEGACY.get(LeadStatus.parse(status))
    except ValidationError:
        return None


def from_legacy(label):
    """Pipeline status for a patient-list label (case-insensitive)."""
    if not label:
        return LeadStatus.NEW
    try:
        return _LEGACY_TO_STATUS[label.strip().casefold()]
    except KeyError:
        raise ValidationError(f"Status inválido '{label}'.") from None


def validate_columns(columns):
    """Validate a pipeline's custom column list and return it normalised.

    Each entry must be {"id": <board column id>, "title": <non-empty str>};
    ids may appear once each. Order is preserved.

    Raises:
        ValidationError: On any malformed entry.
    """
    if not isinstance(columns, list) or not columns:
        raise ValidationError("Colunas devem ser uma lista não vazia.")

    seen = set()
    cleaned = []
    for entry in columns:
        if not isinstance(entry, dict):
            raise ValidationError("Cada coluna deve ter 'id' e 'title'.")
        column_id = entry.get("id")
        title = entry.get("title")
        if not isinstance(column_id, str) or column_id not in COLUMN_TO_STATUS:
            raise ValidationError(f"Coluna inválida '{column_id}'.")
        if column_id in seen:
            raise ValidationError(f"Coluna duplicada '{column_id}'.")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError(f"Coluna '{column_id}' precisa de um título.")
        seen.add(column_id)
        cleaned.append({"id": column_id, "title": title.strip()})
    return cleaned


def group_into_columns(leads, columns=None):
    """Build the kanban board for `leads`.

    Args:
        leads: Iterable of objects with a `status` attribute.
        columns: Ordered [{"id", "title"}] list; DEFAULT_COLUMNS when None.

    Returns:
        List of {"id", "title", "leads"} dicts in column order. Leads whose
        status maps to no column, or to a column the pipeline does not
        show, are left out.
    """
    columns = columns or DEFAULT_COLUMNS
    board = [{"id": c["id"], "title": c["title"], "leads": []} for c in columns]
    by_id = {col["id"]: col for col in board}

    for lead in leads:
        col = by_id.get(column_for_status(lead.status))
        if col is not None:
            col["leads"].append(lead)
    return board
