"""Tests for the lead status vocabulary and board column mapping."""

from types import SimpleNamespace

import pytest

from medlead.errors import ValidationError
from medlead.models.lead_status import (
    DEFAULT_COLUMNS,
    LeadStatus,
    column_for_status,
    from_legacy,
    group_into_columns,
    legacy_label,
    status_for_column,
    validate_columns,
)


class TestColumnForStatus:

    @pytest.mark.parametrize("status", [None, "", "   "])
    def test_empty_status_lands_in_novos(self, status):
        assert column_for_status(status) == "novos"

    @pytest.mark.parametrize("status,column", [
        ("Novo", "novos"),
        ("Agendado", "agendados"),
        ("Compareceu", "compareceram"),
        ("Fechado", "fechados"),
        ("Não veio", "naoVieram"),
    ])
    def test_each_status_has_one_column(self, status, column):
        assert column_for_status(status) == column

    def test_removed_is_not_on_the_board(self):
        assert column_for_status("Removido") is None

    def test_unknown_status_is_not_on_the_board(self):
        assert column_for_status("Arquivado") is None

    def test_columns_round_trip_to_statuses(self):
        for column in DEFAULT_COLUMNS:
            assert column_for_status(status_for_column(column["id"]).value) == column["id"]


class TestParse:

    def test_blank_means_new(self):
        assert LeadStatus.parse(None) is LeadStatus.NEW
        assert LeadStatus.parse("  ") is LeadStatus.NEW

    def test_case_insensitive_value(self):
        assert LeadStatus.parse("agendado") is LeadStatus.SCHEDULED
        assert LeadStatus.parse(" FECHADO ") is LeadStatus.CLOSED

    def test_member_name(self):
        assert LeadStatus.parse("NO_SHOW") is LeadStatus.NO_SHOW

    def test_legacy_concluido_means_attended(self):
        assert LeadStatus.parse("concluído") is LeadStatus.ATTENDED

    def test_unknown_raises(self):
        with pytest.raises(ValidationError):
            LeadStatus.parse("Arquivado")

    def test_non_string_raises(self):
        with pytest.raises(ValidationError):
            LeadStatus.parse(3)


class TestLegacyLabels:

    def test_labels(self):
        assert legacy_label("Novo") == "novo"
        assert legacy_label("Agendado") == "agendado"
        assert legacy_label("Compareceu") == "concluído"
        assert legacy_label("Fechado") is None

    def test_label_tolerates_stored_values(self):
        assert legacy_label(None) == "novo"
        assert legacy_label("") == "novo"
        assert legacy_label("Arquivado") is None
        assert legacy_label(3) is None

    def test_from_legacy(self):
        assert from_legacy("Agendado") is LeadStatus.SCHEDULED
        assert from_legacy("") is LeadStatus.NEW

    def test_from_legacy_rejects_pipeline_only_status(self):
        with pytest.raises(ValidationError):
            from_legacy("Fechado")


class TestStatusForColumn:

    def test_unknown_column(self):
        with pytest.raises(ValidationError):
            status_for_column("arquivados")

    def test_non_string_column(self):
        with pytest.raises(ValidationError):
            status_for_column(["novos"])


class TestValidateColumns:

    def test_strips_titles_and_keeps_order(self):
        cleaned = validate_columns([
            {"id": "fechados", "title": " Ganhos "},
            {"id": "novos", "title": "Entrada"},
        ])
        assert cleaned == [
            {"id": "fechados", "title": "Ganhos"},
            {"id": "novos", "title": "Entrada"},
        ]

    @pytest.mark.parametrize("columns", [
        [],
        "novos",
        [{"id": "arquivados", "title": "X"}],
        [{"id": "novos", "title": ""}],
        [{"id": "novos", "title": "A"}, {"id": "novos", "title": "B"}],
        ["novos"],
    ])
    def test_rejects_malformed(self, columns):
        with pytest.raises(ValidationError):
            validate_columns(columns)


class TestGroupIntoColumns:

    def test_null_status_never_raises(self):
        leads = [SimpleNamespace(status=None), SimpleNamespace(status="")]
        board = group_into_columns(leads)
        assert len(board[0]["leads"]) == 2
        assert board[0]["id"] == "novos"

    def test_default_board_shape(self):
        board = group_into_columns([])
        assert [c["id"] for c in board] == [c["id"] for c in DEFAULT_COLUMNS]

    def test_removed_and_hidden_columns_are_left_out(self):
        leads = [
            SimpleNamespace(status="Removido"),
            SimpleNamespace(status="Fechado"),
            SimpleNamespace(status="Novo"),
        ]
        board = group_into_columns(leads, [{"id": "novos", "title": "Entrada"}])
        assert len(board) == 1
        assert len(board[0]["leads"]) == 1
