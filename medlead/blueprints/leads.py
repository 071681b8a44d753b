"""Leads blueprint — /api/leads/*

Doctor-facing lead API used by the pipeline board and the patient list.
Every route requires a session; the caller's id is passed to the service
layer explicitly. Leads owned by someone else answer 404.

Route Map:
  GET    /api/leads?pipelineId=        — List leads (excludes "Removido")
  POST   /api/leads                    — Manual entry
  PATCH  /api/leads                    — Partial update, id in body
  PATCH  /api/leads?leadId=<id>        — Partial update, id in query (board drag-and-drop)
  PUT    /api/leads                    — Bulk status change {ids, status}
  DELETE /api/leads?id=<id>            — Hard delete
  GET    /api/leads/board?pipelineId=  — Kanban columns with their leads
  POST   /api/leads/import             — Bulk import (JSON rows or CSV upload)
  GET    /api/leads/<id>               — Single lead (includes removed)
  PATCH  /api/leads/<id>               — Partial update
  DELETE /api/leads/<id>               — Hard delete
  POST   /api/leads/<id>/remove        — Soft removal (status -> "Removido")
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from medlead.decorators import principal_required
from medlead.errors import ValidationError
from medlead.extensions import db
from medlead.services import import_service, lead_service

leads_bp = Blueprint("leads", __name__, url_prefix="/api/leads")

logger = logging.getLogger(__name__)


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Corpo da requisição inválido.")
    return data


# ─── Collection ──────────────────────────────────────────────────

@leads_bp.route("", methods=["GET"])
@principal_required
def list_leads(owner_id):
    pipeline_id = request.args.get("pipelineId") or None
    leads = lead_service.list_leads(owner_id, pipeline_id=pipeline_id)
    return jsonify([lead.to_dict() for lead in leads])


@leads_bp.route("", methods=["POST"])
@principal_required
def create_lead(owner_id):
    lead = lead_service.create_lead(owner_id, _json_body())
    db.session.commit()
    return jsonify(lead.to_dict()), 201


@leads_bp.route("", methods=["PATCH"])
@principal_required
def patch_lead(owner_id):
    """PATCH with the id either in the query string or in the body."""
    changes = _json_body()
    body_id = changes.pop("id", None)
    lead_id = request.args.get("leadId") or body_id
    if not lead_id:
        raise ValidationError("ID do lead é obrigatório")

    lead = lead_service.update_lead(owner_id, lead_id, changes)
    db.session.commit()
    return jsonify(lead.to_dict())


@leads_bp.route("", methods=["PUT"])
@principal_required
def bulk_status(owner_id):
    data = _json_body()
    count = lead_service.bulk_update_status(
        owner_id, data.get("ids"), data.get("status")
    )
    db.session.commit()
    return jsonify({
        "success": True,
        "count": count,
        "message": f"Status de {count} lead(s) atualizado com sucesso",
    })


@leads_bp.route("", methods=["DELETE"])
@principal_required
def delete_lead_by_query(owner_id):
    lead_id = request.args.get("id")
    if not lead_id:
        raise ValidationError("ID do lead não fornecido")
    return _delete(owner_id, lead_id)


# ─── Board & import ──────────────────────────────────────────────

@leads_bp.route("/board", methods=["GET"])
@principal_required
def board(owner_id):
    pipeline_id = request.args.get("pipelineId") or None
    columns = lead_service.build_board(owner_id, pipeline_id=pipeline_id)
    return jsonify([
        {
            "id": col["id"],
            "title": col["title"],
            "leads": [lead.to_dict() for lead in col["leads"]],
        }
        for col in columns
    ])


@leads_bp.route("/import", methods=["POST"])
@principal_required
def import_leads(owner_id):
    """Accepts multipart `file` (CSV) or JSON {leads: [...]} / {patients: [...]}."""
    upload = request.files.get("file")
    if upload is not None:
        rows = import_service.read_csv(upload.stream)
    else:
        data = _json_body()
        rows = data.get("leads", data.get("patients"))

    result = import_service.import_rows(
        owner_id, rows, current_app.config["IMPORT_MAX_ROWS"]
    )
    db.session.commit()
    return jsonify(result)


# ─── Single lead ─────────────────────────────────────────────────

@leads_bp.route("/<lead_id>", methods=["GET"])
@principal_required
def get_lead(lead_id, owner_id):
    return jsonify(lead_service.get_lead(owner_id, lead_id).to_dict())


@leads_bp.route("/<lead_id>", methods=["PATCH"])
@principal_required
def patch_lead_by_path(lead_id, owner_id):
    changes = _json_body()
    changes.pop("id", None)
    lead = lead_service.update_lead(owner_id, lead_id, changes)
    db.session.commit()
    return jsonify(lead.to_dict())


@leads_bp.route("/<lead_id>", methods=["DELETE"])
@principal_required
def delete_lead(lead_id, owner_id):
    return _delete(owner_id, lead_id)


@leads_bp.route("/<lead_id>/remove", methods=["POST"])
@principal_required
def remove_lead(lead_id, owner_id):
    lead = lead_service.remove_lead(owner_id, lead_id)
    db.session.commit()
    return jsonify(lead.to_dict())


def _delete(owner_id, lead_id):
    lead_service.delete_lead(owner_id, lead_id)
    db.session.commit()
    logger.info(f"Lead {lead_id} deleted by {owner_id}")
    return jsonify({"success": True, "message": "Lead removido com sucesso"})
