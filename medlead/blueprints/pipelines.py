"""Pipelines blueprint — /api/pipelines/*

Route Map:
  GET    /api/pipelines                    — Caller's pipelines
  POST   /api/pipelines                    — Create {name, description?, columns?}
  DELETE /api/pipelines?pipelineId=<id>    — Unassign leads + delete (one transaction)
  DELETE /api/pipelines/<id>               — Same, id in path
"""

import logging

from flask import Blueprint, jsonify, request

from medlead.decorators import principal_required
from medlead.errors import ValidationError
from medlead.extensions import db
from medlead.services import pipeline_service

pipelines_bp = Blueprint("pipelines", __name__, url_prefix="/api/pipelines")

logger = logging.getLogger(__name__)


@pipelines_bp.route("", methods=["GET"])
@principal_required
def list_pipelines(owner_id):
    pipelines = pipeline_service.list_pipelines(owner_id)
    return jsonify([p.to_dict() for p in pipelines])


@pipelines_bp.route("", methods=["POST"])
@principal_required
def create_pipeline(owner_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Corpo da requisição inválido.")

    pipeline = pipeline_service.create_pipeline(
        owner_id,
        data.get("name"),
        description=data.get("description"),
        columns=data.get("columns"),
    )
    db.session.commit()
    return jsonify(pipeline.to_dict()), 201


@pipelines_bp.route("", methods=["DELETE"])
@principal_required
def delete_pipeline_by_query(owner_id):
    pipeline_id = request.args.get("pipelineId")
    if not pipeline_id:
        raise ValidationError("ID do pipeline é obrigatório")
    return _delete(owner_id, pipeline_id)


@pipelines_bp.route("/<pipeline_id>", methods=["DELETE"])
@principal_required
def delete_pipeline(pipeline_id, owner_id):
    return _delete(owner_id, pipeline_id)


def _delete(owner_id, pipeline_id):
    try:
        unassigned = pipeline_service.delete_pipeline(owner_id, pipeline_id)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(
        f"Pipeline {pipeline_id} deleted by {owner_id}; {unassigned} lead(s) unassigned"
    )
    return jsonify({"success": True, "unassigned": unassigned})
