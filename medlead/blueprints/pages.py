"""Pages blueprint — /api/pages/*

Owner-side editing of the public page's block list.

Route Map:
  GET /api/pages/<page_id>/blocks  — Ordered blocks
  PUT /api/pages/<page_id>/blocks  — Replace all blocks (validated per type)
"""

from flask import Blueprint, jsonify, request

from medlead.decorators import principal_required
from medlead.errors import ValidationError
from medlead.extensions import db
from medlead.services import page_service

pages_bp = Blueprint("pages", __name__, url_prefix="/api/pages")


@pages_bp.route("/<page_id>/blocks", methods=["GET"])
@principal_required
def list_blocks(page_id, owner_id):
    page = page_service.owned_page(owner_id, page_id)
    return jsonify([block.to_dict() for block in page.blocks])


@pages_bp.route("/<page_id>/blocks", methods=["PUT"])
@principal_required
def replace_blocks(page_id, owner_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Corpo da requisição inválido.")

    blocks = page_service.replace_blocks(owner_id, page_id, data.get("blocks"))
    db.session.commit()
    return jsonify([block.to_dict() for block in blocks])
