"""Lead capture blueprint — /api/lead

Public endpoint hit by the lead form on doctors' pages (and by FORM blocks
embedded elsewhere). No session, no CSRF; rate limited per IP.

Route Map:
  POST    /api/lead  — Create a lead for the doctor identified by userSlug
  OPTIONS /api/lead  — CORS preflight
"""

import logging

from flask import Blueprint, current_app, jsonify, make_response, request
from flask import redirect as flask_redirect

from medlead.errors import ServiceError
from medlead.extensions import db, limiter
from medlead.services import analytics_service, capture_service

capture_bp = Blueprint("capture", __name__, url_prefix="/api/lead")

logger = logging.getLogger(__name__)


def _cors_response(response):
    """Add CORS headers so cross-origin JS submissions work."""
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    return response


def _success_page(data):
    """Thank-you page a FORM block asked for, if it is a usable URL."""
    url = data.get("redirect")
    if not isinstance(url, str):
        return None
    url = url.strip()
    if url.startswith(("http://", "https://")):
        return url
    if url.startswith("/") and not url.startswith("//"):
        return url
    return None


def _capture_limit():
    return current_app.config["LEAD_CAPTURE_RATE_LIMIT"]


@capture_bp.errorhandler(ServiceError)
def capture_error(e):
    """Validation and lookup errors still need CORS headers."""
    db.session.rollback()
    return _cors_response(jsonify({"error": e.message})), e.status_code


@capture_bp.route("", methods=["OPTIONS"])
def capture_preflight():
    """Handle CORS preflight requests."""
    return _cors_response(make_response("", 204))


@capture_bp.route("", methods=["POST"])
@limiter.limit(_capture_limit)
def capture():
    """
    Create a lead from a public page submission.

    Accepts both JSON and standard HTML form POST.

    Required fields: name, phone, userSlug
    Optional fields: email, indicationSlug, pipelineId, source,
                     utmSource, utmMedium, utmCampaign, utmTerm, utmContent,
                     redirect (HTML form posts only)

    Returns: the created lead (201), or a 302 to `redirect` for form posts
    """
    if request.is_json:
        data = request.get_json(silent=True) or {}
        success_page = None
    else:
        data = request.form.to_dict()
        success_page = _success_page(data)
    if not isinstance(data, dict):
        data = {}

    lead, owner, indication = capture_service.capture_lead(data)
    db.session.commit()
    payload = lead.to_dict()

    logger.info(
        f"Lead captured: {lead.id} for {owner.slug}"
        + (f" via indication {indication.slug}" if indication else "")
    )

    # Best-effort attribution; never changes the response
    ip, user_agent = analytics_service.client_fingerprint(request)
    analytics_service.record_event(
        "lead",
        owner.id,
        ip=ip,
        user_agent=user_agent,
        indication_id=indication.id if indication else None,
        lead_id=lead.id,
        counter="leads",
    )

    if success_page:
        return flask_redirect(success_page)
    return _cors_response(jsonify(payload)), 201
