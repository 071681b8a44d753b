"""Public pages blueprint — /<user_slug>[/<indication_slug>]

Renders a doctor's link-in-bio page from its blocks. Visits are recorded
best-effort after the page has been resolved; tracking failures never
affect the response.

Route Map:
  GET /<user_slug>                    — Page view
  GET /<user_slug>/<indication_slug>  — Page view attributed to a referral link
"""

from flask import Blueprint, abort, render_template, request

from medlead.blocks import render_block
from medlead.errors import NotFoundError
from medlead.services import analytics_service, capture_service, page_service

public_bp = Blueprint("public", __name__)

# First path segments owned by the application, never doctor slugs.
RESERVED_SLUGS = {"api", "auth", "static", "favicon.ico", "_next"}


def _resolve(user_slug):
    if user_slug in RESERVED_SLUGS:
        abort(404)
    try:
        owner = capture_service.resolve_owner(user_slug)
    except NotFoundError:
        abort(404)
    if owner.page is None:
        abort(404)
    return owner


def _render(owner, indication=None):
    page = owner.page
    context = {"owner": owner, "indication": indication}
    rendered = [render_block(b.type, b.content, **context) for b in page.blocks]
    return render_template(
        "public/page.html",
        page=page,
        owner=owner,
        indication=indication,
        blocks=rendered,
        whatsapp_fallback=bool(owner.phone) and not page_service.has_whatsapp_block(page),
    )


@public_bp.route("/<user_slug>")
def page(user_slug):
    owner = _resolve(user_slug)
    html = _render(owner)
    analytics_service.track_page_view(owner.id, request)
    return html


@public_bp.route("/<user_slug>/<indication_slug>")
def referral_page(user_slug, indication_slug):
    owner = _resolve(user_slug)
    indication = capture_service.resolve_indication(owner.id, indication_slug)
    html = _render(owner, indication)
    if indication is not None:
        analytics_service.track_click(owner.id, indication.id, request)
    else:
        analytics_service.track_page_view(owner.id, request)
    return html
