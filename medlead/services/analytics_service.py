"""Analytics service — best-effort attribution events.

Page views, referral clicks and lead captures are recorded as Event rows.
These writes must never affect the request that triggered them: every
function here commits its own small transaction, and on failure rolls it
back, logs, and returns None instead of raising.

Call these only after the primary operation has been committed, so the
rollback cannot discard the caller's work.
"""

import logging

from medlead.extensions import db
from medlead.models.event import Event
from medlead.models.indication import Indication

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


def client_fingerprint(request):
    """Extract (ip, user_agent) from a Flask request for attribution.

    The first X-Forwarded-For hop wins (proxy deployments), falling back
    to the socket address.
    """
    forwarded = request.headers.get("X-Forwarded-For", "")
    ip = forwarded.split(",")[0].strip() if forwarded else ""
    ip = ip or request.remote_addr or UNKNOWN
    user_agent = request.headers.get("User-Agent") or UNKNOWN
    return ip[:100], user_agent[:500]


def record_event(event_type, user_id, ip=None, user_agent=None,
                 indication_id=None, lead_id=None, counter=None):
    """Write one analytics event, optionally bumping an indication counter.

    Args:
        event_type: One of Event.TYPES.
        user_id: Owning doctor's user id.
        ip, user_agent: Requester attribution.
        indication_id: Referral the event is attributed to, if any.
        lead_id: Lead created by this event, if any.
        counter: "visits" or "leads" to increment on the indication.

    Returns:
        The Event, or None if recording failed.
    """
    try:
        event = Event(
            type=event_type,
            user_id=user_id,
            indication_id=indication_id,
            lead_id=lead_id,
            ip=ip or UNKNOWN,
            user_agent=user_agent or UNKNOWN,
        )
        db.session.add(event)

        if indication_id and counter:
            column = {
                "visits": Indication.visits,
                "leads": Indication.leads_count,
            }[counter]
            Indication.query.filter_by(id=indication_id).update(
                {column: column + 1}, synchronize_session=False
            )

        db.session.commit()
        return event
    except Exception as e:
        # Never let analytics failure break the page or the capture
        db.session.rollback()
        logger.error(f"Failed to record {event_type} event for user {user_id}: {e}")
        return None


def track_page_view(user_id, request):
    ip, user_agent = client_fingerprint(request)
    return record_event("page_view", user_id, ip=ip, user_agent=user_agent)


def track_click(user_id, indication_id, request):
    """Referral link visit: event + indication.visits += 1."""
    ip, user_agent = client_fingerprint(request)
    return record_event(
        "click",
        user_id,
        ip=ip,
        user_agent=user_agent,
        indication_id=indication_id,
        counter="visits",
    )
