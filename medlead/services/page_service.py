"""Page service — public page lookup and owner-side block editing.

Blocks are validated with medlead.blocks.parse_block() before they are
stored, so the database only ever holds payloads that match their type.

Functions flush but do NOT commit — the caller commits.
"""

from medlead.blocks import dump_block, parse_block
from medlead.errors import NotFoundError, ValidationError
from medlead.extensions import db
from medlead.models.page import Block, Page


def owned_page(owner_id, page_id):
    page = db.session.get(Page, page_id) if page_id else None
    if page is None or page.user_id != owner_id:
        raise NotFoundError("Página não encontrada")
    return page


def replace_blocks(owner_id, page_id, blocks):
    """Replace a page's blocks with `blocks`, in the order given.

    Args:
        owner_id: Caller's user id.
        page_id: The caller's page.
        blocks: List of {"type", "content"} dicts. Any incoming "order"
            is ignored; list position is the order.

    Returns:
        The page's new Block rows.

    Raises:
        ValidationError: Any block fails validation (nothing is replaced).
        NotFoundError: Page missing or owned by someone else.
    """
    page = owned_page(owner_id, page_id)
    if not isinstance(blocks, list):
        raise ValidationError("Blocos devem ser uma lista.")

    parsed = []
    for position, raw in enumerate(blocks):
        if not isinstance(raw, dict):
            raise ValidationError(f"Bloco {position + 1} inválido.")
        try:
            payload = parse_block(raw.get("type"), raw.get("content"))
        except ValidationError as e:
            raise ValidationError(f"Bloco {position + 1}: {e.message}") from None
        parsed.append(payload)

    page.blocks = [
        Block(type=payload.type, content=dump_block(payload), order=position)
        for position, payload in enumerate(parsed)
    ]
    db.session.flush()
    return page.blocks


def has_whatsapp_block(page):
    return any(block.type == "WHATSAPP" for block in page.blocks)
