"""Page block variants and renderer registry.

A page is an ordered list of blocks. Each block type has its own payload
shape; parse_block() builds the matching dataclass from the camelCase
JSON the page editor sends and rejects keys that belong to a different
type (or to none). Rendering is a plain lookup: one template per type,
and a type with no template renders as an empty string.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

from flask import render_template
from markupsafe import Markup

from medlead.errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class ButtonBlock:
    type = "BUTTON"

    label: str = ""
    url: str = ""


@dataclass
class FormBlock:
    type = "FORM"

    title: str = ""
    form_id: Optional[str] = None
    pipeline_id: Optional[str] = None
    is_modal: bool = False
    modal_title: str = ""
    success_page: str = ""
    show_in_modal: bool = False


@dataclass
class AddressBlock:
    type = "ADDRESS"

    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""
    has_button: bool = False
    button_label: str = ""
    button_url: str = ""

    @property
    def one_line(self):
        parts = [self.address, self.city, self.state, self.zip_code, self.country]
        return ", ".join(p for p in parts if p)


@dataclass
class AiChatBlock:
    type = "AI_CHAT"

    button_title: str = "Fale com o Dr."
    greeting: str = "Olá! Como posso ajudar?"


@dataclass
class WhatsAppBlock:
    type = "WHATSAPP"

    whatsapp_number: str = ""

    @property
    def link(self):
        digits = "".join(ch for ch in (self.whatsapp_number or "") if ch.isdigit())
        return f"https://wa.me/{digits}" if digits else ""


@dataclass
class SubButton:
    id: str
    label: str
    url: Optional[str] = None
    icon: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    is_external: bool = False


@dataclass
class MultiStepBlock:
    type = "MULTI_STEP"

    MODAL_SIZES = ("default", "large", "full")
    MODAL_LAYOUTS = ("grid", "list")

    title: str = ""
    label: str = ""
    modal_title: str = ""
    modal_size: str = "default"
    modal_layout: str = "grid"
    show_descriptions: bool = True
    show_icons: bool = True
    sub_buttons: List[SubButton] = field(default_factory=list)

    def __post_init__(self):
        if self.modal_size not in self.MODAL_SIZES:
            raise ValidationError(f"modalSize inválido '{self.modal_size}'.")
        if self.modal_layout not in self.MODAL_LAYOUTS:
            raise ValidationError(f"modalLayout inválido '{self.modal_layout}'.")
        buttons = []
        for raw in self.sub_buttons:
            if isinstance(raw, SubButton):
                buttons.append(raw)
                continue
            if not isinstance(raw, dict) or not raw.get("id") or not raw.get("label"):
                raise ValidationError("Cada subButton precisa de 'id' e 'label'.")
            buttons.append(SubButton(**_snake_keys(raw, SubButton)))
        self.sub_buttons = buttons


@dataclass
class RedirectBlock:
    type = "REDIRECT"

    redirect_url: str = ""
    redirect_delay: int = 0
    show_countdown: bool = False

    def __post_init__(self):
        if not isinstance(self.redirect_delay, int) or isinstance(self.redirect_delay, bool):
            raise ValidationError("redirectDelay deve ser um número inteiro.")
        if self.redirect_delay < 0:
            raise ValidationError("redirectDelay não pode ser negativo.")


BLOCK_TYPES = {
    cls.type: cls
    for cls in (
        ButtonBlock,
        FormBlock,
        AddressBlock,
        AiChatBlock,
        WhatsAppBlock,
        MultiStepBlock,
        RedirectBlock,
    )
}

TEMPLATES = {
    "BUTTON": "blocks/button.html",
    "FORM": "blocks/form.html",
    "ADDRESS": "blocks/address.html",
    "AI_CHAT": "blocks/ai_chat.html",
    "WHATSAPP": "blocks/whatsapp.html",
    "MULTI_STEP": "blocks/multi_step.html",
    "REDIRECT": "blocks/redirect.html",
}


def _camel_to_snake(key):
    out = []
    for ch in key:
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out)


def _snake_to_camel(key):
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def _snake_keys(content, cls):
    """Map camelCase content keys onto `cls` field names.

    Raises:
        ValidationError: For any key `cls` does not declare.
    """
    allowed = {f.name for f in fields(cls)}
    result = {}
    for key, value in content.items():
        name = _camel_to_snake(key)
        if name not in allowed:
            raise ValidationError(
                f"Campo '{key}' não pertence a um bloco do tipo "
                f"{getattr(cls, 'type', cls.__name__)}."
            )
        result[name] = value
    return result


def parse_block(block_type: str, content: Optional[Dict[str, Any]]):
    """Build the typed payload for a block.

    Raises:
        ValidationError: Unknown type, non-object content, or a field that
            does not belong to this type.
    """
    cls = BLOCK_TYPES.get(block_type)
    if cls is None:
        raise ValidationError(f"Tipo de bloco inválido '{block_type}'.")
    if content is None:
        content = {}
    if not isinstance(content, dict):
        raise ValidationError("O conteúdo do bloco deve ser um objeto.")
    try:
        return cls(**_snake_keys(content, cls))
    except TypeError as e:
        raise ValidationError(f"Conteúdo inválido para {block_type}: {e}") from None


def dump_block(payload) -> Dict[str, Any]:
    """Typed payload -> camelCase JSON for storage and the editor."""

    def convert(value):
        if isinstance(value, dict):
            return {_snake_to_camel(k): convert(v) for k, v in value.items()}
        if isinstance(value, list):
            return [convert(v) for v in value]
        return value

    return convert(asdict(payload))


def render_block(block_type: str, content: Optional[Dict[str, Any]], **context) -> Markup:
    """Render one stored block. Unknown types render nothing."""
    template = TEMPLATES.get(block_type)
    if template is None:
        return Markup("")
    try:
        payload = parse_block(block_type, content)
    except ValidationError as e:
        logger.warning(f"Skipping malformed {block_type} block: {e.message}")
        return Markup("")
    return Markup(render_template(template, block=payload, **context))
