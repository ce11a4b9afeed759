from __future__ import annotations
from .colors import Color, color_to_hex

ELLIPSIS = "…"
NAME_TOKEN = "{0}"
TIER_TOKEN = "{1}"


def truncate(text: str, max_width: int) -> str:
    if max_width < 1:
        return ""
    if len(text) > max_width:
        return text[: max_width - 1] + ELLIPSIS
    return text


def column_position(column_index: int, spacing_percent: float) -> str:
    if column_index <= 0:
        return ""
    offset = column_index * spacing_percent
    if float(offset).is_integer():
        offset = int(offset)
    return f"<pos={offset}%>"


def bold(text: str) -> str:
    return f"<b>{text}</b>"


def size(text: str, percent: int) -> str:
    return f"<size={percent}%>{text}</size>"


def colored(text: str, color: Color) -> str:
    return f"<color={color_to_hex(color)}>{text}</color>"


def align(text: str, alignment: str) -> str:
    return f"<align={alignment}>{text}</align>"


def format_entry(template: str, name: str, tier: str) -> str:
    # Literal substitution, names are not escaped.
    return template.replace(NAME_TOKEN, name).replace(TIER_TOKEN, tier)
