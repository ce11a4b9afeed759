from __future__ import annotations
from typing import NamedTuple


class Color(NamedTuple):
    r: float
    g: float
    b: float
    a: float = 1.0


WHITE = Color(1.0, 1.0, 1.0, 1.0)
HEX_DIGITS = "0123456789abcdef"


def _channel(value: float) -> int:
    return max(0, min(255, int(round(float(value) * 255))))


def color_to_hex(color: Color) -> str:
    return "#{:02X}{:02X}{:02X}".format(_channel(color[0]), _channel(color[1]), _channel(color[2]))


def hex_value(char: str) -> int:
    return HEX_DIGITS.find(char.lower()) if len(char) == 1 else -1


def hex_to_color(value: object) -> Color:
    """Parse ``#RRGGBB``; anything else yields opaque white."""
    if not isinstance(value, str):
        return WHITE
    cleaned = value[1:] if value.startswith("#") else value
    if len(cleaned) != 6:
        return WHITE
    digits = [hex_value(char) for char in cleaned]
    if any(digit < 0 for digit in digits):
        return WHITE
    channels = [(digits[i] * 16 + digits[i + 1]) / 255.0 for i in (0, 2, 4)]
    return Color(channels[0], channels[1], channels[2], 1.0)


def normalize_hex(value: object) -> str:
    return color_to_hex(hex_to_color(value))


def color_to_rgb(color: Color) -> tuple[int, int, int]:
    return (_channel(color[0]), _channel(color[1]), _channel(color[2]))
