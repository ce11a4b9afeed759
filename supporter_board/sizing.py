from __future__ import annotations
import logging
import math
from typing import Optional
from .config import BoardSettings

logger = logging.getLogger(__name__)

LINE_SPACING = 1.25
MIN_SMART_LINES = 5


def line_height(font_size: float) -> float:
    return font_size * LINE_SPACING


def _usable(value: Optional[float]) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value) and value > 0
    except TypeError:
        return False


def estimate_lines_per_page(
    settings: BoardSettings,
    display_height: Optional[float] = None,
    font_size: Optional[float] = None,
) -> int:
    manual = max(1, settings.lines_per_page)
    if not settings.smart_paging:
        return manual
    if not (_usable(display_height) and _usable(font_size)):
        logger.debug("Display metrics unavailable, keeping %d lines per page", manual)
        return manual
    lines = int(math.floor(display_height / line_height(font_size)))
    return max(MIN_SMART_LINES, lines)
