from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional
from PIL import ImageFont

logger = logging.getLogger(__name__)


def resolve_font(reference: Optional[str]) -> Optional[Path]:
    """Return the font file named in the config, or None for Pillow's default."""
    if not reference:
        return None
    candidate = Path(reference).expanduser()
    if candidate.is_file():
        return candidate
    logger.warning("Font %s not found, using the default font", reference)
    return None


def load_font(path: Optional[Path], size: int) -> ImageFont.ImageFont:
    if path is None:
        return ImageFont.load_default()
    try:
        return ImageFont.truetype(str(path), max(1, size))
    except OSError:
        logger.warning("Could not load font %s, using the default font", path)
        return ImageFont.load_default()
