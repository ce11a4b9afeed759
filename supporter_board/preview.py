"""
Host surfaces for running the board outside a game engine.

``ImageRegion`` draws each page with Pillow and writes it to a PNG file,
``ConsoleRegion`` and ``ConsoleLine`` print plain text. Markup support is
limited to what the page builder emits: ``<pos=N%>`` columns and the first
``<color=#RRGGBB>`` of every column segment; other tags are stripped.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from PIL import Image, ImageDraw, ImageFont
from .colors import Color, WHITE, color_to_rgb, hex_to_color
from .fonts import load_font
from .sizing import line_height

TAG_PATTERN = re.compile(r"<[^<>]*>")
POSITION_PATTERN = re.compile(r"<pos=(\d+(?:\.\d+)?)%>")
COLOR_PATTERN = re.compile(r"<color=(#[0-9A-Fa-f]{6})>")


def strip_markup(text: str) -> str:
    return TAG_PATTERN.sub("", text)


@dataclass(frozen=True)
class Segment:
    offset_percent: float
    text: str
    color: Optional[Color] = None


def split_segments(line: str) -> list[Segment]:
    parts = POSITION_PATTERN.split(line)
    raw_segments = [(0.0, parts[0])]
    raw_segments += [(float(parts[i]), parts[i + 1]) for i in range(1, len(parts) - 1, 2)]
    segments = []
    for offset, raw in raw_segments:
        text = strip_markup(raw)
        if not text:
            continue
        match = COLOR_PATTERN.search(raw)
        segments.append(Segment(offset, text, hex_to_color(match.group(1)) if match else None))
    return segments


def render_page(
    markup: str,
    size: tuple[int, int],
    font: ImageFont.ImageFont,
    font_size: float,
    text_color: Color = WHITE,
    background: tuple[int, int, int, int] = (0, 0, 0, 255),
) -> Image.Image:
    image = Image.new("RGBA", size, background)
    draw = ImageDraw.Draw(image)
    step = line_height(font_size)
    y = 0.0
    for line in markup.split("\n"):
        if y >= size[1]:
            break
        for segment in split_segments(line):
            x = int(size[0] * segment.offset_percent / 100.0)
            fill = color_to_rgb(segment.color or text_color)
            draw.text((x, int(y)), segment.text, fill=fill, font=font)
        y += step
    return image


class ImageRegion:
    def __init__(
        self,
        output: Path,
        width: int = 800,
        height: int = 600,
        font_path: Optional[Path] = None,
        font_size: float = 24.0,
    ) -> None:
        self.output = output
        self.width = width
        self.height: Optional[float] = height
        self.font_path = font_path
        self.font_size: Optional[float] = font_size
        self.text_color = WHITE
        self.background = (0, 0, 0, 255)
        self.last_markup = ""
        self._fonts: dict[int, ImageFont.ImageFont] = {}

    def _font(self, size: int) -> ImageFont.ImageFont:
        if size not in self._fonts:
            self._fonts[size] = load_font(self.font_path, size)
        return self._fonts[size]

    def apply(self, header_color: Color, text_color: Color, background_opacity: float) -> None:
        self.text_color = text_color
        self.background = (0, 0, 0, int(round(background_opacity * 255)))

    def set_text(self, markup: str) -> None:
        self.last_markup = markup
        font_size = self.font_size or 24.0
        image = render_page(
            markup,
            (self.width, int(self.height or 1)),
            self._font(int(font_size)),
            font_size,
            self.text_color,
            self.background,
        )
        self.output.parent.mkdir(parents=True, exist_ok=True)
        image.save(self.output, format="PNG")


class ConsoleRegion:
    """Prints pages; it has no pixel metrics, so smart sizing stays manual."""

    def __init__(self) -> None:
        self.height: Optional[float] = None
        self.font_size: Optional[float] = None

    def set_text(self, markup: str) -> None:
        print("-" * 40)
        print(strip_markup(markup))
        print("-" * 40)


class ConsoleLine:
    def __init__(self, label: str) -> None:
        self.label = label
        self.text = ""

    def set_text(self, text: str) -> None:
        if text != self.text:
            self.text = text
            print(f"[{self.label}] {text}")
