"""
Page layout.

Tier groups are laid out once per fetch into a tuple of markup strings, one per
screenful. A page never holds more lines than the budget it was built with and
a logical unit (header, member line or grid row) is never split across pages.
"""

from __future__ import annotations
from typing import Sequence
from .config import BoardSettings, LayoutMode
from .markup import bold, colored, column_position, format_entry, size, truncate
from .roster import SupporterEntry, TierGroup

HEADER_SIZE_PERCENT = 125
SEPARATOR = ""


class _PageBuffer:
    def __init__(self, budget: int) -> None:
        self.budget = max(1, budget)
        self.lines: list[str] = []
        self.pages: list[str] = []

    def fits(self, count: int) -> bool:
        return len(self.lines) + count <= self.budget

    def flush(self) -> None:
        if self.lines:
            self.pages.append("\n".join(self.lines))
            self.lines = []

    def make_room(self, count: int) -> None:
        if self.lines and not self.fits(count):
            self.flush()

    def add(self, line: str) -> None:
        self.make_room(1)
        self.lines.append(line)

    def add_separator(self) -> None:
        # Never opens a page and is dropped when the page is already full.
        if self.lines and self.fits(1):
            self.lines.append(SEPARATOR)

    def finish(self) -> tuple[str, ...]:
        self.flush()
        return tuple(self.pages)


class PageBuilder:
    def __init__(
        self,
        settings: BoardSettings,
        lines_per_page: int,
        entry_format: str = "{0}",
        empty_message: str = "No supporters yet!",
    ) -> None:
        self.settings = settings
        self.lines_per_page = max(1, lines_per_page)
        self.entry_format = entry_format
        self.empty_message = empty_message

    def build(self, groups: Sequence[TierGroup]) -> tuple[str, ...]:
        if not groups:
            return (self.empty_message,)
        buffer = _PageBuffer(self.lines_per_page)
        if self.settings.layout == LayoutMode.GRID:
            self._build_grid(groups, buffer)
        else:
            self._build_list(groups, buffer)
        return buffer.finish()

    def header_line(self, group: TierGroup) -> str:
        return size(bold(colored(group.name, group.header_color)), HEADER_SIZE_PERCENT)

    def member_line(self, group: TierGroup, entry: SupporterEntry) -> str:
        text = format_entry(self.entry_format, entry.name, entry.tier)
        return colored(text, group.color_for(entry))

    def _build_list(self, groups: Sequence[TierGroup], buffer: _PageBuffer) -> None:
        for group in groups:
            buffer.make_room(2)
            buffer.add(self.header_line(group))
            for entry in group.entries:
                buffer.add(self.member_line(group, entry))
            buffer.add_separator()

    def _cell(self, column: int, text: str) -> str:
        return column_position(column, self.settings.grid_column_spacing) + text

    def header_row(self, batch: Sequence[TierGroup]) -> str:
        width = self.settings.grid_max_chars
        return "".join(
            self._cell(column, bold(colored(truncate(group.name, width), group.header_color)))
            for column, group in enumerate(batch)
        )

    def grid_row(self, batch: Sequence[TierGroup], row: int) -> str:
        width = self.settings.grid_max_chars
        cells = []
        for column, group in enumerate(batch):
            if row >= len(group.entries):
                continue
            entry = group.entries[row]
            cells.append(self._cell(column, colored(truncate(entry.name, width), group.color_for(entry))))
        return "".join(cells)

    def _build_grid(self, groups: Sequence[TierGroup], buffer: _PageBuffer) -> None:
        columns = max(1, self.settings.grid_columns)
        for start in range(0, len(groups), columns):
            batch = groups[start:start + columns]
            tallest = max(len(group.entries) for group in batch)
            buffer.make_room(tallest + 2)
            buffer.add(self.header_row(batch))
            for row in range(tallest):
                buffer.add(self.grid_row(batch, row))
            buffer.add_separator()


def build_pages(
    groups: Sequence[TierGroup],
    settings: BoardSettings,
    lines_per_page: int,
    entry_format: str = "{0}",
    empty_message: str = "No supporters yet!",
) -> tuple[str, ...]:
    return PageBuilder(settings, lines_per_page, entry_format, empty_message).build(groups)
