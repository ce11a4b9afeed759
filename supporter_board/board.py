"""
Supporter board controller.

The board is driven by two host entry points, ``on_tick`` and ``on_interact``.
Everything the host shows comes from the current tuple of pre-built pages and
the cursor into it; a successful fetch replaces both in a single assignment.
"""

from __future__ import annotations
import logging
import random
from typing import Optional, Protocol
from .colors import Color
from .config import AppConfig, BoardSettings, merge_board_settings
from .errors import ConfigError
from .fetcher import FetchScheduler, TextLoader
from .pages import PageBuilder
from .roster import RosterDocument, TierGroup, group_tiers, parse_roster
from .sizing import estimate_lines_per_page

logger = logging.getLogger(__name__)

STATUS_SYNCING = "Syncing..."
STATUS_CONNECTION_FAILED = "Connection Failed. Click to Retry."
STATUS_DATA_ERROR = "Data Error"
STATUS_SYNC_ERROR = "Sync Error (showing last data)"


class DisplayRegion(Protocol):
    height: Optional[float]
    font_size: Optional[float]

    def set_text(self, markup: str) -> None:
        ...


class TextLine(Protocol):
    def set_text(self, text: str) -> None:
        ...


class VisualSink(Protocol):
    def apply(self, header_color: Color, text_color: Color, background_opacity: float) -> None:
        ...


class SupporterBoard:
    def __init__(
        self,
        config: AppConfig,
        loader: TextLoader,
        display: DisplayRegion,
        status: TextLine,
        header: Optional[TextLine] = None,
        visuals: Optional[VisualSink] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.settings: BoardSettings = config.board
        self.display = display
        self.status = status
        self.header = header
        self.visuals = visuals
        self.scheduler = FetchScheduler(
            loader,
            config.source.urls,
            self._on_fetch_success,
            self._on_fetch_failure,
            refresh_interval=self.settings.refresh_interval,
            retry_delay=config.source.retry_delay,
            rng=rng,
            on_start=self._on_fetch_start,
        )
        self.pages: tuple[str, ...] = ()
        self.current_page = 0
        self.page_elapsed = 0.0
        self.has_data = False
        self.groups: tuple[TierGroup, ...] = ()
        self.document: Optional[RosterDocument] = None
        self.lines_per_page = self.settings.lines_per_page
        self.config_error: Optional[ConfigError] = None

    @property
    def total_pages(self) -> int:
        return len(self.pages)

    @property
    def current_text(self) -> Optional[str]:
        return self.pages[self.current_page] if self.pages else None

    def start(self) -> None:
        self.apply_visuals()
        if not self.scheduler.configured:
            self.config_error = ConfigError("No URL provided")
            logger.error("Board has no data source configured")
            self.set_status(f"Configuration Error: {self.config_error}")
            return
        self.load_data()

    def load_data(self, interactive: bool = False) -> bool:
        return self.scheduler.request_fetch(interactive)

    def on_tick(self, delta: float) -> None:
        self.scheduler.tick(delta)
        if len(self.pages) > 1:
            self.page_elapsed += delta
            if self.page_elapsed >= self.settings.page_display_time:
                self.next_page()

    def on_interact(self) -> None:
        if self.has_data and len(self.pages) > 1:
            self.next_page()
        elif not self.has_data and self.config_error is None:
            # While a fetch is in flight this only upgrades its completion.
            self.load_data(interactive=True)

    def next_page(self) -> None:
        self.page_elapsed = 0.0
        if not self.pages:
            return
        self.current_page = (self.current_page + 1) % len(self.pages)
        self.update_display()

    def apply_visuals(self) -> None:
        settings = self.settings
        if self.visuals is not None:
            self.visuals.apply(settings.header_color, settings.text_color, settings.background_opacity)
        self.display.font_size = settings.content_font_size
        if self.header is not None and not self.has_data:
            self.header.set_text(settings.title)

    def update_header(self) -> None:
        if self.header is None or self.document is None:
            return
        self.header.set_text(f"{self.settings.title} ({self.document.supporter_count})")

    def update_display(self) -> None:
        if not self.has_data or not self.pages:
            return
        self.display.set_text(self.pages[self.current_page])
        if not self.groups:
            self.set_status(self.config.display.empty_message)
        elif len(self.pages) > 1:
            self.set_status(f"Page {self.current_page + 1} / {len(self.pages)}")
        else:
            self.set_status(self.config.display.footer_text)

    def set_status(self, message: str) -> None:
        self.status.set_text(message)

    def _on_fetch_start(self, interactive: bool) -> None:
        self.set_status(STATUS_SYNCING)

    def _on_fetch_success(self, body: str, interactive: bool) -> None:
        result = parse_roster(body)
        if not result.ok:
            self._on_format_error(result.reason)
            return
        document = result.document
        settings = merge_board_settings(self.settings, document.settings)
        groups = group_tiers(document.supporters, document.tiers, settings)
        self.display.font_size = settings.content_font_size
        lines = estimate_lines_per_page(
            settings,
            getattr(self.display, "height", None),
            getattr(self.display, "font_size", None),
        )
        display_config = self.config.display
        pages = PageBuilder(settings, lines, display_config.entry_format, display_config.empty_message).build(groups)
        cursor = 0 if interactive or self.current_page >= len(pages) else self.current_page
        self.pages, self.current_page = pages, cursor
        self.settings = settings
        self.groups = groups
        self.document = document
        self.lines_per_page = lines
        self.has_data = True
        self.scheduler.refresh_interval = settings.refresh_interval
        if interactive:
            self.page_elapsed = 0.0
        logger.info(
            "Roster loaded: %d supporters, %d tiers, %d pages of %d lines",
            len(document.supporters),
            len(groups),
            len(pages),
            lines,
        )
        self.apply_visuals()
        self.update_header()
        self.update_display()

    def _on_format_error(self, reason: str) -> None:
        logger.error("Roster rejected: %s", reason)
        self.set_status(STATUS_SYNC_ERROR if self.has_data else STATUS_DATA_ERROR)

    def _on_fetch_failure(self, reason: str, interactive: bool, retry_in: Optional[float]) -> None:
        if self.has_data:
            wait = retry_in if retry_in is not None else self.settings.effective_refresh_interval
            self.set_status(f"Sync Failed (Retrying in {wait:g}s)")
        else:
            self.set_status(STATUS_CONNECTION_FAILED)
