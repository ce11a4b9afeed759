from __future__ import annotations
import logging
import math
import os
from dataclasses import dataclass, field, fields, replace
from enum import IntEnum
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional
import yaml
from .colors import Color, WHITE, hex_to_color
from .errors import ConfigError

logger = logging.getLogger(__name__)

MIN_REFRESH_INTERVAL = 60.0
MIN_PAGE_DISPLAY_TIME = 1.0
ENV_SOURCE_URL = "SUPPORTER_BOARD_URL"
DEFAULT_HEADER_COLOR = hex_to_color("#800080")


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as error:
        raise ConfigError(f"Could not read {path}: {error}") from error
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return data


def _merge_dict(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge_dict(result[key], value)
        else:
            result[key] = value
    return result


class LayoutMode(IntEnum):
    LIST = 0
    GRID = 1


def effective_refresh_interval(value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        return MIN_REFRESH_INTERVAL
    return max(value, MIN_REFRESH_INTERVAL)


@dataclass
class BoardSettings:
    title: str = "Our Supporters"
    layout: LayoutMode = LayoutMode.LIST
    grid_columns: int = 3
    grid_column_spacing: float = 33.0
    lines_per_page: int = 20
    page_display_time: float = 10.0
    grid_max_chars: int = 20
    header_color: Color = DEFAULT_HEADER_COLOR
    text_color: Color = WHITE
    background_opacity: float = 0.8
    content_font_size: float = 24.0
    smart_paging: bool = False
    refresh_interval: float = 300.0

    @property
    def effective_refresh_interval(self) -> float:
        return effective_refresh_interval(self.refresh_interval)


def _as_text(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError("expected a string")
    return value


def _as_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError("expected a number")
    if not math.isfinite(value):
        raise ValueError("expected a finite number")
    return float(value)


def _as_int(value: Any) -> int:
    return int(_as_float(value))


def _as_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError("expected true or false")
    return value


def _as_color(value: Any) -> Color:
    if not isinstance(value, str):
        raise TypeError("expected a #RRGGBB string")
    return hex_to_color(value)


def _as_layout(value: Any) -> LayoutMode:
    if isinstance(value, str):
        return LayoutMode[value.strip().upper()]
    return LayoutMode(_as_int(value))


SETTING_KEYS: Dict[str, tuple[str, Callable[[Any], Any]]] = {
    "board_title": ("title", _as_text),
    "layout_mode": ("layout", _as_layout),
    "grid_columns": ("grid_columns", _as_int),
    "grid_column_spacing": ("grid_column_spacing", _as_float),
    "names_per_page": ("lines_per_page", _as_int),
    "page_display_time": ("page_display_time", _as_float),
    "grid_max_chars": ("grid_max_chars", _as_int),
    "header_color": ("header_color", _as_color),
    "text_color": ("text_color", _as_color),
    "bg_opacity": ("background_opacity", _as_float),
    "content_font_size": ("content_font_size", _as_float),
    "smart_paging": ("smart_paging", _as_bool),
    "refresh_interval": ("refresh_interval", _as_float),
}


def _sanitize(settings: BoardSettings) -> BoardSettings:
    defaults = BoardSettings()
    font_size = settings.content_font_size if settings.content_font_size > 0 else defaults.content_font_size
    return replace(
        settings,
        grid_columns=max(1, settings.grid_columns),
        grid_column_spacing=_clamp(settings.grid_column_spacing, 0.0, 100.0),
        lines_per_page=max(1, settings.lines_per_page),
        page_display_time=max(MIN_PAGE_DISPLAY_TIME, settings.page_display_time),
        grid_max_chars=max(1, settings.grid_max_chars),
        background_opacity=_clamp(settings.background_opacity, 0.0, 1.0),
        content_font_size=font_size,
    )


def merge_board_settings(base: BoardSettings, overrides: Optional[Mapping[str, Any]]) -> BoardSettings:
    """Return ``base`` with every recognised key of ``overrides`` applied.

    Keys use the remote ``board_settings`` vocabulary. Absent keys keep the
    value from ``base``; values of the wrong type are skipped.
    """
    if not overrides:
        return base
    changes: Dict[str, Any] = {}
    for key, value in overrides.items():
        target = SETTING_KEYS.get(key)
        if target is None:
            logger.debug("Ignoring unknown board setting %r", key)
            continue
        attribute, convert = target
        try:
            changes[attribute] = convert(value)
        except (TypeError, ValueError, KeyError, OverflowError):
            logger.warning("Ignoring invalid value %r for board setting %r", value, key)
    return _sanitize(replace(base, **changes))


@dataclass
class SourceConfig:
    urls: list[str] = field(default_factory=list)
    retry_delay: float = 30.0
    timeout: float = 10.0
    user_agent: str = "SupporterBoard/1.0"


@dataclass
class DisplayConfig:
    width: int = 800
    height: int = 600
    font: Optional[str] = None
    fps: float = 30.0
    entry_format: str = "{0}"
    empty_message: str = "No supporters yet!"
    footer_text: str = "Supporter Board"
    output: Optional[str] = None


@dataclass
class DoorConfig:
    urls: list[str] = field(default_factory=list)
    refresh_interval: float = 300.0
    allowed_key: str = "allowed_users"
    user: Optional[str] = None
    open_duration: float = 10.0


@dataclass
class AppConfig:
    source: SourceConfig = field(default_factory=SourceConfig)
    board: BoardSettings = field(default_factory=BoardSettings)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    door: DoorConfig = field(default_factory=DoorConfig)


DEFAULTS: Dict[str, Any] = {
    "source": {
        "urls": [],
        "retry_delay": 30.0,
        "timeout": 10.0,
        "user_agent": "SupporterBoard/1.0",
    },
    "board": {
        "board_title": "Our Supporters",
        "layout_mode": 0,
        "grid_columns": 3,
        "grid_column_spacing": 33.0,
        "names_per_page": 20,
        "page_display_time": 10.0,
        "grid_max_chars": 20,
        "header_color": "#800080",
        "text_color": "#FFFFFF",
        "bg_opacity": 0.8,
        "content_font_size": 24.0,
        "smart_paging": False,
        "refresh_interval": 300.0,
    },
    "display": {
        "width": 800,
        "height": 600,
        "font": None,
        "fps": 30.0,
        "entry_format": "{0}",
        "empty_message": "No supporters yet!",
        "footer_text": "Supporter Board",
        "output": None,
    },
    "door": {
        "urls": [],
        "refresh_interval": 300.0,
        "allowed_key": "allowed_users",
        "user": None,
        "open_duration": 10.0,
    },
}


def _section(merged: Dict[str, Any], name: str) -> Dict[str, Any]:
    data = merged.get(name) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")
    return data


def _url_pool(data: Dict[str, Any]) -> list[str]:
    urls = data.get("urls") or []
    if isinstance(urls, str):
        urls = [urls]
    single = data.get("url")
    if single:
        urls = [single, *urls]
    return [str(url).strip() for url in urls if url and str(url).strip()]


def _build_source(data: Dict[str, Any]) -> SourceConfig:
    source = SourceConfig(
        urls=_url_pool(data),
        retry_delay=max(0.0, float(data.get("retry_delay") or 0.0)),
        timeout=max(1.0, float(data.get("timeout", 10.0))),
        user_agent=str(data.get("user_agent") or "SupporterBoard/1.0"),
    )
    env_url = os.getenv(ENV_SOURCE_URL)
    if env_url:
        source = replace(source, urls=[env_url.strip()])
    return source


def _build_display(data: Dict[str, Any]) -> DisplayConfig:
    known = {item.name for item in fields(DisplayConfig)}
    display = DisplayConfig(**{key: value for key, value in data.items() if key in known})
    display.width = max(1, int(display.width))
    display.height = max(1, int(display.height))
    display.fps = _clamp(float(display.fps), 1.0, 120.0)
    return display


def _build_door(data: Dict[str, Any]) -> DoorConfig:
    return DoorConfig(
        urls=_url_pool(data),
        refresh_interval=float(data.get("refresh_interval", 300.0)),
        allowed_key=str(data.get("allowed_key") or "allowed_users"),
        user=data.get("user"),
        open_duration=max(0.0, float(data.get("open_duration") or 0.0)),
    )


def load_config(path: Optional[Path] = None) -> AppConfig:
    path = path or Path("config.yaml")
    overrides = _load_yaml(path)
    merged = _merge_dict(DEFAULTS, overrides)
    try:
        return AppConfig(
            source=_build_source(_section(merged, "source")),
            board=merge_board_settings(BoardSettings(), _section(merged, "board")),
            display=_build_display(_section(merged, "display")),
            door=_build_door(_section(merged, "door")),
        )
    except (TypeError, ValueError) as error:
        if isinstance(error, ConfigError):
            raise
        raise ConfigError(f"Invalid configuration in {path}: {error}") from error
