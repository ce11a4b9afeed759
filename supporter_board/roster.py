"""
Roster parsing and tier grouping.

A fetched document is turned into a ``RosterDocument`` by ``parse_roster``.
Document-level problems come back as a failed ``ParseResult``; problems with a
single entry are tolerated and replaced by a placeholder so one bad record
never hides the rest of the board.
"""

from __future__ import annotations
import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional
from .colors import Color, hex_to_color
from .config import BoardSettings
from .errors import EntryError, FormatError

logger = logging.getLogger(__name__)

DEFAULT_TIER = "Supporter"
UNKNOWN_NAME = "Unknown"
INVALID_ENTRY = "Invalid Entry"


@dataclass(frozen=True)
class TierDefinition:
    name: str
    header_color: Optional[str] = None
    supporter_color: Optional[str] = None


@dataclass(frozen=True)
class SupporterEntry:
    name: str
    tier: str = DEFAULT_TIER
    name_color: Optional[str] = None
    tier_color: Optional[str] = None


@dataclass(frozen=True)
class RosterDocument:
    supporters: tuple[SupporterEntry, ...]
    tiers: Dict[str, TierDefinition]
    settings: Optional[Dict[str, Any]] = None
    total_supporters: Optional[int] = None

    @property
    def supporter_count(self) -> int:
        if self.total_supporters is not None:
            return self.total_supporters
        return len(self.supporters)


@dataclass(frozen=True)
class ParseResult:
    document: Optional[RosterDocument] = None
    error: Optional[FormatError] = None

    @property
    def ok(self) -> bool:
        return self.document is not None

    @property
    def reason(self) -> str:
        return str(self.error) if self.error else ""

    @classmethod
    def failure(cls, reason: str) -> "ParseResult":
        return cls(error=FormatError(reason))


def _optional_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def read_entry(token: Any) -> SupporterEntry:
    if isinstance(token, str):
        return SupporterEntry(name=token)
    if not isinstance(token, dict):
        raise EntryError(f"Unsupported entry {token!r}")
    name = token.get("name")
    if not isinstance(name, str):
        name = UNKNOWN_NAME if name is None else str(name)
    tier = token.get("tier")
    if not isinstance(tier, str) or not tier:
        tier = DEFAULT_TIER
    return SupporterEntry(
        name=name,
        tier=tier,
        name_color=_optional_text(token.get("name_color")),
        tier_color=_optional_text(token.get("tier_color")),
    )


def _read_entries(tokens: Iterable[Any]) -> tuple[SupporterEntry, ...]:
    entries = []
    for index, token in enumerate(tokens):
        try:
            entries.append(read_entry(token))
        except EntryError as error:
            logger.warning("Supporter #%d skipped: %s", index, error)
            entries.append(SupporterEntry(name=INVALID_ENTRY))
    return tuple(entries)


def _read_tiers(tokens: Any) -> Dict[str, TierDefinition]:
    definitions: Dict[str, TierDefinition] = {}
    if tokens is None:
        return definitions
    if not isinstance(tokens, list):
        logger.warning("Ignoring 'tiers': expected a list")
        return definitions
    for token in tokens:
        if not isinstance(token, dict) or not isinstance(token.get("name"), str):
            logger.warning("Ignoring tier definition %r", token)
            continue
        definitions[token["name"]] = TierDefinition(
            name=token["name"],
            header_color=_optional_text(token.get("color_header")),
            supporter_color=_optional_text(token.get("color_supporters")),
        )
    return definitions


def _read_total(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return int(value)


def reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def load_json(text: str) -> Any:
    return json.loads(text, parse_constant=reject_constant)


def parse_roster(text: Optional[str]) -> ParseResult:
    if not text or not text.strip():
        return ParseResult.failure("Empty response")
    try:
        root = load_json(text)
    except ValueError as error:
        return ParseResult.failure(f"Invalid JSON: {error}")
    if not isinstance(root, dict):
        return ParseResult.failure("Root is not an object")
    if "supporters" not in root:
        return ParseResult.failure("No 'supporters' key")
    supporters = root["supporters"]
    if not isinstance(supporters, list):
        return ParseResult.failure("'supporters' is not a list")
    settings = root.get("board_settings")
    if settings is not None and not isinstance(settings, dict):
        logger.warning("Ignoring 'board_settings': expected an object")
        settings = None
    document = RosterDocument(
        supporters=_read_entries(supporters),
        tiers=_read_tiers(root.get("tiers")),
        settings=settings,
        total_supporters=_read_total(root.get("total_supporters")),
    )
    return ParseResult(document=document)


@dataclass(frozen=True)
class TierGroup:
    name: str
    entries: tuple[SupporterEntry, ...]
    header_color: Color
    supporter_color: Optional[Color]
    default_color: Color

    def color_for(self, entry: SupporterEntry) -> Color:
        if entry.name_color:
            return hex_to_color(entry.name_color)
        if self.supporter_color is not None:
            return self.supporter_color
        return self.default_color


def group_tiers(
    entries: Iterable[SupporterEntry],
    definitions: Mapping[str, TierDefinition],
    settings: BoardSettings,
) -> tuple[TierGroup, ...]:
    """Bucket entries by tier, keeping the order tiers first appear in."""
    buckets: Dict[str, list[SupporterEntry]] = {}
    for entry in entries:
        buckets.setdefault(entry.tier, []).append(entry)
    groups = []
    for name, members in buckets.items():
        definition = definitions.get(name)
        header = definition.header_color if definition else None
        if header is None:
            header = next((member.tier_color for member in members if member.tier_color), None)
        supporter = definition.supporter_color if definition else None
        groups.append(
            TierGroup(
                name=name,
                entries=tuple(members),
                header_color=hex_to_color(header) if header else settings.header_color,
                supporter_color=hex_to_color(supporter) if supporter else None,
                default_color=settings.text_color,
            )
        )
    return tuple(groups)
