from __future__ import annotations
import logging
import random
from dataclasses import dataclass
from typing import Callable, Optional, Protocol
from .config import DoorConfig
from .errors import FormatError
from .fetcher import FetchScheduler, TextLoader
from .roster import load_json

logger = logging.getLogger(__name__)


class Gate(Protocol):
    def set_open(self, is_open: bool) -> None:
        ...


@dataclass(frozen=True)
class AccessResult:
    allowed: Optional[bool] = None
    error: Optional[FormatError] = None

    @property
    def ok(self) -> bool:
        return self.allowed is not None

    @classmethod
    def failure(cls, reason: str) -> "AccessResult":
        return cls(error=FormatError(reason))


def check_access(text: Optional[str], user: str, key: str = "allowed_users") -> AccessResult:
    if not text or not text.strip():
        return AccessResult.failure("Empty response")
    try:
        root = load_json(text)
    except ValueError as error:
        return AccessResult.failure(f"Invalid JSON: {error}")
    if not isinstance(root, dict):
        return AccessResult.failure("Root is not an object")
    if key not in root:
        return AccessResult.failure(f"No '{key}' key")
    names = root[key]
    if not isinstance(names, list):
        return AccessResult.failure(f"'{key}' is not a list")
    return AccessResult(allowed=any(isinstance(name, str) and name == user for name in names))


class VipDoor:
    """Opens a gate for one user when a remote allow list names them.

    An opened door closes again and resets to locked after
    ``config.open_duration`` seconds; zero keeps it open until a later check
    revokes access.
    """

    def __init__(
        self,
        config: DoorConfig,
        loader: TextLoader,
        gate: Gate,
        user: Optional[str] = None,
        on_granted: Optional[Callable[[], None]] = None,
        retry_delay: float = 0.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.gate = gate
        self.user = user if user is not None else config.user
        self.on_granted = on_granted
        self.is_allowed = False
        self.open_elapsed = 0.0
        self.scheduler = FetchScheduler(
            loader,
            config.urls,
            self._on_fetch_success,
            self._on_fetch_failure,
            refresh_interval=config.refresh_interval,
            retry_delay=retry_delay,
            rng=rng,
        )

    def start(self) -> None:
        if not self.scheduler.configured:
            logger.error("VIP list URL is missing, the door stays locked")
            return
        if not self.user:
            logger.error("No user name configured, the door stays locked")
            return
        self.update_access(False)
        self.scheduler.request_fetch(False)

    def on_tick(self, delta: float) -> None:
        self.scheduler.tick(delta)
        if self.is_allowed and self.config.open_duration > 0:
            self.open_elapsed += delta
            if self.open_elapsed >= self.config.open_duration:
                logger.info("Closing door for %s", self.user)
                self.update_access(False)

    def on_interact(self) -> None:
        if not self.is_allowed and self.user:
            self.scheduler.request_fetch(True)

    def update_access(self, allowed: bool) -> None:
        was_allowed = self.is_allowed
        self.is_allowed = allowed
        if allowed != was_allowed:
            self.open_elapsed = 0.0
        self.gate.set_open(allowed)
        if allowed and not was_allowed and self.on_granted is not None:
            self.on_granted()

    def _on_fetch_success(self, body: str, interactive: bool) -> None:
        result = check_access(body, self.user or "", self.config.allowed_key)
        if not result.ok:
            logger.error("VIP list rejected: %s", result.error)
            return
        logger.info("Access %s for %s", "granted" if result.allowed else "denied", self.user)
        self.update_access(bool(result.allowed))

    def _on_fetch_failure(self, reason: str, interactive: bool, retry_in: Optional[float]) -> None:
        logger.error("VIP list download failed: %s", reason)
