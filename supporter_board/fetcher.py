"""
Roster fetching.

``FetchScheduler`` owns the polling cadence and makes sure at most one request
is in flight. The network itself sits behind the ``TextLoader`` interface so
the scheduler stays tick driven and synchronous; ``HttpTextLoader`` is the
asyncio/httpx implementation used by the scripts.
"""

from __future__ import annotations
import asyncio
import logging
import random
from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional, Protocol, Sequence
import httpx
from .config import effective_refresh_interval
from .errors import NetworkError

logger = logging.getLogger(__name__)

BodyCallback = Callable[[str], None]
ReasonCallback = Callable[[str], None]
SuccessHandler = Callable[[str, bool], None]
FailureHandler = Callable[[str, bool, Optional[float]], None]
StartHandler = Callable[[bool], None]


class TextLoader(Protocol):
    def load(self, url: str, on_success: BodyCallback, on_failure: ReasonCallback) -> None:
        ...


class HttpTextLoader:
    def __init__(
        self,
        timeout: float = 10.0,
        user_agent: str = "SupporterBoard/1.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport
        self._tasks: set[asyncio.Task] = set()

    async def fetch_text(self, url: str) -> str:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(
                    url,
                    headers={"User-Agent": self._user_agent},
                    follow_redirects=True,
                )
        except httpx.TimeoutException as error:
            raise NetworkError("Request timed out") from error
        except httpx.HTTPError as error:
            raise NetworkError(str(error) or type(error).__name__) from error
        if response.status_code != 200:
            raise NetworkError(f"HTTP {response.status_code}")
        return response.text

    async def _run(self, url: str, on_success: BodyCallback, on_failure: ReasonCallback) -> None:
        try:
            body = await self.fetch_text(url)
        except NetworkError as error:
            on_failure(str(error))
            return
        on_success(body)

    def load(self, url: str, on_success: BodyCallback, on_failure: ReasonCallback) -> None:
        task = asyncio.get_running_loop().create_task(self._run(url, on_success, on_failure))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_idle(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks))


def build_cache_busting_urls(base_url: str, count: int = 500, parameter: str = "t") -> list[str]:
    cleaned = base_url.strip()
    if not cleaned:
        raise ValueError("A base URL is required")
    separator = "&" if "?" in cleaned else "?"
    return [f"{cleaned}{separator}{parameter}={index}" for index in range(max(0, count))]


@dataclass
class FetchState:
    sources: tuple[str, ...] = ()
    is_loading: bool = False
    elapsed: float = 0.0
    last_index: int = -1
    interactive: bool = False
    retrying: bool = False
    retry_in: Optional[float] = None
    generation: int = 0


class FetchScheduler:
    def __init__(
        self,
        loader: TextLoader,
        sources: Sequence[str],
        on_success: SuccessHandler,
        on_failure: FailureHandler,
        refresh_interval: float = 300.0,
        retry_delay: float = 0.0,
        rng: Optional[random.Random] = None,
        on_start: Optional[StartHandler] = None,
    ) -> None:
        self._loader = loader
        self._on_start = on_start
        self._on_success = on_success
        self._on_failure = on_failure
        self._rng = rng or random.Random()
        self.refresh_interval = refresh_interval
        self.retry_delay = max(0.0, retry_delay)
        self.state = FetchState(sources=tuple(url for url in sources if url))

    @property
    def configured(self) -> bool:
        return bool(self.state.sources)

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def effective_refresh_interval(self) -> float:
        return effective_refresh_interval(self.refresh_interval)

    def select_source(self) -> str:
        pool = self.state.sources
        index = self._rng.randrange(len(pool)) if len(pool) > 1 else 0
        if not 0 <= index < len(pool) or not pool[index]:
            index = 0
        self.state.last_index = index
        return pool[index]

    def request_fetch(self, interactive: bool = False) -> bool:
        """Start a fetch; returns False when nothing was sent."""
        return self._start(interactive, retry=False)

    def _start(self, interactive: bool, retry: bool) -> bool:
        state = self.state
        if state.is_loading:
            if interactive and not state.interactive:
                state.interactive = True
                logger.debug("Fetch in flight, completion upgraded to interactive")
            return False
        if not self.configured:
            logger.debug("Fetch skipped, no source configured")
            return False
        url = self.select_source()
        state.generation += 1
        state.is_loading = True
        state.interactive = interactive
        state.retrying = retry
        state.retry_in = None
        logger.info("Fetching %s (interactive=%s, retry=%s)", url, interactive, retry)
        if self._on_start is not None:
            self._on_start(interactive)
        generation = state.generation
        self._loader.load(url, partial(self._handle_success, generation), partial(self._handle_failure, generation))
        return True

    def _finish(self, generation: int) -> Optional[bool]:
        state = self.state
        if not state.is_loading or generation != state.generation:
            logger.debug("Ignoring stale fetch completion")
            return None
        interactive = state.interactive
        state.is_loading = False
        state.interactive = False
        return interactive

    def _handle_success(self, generation: int, body: str) -> None:
        interactive = self._finish(generation)
        if interactive is None:
            return
        self.state.elapsed = 0.0
        logger.info("Fetch succeeded (%d bytes)", len(body or ""))
        self._on_success(body, interactive)

    def _handle_failure(self, generation: int, reason: str) -> None:
        interactive = self._finish(generation)
        if interactive is None:
            return
        retry_in: Optional[float] = None
        if self.retry_delay > 0 and not self.state.retrying:
            retry_in = self.retry_delay
            self.state.retry_in = retry_in
        logger.error("Fetch failed: %s", reason)
        self._on_failure(reason, interactive, retry_in)

    def tick(self, delta: float) -> None:
        if delta <= 0:
            return
        state = self.state
        if state.retry_in is not None and not state.is_loading:
            state.retry_in -= delta
            if state.retry_in <= 0:
                state.retry_in = None
                self._start(False, retry=True)
        state.elapsed += delta
        if state.elapsed >= self.effective_refresh_interval:
            state.elapsed = 0.0
            self.request_fetch(False)
