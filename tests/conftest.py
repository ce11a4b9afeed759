import json
from dataclasses import replace

import pytest

from supporter_board.board import SupporterBoard
from supporter_board.config import AppConfig, BoardSettings, SourceConfig

ROSTER_URL = "https://example.test/supporters.json"


class FakeLoader:
    """Records requests; the test decides when and how each one completes."""

    def __init__(self):
        self.requests = []

    def load(self, url, on_success, on_failure):
        self.requests.append((url, on_success, on_failure))

    @property
    def calls(self):
        return len(self.requests)

    def succeed(self, body, index=-1):
        self.requests[index][1](body)

    def fail(self, reason="connection refused", index=-1):
        self.requests[index][2](reason)


class FakeRegion:
    def __init__(self, height=None, font_size=None):
        self.height = height
        self.font_size = font_size
        self.texts = []

    def set_text(self, markup):
        self.texts.append(markup)

    @property
    def text(self):
        return self.texts[-1] if self.texts else None


class FakeLine:
    def __init__(self):
        self.texts = []

    def set_text(self, text):
        self.texts.append(text)

    @property
    def text(self):
        return self.texts[-1] if self.texts else None


class FakeVisuals:
    def __init__(self):
        self.calls = []

    def apply(self, header_color, text_color, background_opacity):
        self.calls.append((header_color, text_color, background_opacity))


def roster_json(supporters, **extra):
    return json.dumps({"supporters": supporters, **extra})


@pytest.fixture
def loader():
    return FakeLoader()


@pytest.fixture
def region():
    return FakeRegion()


@pytest.fixture
def status():
    return FakeLine()


@pytest.fixture
def header():
    return FakeLine()


@pytest.fixture
def visuals():
    return FakeVisuals()


@pytest.fixture
def make_config():
    def factory(urls=(ROSTER_URL,), retry_delay=0.0, **board):
        return AppConfig(
            source=SourceConfig(urls=list(urls), retry_delay=retry_delay),
            board=replace(BoardSettings(), **board),
        )

    return factory


@pytest.fixture
def make_board(loader, region, status, header, visuals, make_config):
    def factory(config=None, display=None, **board):
        return SupporterBoard(
            config or make_config(**board),
            loader,
            display or region,
            status,
            header=header,
            visuals=visuals,
        )

    return factory
