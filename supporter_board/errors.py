from __future__ import annotations


class BoardError(Exception):
    pass


class ConfigError(BoardError, ValueError):
    """Missing or invalid source configuration."""


class NetworkError(BoardError):
    """A fetch did not produce a body."""


class FormatError(BoardError):
    """The fetched document does not have the roster shape."""


class EntryError(BoardError):
    """A single roster entry could not be read."""
