"""Exception types raised while loading config and aggregating player data."""

from __future__ import annotations

from pathlib import Path


class PlayerDataError(Exception):
    """Base class for every error raised by this project."""


class ConfigLoadError(PlayerDataError):
    """Raised when config.yml is missing, unreadable or invalid."""


class DecodeError(PlayerDataError):
    """Raised when a binary save file cannot be decoded."""

    def __init__(self, path: Path, message: str):
        self.path = Path(path)
        super().__init__(f"{self.path}: {message}")


class NotFoundError(PlayerDataError):
    """Raised when a binary save file does not exist."""

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f"{self.path}: file not found")


class NameLookupError(PlayerDataError):
    """Raised when the name history service cannot be reached or returns garbage."""

    def __init__(self, uuid: str, message: str):
        self.uuid = uuid
        super().__init__(f"name history lookup for {uuid} failed: {message}")


class AssetError(PlayerDataError):
    """Raised when a single asset download fails. Always logged, never fatal."""


class AggregationError(PlayerDataError):
    """Raised when a player snapshot cannot be built.

    ``stage`` names the step that failed (``validate``, ``state``,
    ``identity`` or ``cache``) so callers can decide whether retrying later makes sense.
    """

    def __init__(self, uuid: str, stage: str, message: str):
        self.uuid = uuid
        self.stage = stage
        super().__init__(f"[{stage}] {uuid}: {message}")
