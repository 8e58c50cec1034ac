"""Exceptions raised by PowerContent."""

from typing import Any, Dict, Optional


class PowerContentError(Exception):
    """Base class for errors raised by the content facade."""

    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.metadata = metadata or {}


class ResolutionError(PowerContentError):
    """A content class, parent node or object could not be resolved."""


class DuplicateRemoteIdError(PowerContentError):
    """An object with the requested remote ID already exists."""


class ConfigurationError(PowerContentError):
    """Configuration values failed validation."""


class SiteSnapshotError(PowerContentError):
    """A site snapshot file could not be read or validated."""
