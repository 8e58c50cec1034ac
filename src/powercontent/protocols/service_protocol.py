"""
Service protocol definitions for PowerContent's own pluggable parts.

These are not host collaborators: they describe where PowerContent sends its
progress messages, how it retrieves remote image sources and how a data type
tag is turned into a stored attribute value.
"""

from pathlib import Path
from typing import Protocol, Optional, Sequence
from abc import abstractmethod

from .content_protocol import ContentAttribute, ContentObject


class OutputSink(Protocol):
    """Protocol for progress and error output."""

    @abstractmethod
    def error(self, message: str, **context) -> None:
        """
        Report an error.

        Args:
            message: Human readable message
            **context: Structured context (object_id, node_id, remote_id)
        """
        ...

    @abstractmethod
    def debug(self, message: str, styles: Sequence[str] = ("white",), **context) -> None:
        """
        Report progress.

        Args:
            message: Human readable message
            styles: Style tags applied in order by console sinks
            **context: Structured context (object_id, node_id, remote_id)
        """
        ...


class RemoteFetcher(Protocol):
    """Protocol for retrieving an image source into a local file."""

    @abstractmethod
    def fetch(self, source: str, destination: Path) -> Optional[Path]:
        """
        Retrieve ``source`` into ``destination``.

        Returns:
            The destination path when a file was written, otherwise None
        """
        ...


class AttributeEncoder(Protocol):
    """Protocol for writing a string value into an attribute of one data type."""

    @abstractmethod
    def encode(self, obj: ContentObject, attribute: ContentAttribute, value: str) -> None:
        """
        Write ``value`` into ``attribute``.

        The caller stores the attribute afterwards.

        Args:
            obj: Object owning the attribute (receives pending relations)
            attribute: Attribute being written
            value: Incoming string value
        """
        ...
