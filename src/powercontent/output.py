"""Output sinks for facade progress and error messages"""

import logging
from typing import Any, Dict, Optional, Sequence, TextIO

import click

from .constants import ConsoleStyles, ContentDefaults

# style tag -> click.style keyword arguments
STYLE_MAP: Dict[str, Dict[str, Any]] = {
    ConsoleStyles.ERROR: {"fg": "red", "bold": True},
    "white": {"fg": "white"},
    "green": {"fg": "green"},
    "yellow": {"fg": "yellow"},
    "red": {"fg": "red"},
    "blue": {"fg": "blue"},
    "cyan": {"fg": "cyan"},
    "bold": {"bold": True},
}


def stylize(style: str, message: str) -> str:
    """Apply a style tag to a message; unknown tags leave it untouched."""
    options = STYLE_MAP.get(style)
    if not options:
        return message
    return click.style(message, **options)


class ConsoleSink:
    """Writes styled messages to the terminal with click."""

    def __init__(self, stream: Optional[TextIO] = None, color: Optional[bool] = None):
        self.stream = stream
        self.color = color

    def error(self, message: str, **context) -> None:
        click.echo(stylize(ConsoleStyles.ERROR, message), file=self.stream, color=self.color)

    def debug(self, message: str, styles: Sequence[str] = (ConsoleStyles.DEFAULT,), **context) -> None:
        for style in styles:
            message = stylize(style, message)
        click.echo(message, file=self.stream, color=self.color)


class LoggingSink:
    """Routes messages to the logging framework under a fixed source tag."""

    def __init__(self, source: str = ContentDefaults.DEBUG_SOURCE):
        self.logger = logging.getLogger(source)

    def error(self, message: str, **context) -> None:
        self.logger.error(message, extra=self._extra(context))

    def debug(self, message: str, styles: Sequence[str] = (ConsoleStyles.DEFAULT,), **context) -> None:
        self.logger.debug(message, extra=self._extra(context))

    def _extra(self, context: Dict[str, Any]) -> Dict[str, Any]:
        extra = {k: v for k, v in context.items() if v is not None}
        extra["source"] = self.logger.name
        return extra
