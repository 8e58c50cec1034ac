"""Constants module for PowerContent.

Constants are organized into logical groups, following the pattern:

    ```python
    class CategoryDefaults:
        \"\"\"Default values for category operations.\"\"\"
        SOME_VALUE: Final[int] = 100
    ```

Usage examples:
    >>> from powercontent.constants import DataTypes, ContentDefaults
    >>>
    >>> DataTypes.IMAGE
    'ezimage'
    >>> ContentDefaults.CACHE_DIR
    'var/cache'

See also:
    - configuration: Runtime configuration that may override these defaults
    - types: Enumerations used alongside these values
"""

from typing import Final


class DataTypes:
    """Data type tags that have a dedicated attribute encoder."""

    IMAGE: Final[str] = "ezimage"
    RICH_TEXT: Final[str] = "ezxmltext"
    STRING: Final[str] = "ezstring"


class ContentDefaults:
    """Default values used by the content facade."""

    CACHE_DIR: Final[str] = "var/cache"
    DEBUG_SOURCE: Final[str] = "PowerContent"
    USER_AGENT: Final[str] = "PowerContent/1.0"
    RICH_TEXT_CONTAINER: Final[str] = "div"
    IMAGE_VALUE_SEPARATOR: Final[str] = "|"
    OBJECT_URL_SCHEME: Final[str] = "ezobject://"
    NODE_URL_SCHEME: Final[str] = "eznode://"


class ConsoleStyles:
    """Style tags understood by output sinks."""

    ERROR: Final[str] = "error"
    DEFAULT: Final[str] = "white"
    CREATED: Final[str] = "green"
    UPDATED: Final[str] = "yellow"
    REMOVED: Final[str] = "red"


class SiteDefaults:
    """Identifiers seeded into a freshly initialized in-memory site."""

    ROOT_NODE_ID: Final[int] = 1
    HOME_NODE_ID: Final[int] = 2
    ADMIN_USER_ID: Final[int] = 14
    STANDARD_SECTION_ID: Final[int] = 1


__all__ = [
    "DataTypes",
    "ContentDefaults",
    "ConsoleStyles",
    "SiteDefaults",
]
