"""Attribute encoders: how an incoming string is written for each data type"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

from ..constants import ContentDefaults, DataTypes
from ..protocols import (
    AttributeEncoder,
    ContentAttribute,
    ContentObject,
    RemoteFetcher,
    RichTextParser,
)
from ..types import RelationKind
from .fetch import ImageFetcher, cache_path
from .richtext import wrap

logger = logging.getLogger(__name__)


class DefaultEncoder:
    """Uses the attribute's ``from_string`` when it has one, else raw ``data_text``."""

    def encode(self, obj: ContentObject, attribute: ContentAttribute, value: str) -> None:
        from_string = getattr(attribute, "from_string", None)
        if callable(from_string):
            from_string(value)
        else:
            attribute.data_text = value


class ImageEncoder:
    """
    Ingests ``sourceURL[|altText]`` values into image attributes.

    The source is retrieved into the download cache, loaded into the
    attribute's image content and the downloaded file is deleted. An empty
    source or a failed retrieval leaves the attribute untouched.
    """

    def __init__(
        self,
        fetcher: Optional[RemoteFetcher] = None,
        cache_dir: Union[str, Path] = ContentDefaults.CACHE_DIR,
    ):
        self.fetcher = fetcher or ImageFetcher()
        self.cache_dir = Path(cache_dir)

    @staticmethod
    def parse_value(value: str):
        """Split ``source|alt`` into (source, alt); spaces in the source become %20."""
        parts = value.strip().split(ContentDefaults.IMAGE_VALUE_SEPARATOR)
        source = parts[0].strip().replace(" ", "%20")
        alternative_text = parts[1] if len(parts) > 1 else None
        return source, alternative_text

    def encode(self, obj: ContentObject, attribute: ContentAttribute, value: str) -> None:
        source, alternative_text = self.parse_value(value)
        if not source:
            return

        downloaded = self.fetcher.fetch(source, cache_path(source, self.cache_dir))
        if downloaded is None or not downloaded.exists():
            logger.debug(f"Image source {source} unavailable, {attribute.identifier} left unset")
            return

        try:
            content = attribute.content
            content.initialize_from_file(str(downloaded), alternative_text)
            content.store(attribute)
        finally:
            downloaded.unlink(missing_ok=True)


class RichTextEncoder:
    """Parses rich text, registers link/embed relations and stores the XML form."""

    def __init__(self, parser: RichTextParser):
        self.parser = parser

    def encode(self, obj: ContentObject, attribute: ContentAttribute, value: str) -> None:
        parsed = self.parser.process(wrap(value))
        if parsed.url_ids:
            self.parser.update_url_object_links(attribute, parsed.url_ids)

        obj.append_input_relations(parsed.linked_object_ids, RelationKind.LINK)
        obj.append_input_relations(parsed.embedded_object_ids, RelationKind.EMBED)

        stored = self.parser.serialize(parsed.document) if parsed.document is not None else None
        DefaultEncoder().encode(obj, attribute, stored)


class AttributeEncoderRegistry:
    """
    Maps data type tags to encoders.

    Lookups for unregistered tags return the fallback encoder, so new data
    types only need a ``register`` call.
    """

    def __init__(self, fallback: Optional[AttributeEncoder] = None):
        self._encoders: Dict[str, AttributeEncoder] = {}
        self.fallback = fallback or DefaultEncoder()

    def register(self, data_type_string: str, encoder: AttributeEncoder) -> None:
        self._encoders[data_type_string] = encoder

    def unregister(self, data_type_string: str) -> None:
        self._encoders.pop(data_type_string, None)

    def get(self, data_type_string: str) -> AttributeEncoder:
        return self._encoders.get(data_type_string, self.fallback)

    def __contains__(self, data_type_string: str) -> bool:
        return data_type_string in self._encoders

    @classmethod
    def default(
        cls,
        parser: RichTextParser,
        fetcher: Optional[RemoteFetcher] = None,
        cache_dir: Union[str, Path] = ContentDefaults.CACHE_DIR,
    ) -> "AttributeEncoderRegistry":
        """Registry with the image and rich-text encoders installed."""
        registry = cls()
        registry.register(DataTypes.IMAGE, ImageEncoder(fetcher, cache_dir))
        registry.register(DataTypes.RICH_TEXT, RichTextEncoder(parser))
        return registry
