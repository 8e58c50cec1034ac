"""Content mutation facade and the attribute encoding it relies on."""

from .facade import PowerContent
from .encoders import (
    AttributeEncoderRegistry,
    DefaultEncoder,
    ImageEncoder,
    RichTextEncoder,
)
from .fetch import ImageFetcher
from .richtext import XmlRichTextParser

__all__ = [
    "PowerContent",
    "AttributeEncoderRegistry",
    "DefaultEncoder",
    "ImageEncoder",
    "RichTextEncoder",
    "ImageFetcher",
    "XmlRichTextParser",
]
