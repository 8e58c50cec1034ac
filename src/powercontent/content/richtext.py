"""Rich-text input parser producing the XML storage format.

Editor markup (XHTML-like, wrapped in a single container element) is parsed
leniently with ``lxml.html`` and rebuilt as a ``<section>`` document:

    <p>          -> <paragraph>
    <h1>..<h6>   -> <header level="n">
    <b>,<strong> -> <strong>
    <i>,<em>     -> <emphasize>
    <u>,<sub>,<sup>,<s> -> <custom name="underline|sub|sup|strike">
    <a href>     -> <link object_id|node_id|url_id>
    <pre>        -> <literal>
    <blockquote> -> <custom name="quote">
    <embed>,<img> referencing an object -> <embed object_id>

Block level lists, tables, literals, quotes and embeds are placed inside a
<paragraph>, as the storage format expects.

Object links and embeds are collected so the caller can register them as
relations; external URLs are registered and referenced by id.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from lxml import etree
from lxml import html as lxml_html

from ..constants import ContentDefaults
from ..protocols import ContentAttribute, ParsedRichText

logger = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>\n'

_OBJECT_REF = re.compile(r"^(?:ezobject://|eZObject_)(\d+)$")
_NODE_REF = re.compile(r"^(?:eznode://|eZNode_)(\d+)$")

_INLINE_TAGS = {
    "b": "strong",
    "strong": "strong",
    "i": "emphasize",
    "em": "emphasize",
}
_CUSTOM_INLINE_TAGS = {
    "u": "underline",
    "sub": "sub",
    "sup": "sup",
    "s": "strike",
    "strike": "strike",
}
_BLOCK_TAGS = {"p", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "table", "pre", "blockquote"}
_WRAPPED_BLOCK_TAGS = {"ul", "ol", "table", "pre", "blockquote"}
_PASSTHROUGH_TAGS = {"ul", "ol", "li", "table", "tr", "td", "th", "literal"}
_EMBED_ATTRIBUTES = ("view", "size", "align", "class")


class UrlRegistry(Protocol):
    """Host side store of external URLs referenced from rich text."""

    def register_url(self, url: str) -> int:
        ...

    def link_urls(self, attribute: ContentAttribute, url_ids: Sequence[int]) -> None:
        ...


class _ParseState:
    def __init__(self):
        self.linked: List[int] = []
        self.embedded: List[int] = []
        self.urls: List[int] = []

    @staticmethod
    def add(bucket: List[int], value: int) -> None:
        if value not in bucket:
            bucket.append(value)


def _append_text(target: etree._Element, text: Optional[str]) -> None:
    if not text:
        return
    if len(target):
        last = target[-1]
        last.tail = (last.tail or "") + text
    else:
        target.text = (target.text or "") + text


def _object_ref(*values: Optional[str]) -> Optional[int]:
    for value in values:
        if value:
            match = _OBJECT_REF.match(value.strip())
            if match:
                return int(match.group(1))
    return None


class XmlRichTextParser:
    """Parses editor markup into the XML storage document."""

    def __init__(
        self,
        urls: Optional[UrlRegistry] = None,
        node_resolver: Optional[Callable[[int], Optional[int]]] = None,
    ):
        self.urls = urls
        self.node_resolver = node_resolver

    def process(self, text: str) -> ParsedRichText:
        try:
            source = lxml_html.fragment_fromstring(text)
        except (etree.ParserError, etree.XMLSyntaxError) as e:
            logger.debug(f"Rich text input could not be parsed: {e}")
            return ParsedRichText(document=None)

        state = _ParseState()
        section = etree.Element("section")
        self._convert_children(source, section, state, top_level=True)
        return ParsedRichText(
            document=section,
            linked_object_ids=state.linked,
            embedded_object_ids=state.embedded,
            url_ids=state.urls,
        )

    def serialize(self, document: Any) -> str:
        return XML_DECLARATION + etree.tostring(document, encoding="unicode")

    def update_url_object_links(self, attribute: ContentAttribute, url_ids: Sequence[int]) -> None:
        if self.urls is not None:
            self.urls.link_urls(attribute, url_ids)

    def _convert_children(
        self,
        source: etree._Element,
        target: etree._Element,
        state: _ParseState,
        top_level: bool = False,
    ) -> None:
        # Top level inline content is collected into implicit paragraphs.
        paragraph: Optional[etree._Element] = None

        def container() -> etree._Element:
            nonlocal paragraph
            if not top_level:
                return target
            if paragraph is None:
                paragraph = etree.SubElement(target, "paragraph")
            return paragraph

        if source.text and (not top_level or source.text.strip()):
            _append_text(container(), source.text)

        for child in source:
            if not isinstance(child.tag, str):
                # Comments and processing instructions
                if child.tail and (not top_level or child.tail.strip()):
                    _append_text(container(), child.tail)
                continue
            tag = child.tag.lower()
            if top_level and (tag in _BLOCK_TAGS or self._is_block_embed(child)):
                paragraph = None
                self._convert_element(child, target, state, block_level=True)
            else:
                self._convert_element(child, container(), state)
            if child.tail and (not top_level or child.tail.strip()):
                _append_text(container(), child.tail)

    def _is_block_embed(self, element: etree._Element) -> bool:
        return element.tag.lower() in ("embed", "img") and element.get("inline") != "true"

    def _convert_element(
        self,
        element: etree._Element,
        target: etree._Element,
        state: _ParseState,
        block_level: bool = False,
    ) -> None:
        tag = element.tag.lower()
        if block_level and tag in _WRAPPED_BLOCK_TAGS:
            target = etree.SubElement(target, "paragraph")

        if tag == "p":
            self._convert_children(element, etree.SubElement(target, "paragraph"), state)
        elif len(tag) == 2 and tag[0] == "h" and tag[1] in "123456":
            header = etree.SubElement(target, "header", level=tag[1])
            self._convert_children(element, header, state)
        elif tag in _INLINE_TAGS:
            self._convert_children(element, etree.SubElement(target, _INLINE_TAGS[tag]), state)
        elif tag in _CUSTOM_INLINE_TAGS:
            custom = etree.SubElement(target, "custom", name=_CUSTOM_INLINE_TAGS[tag])
            self._convert_children(element, custom, state)
        elif tag == "pre":
            etree.SubElement(target, "literal").text = "".join(element.itertext())
        elif tag == "blockquote":
            quote = etree.SubElement(target, "custom", name="quote")
            self._convert_children(element, quote, state, top_level=True)
        elif tag == "br":
            etree.SubElement(target, "line")
        elif tag == "a":
            self._convert_link(element, target, state)
        elif tag in ("embed", "embed-inline", "img"):
            self._convert_embed(element, target, state, block_level)
        elif tag in _PASSTHROUGH_TAGS:
            self._convert_children(element, etree.SubElement(target, tag), state)
        else:
            # Unknown markup is unwrapped, its content kept.
            self._convert_children(element, target, state)

    def _convert_link(self, element: etree._Element, target: etree._Element, state: _ParseState) -> None:
        href = (element.get("href") or "").strip()
        attributes: Dict[str, str] = {}

        object_id = _object_ref(href)
        node_match = _NODE_REF.match(href)
        if object_id is not None:
            attributes["object_id"] = str(object_id)
            state.add(state.linked, object_id)
        elif node_match:
            node_id = int(node_match.group(1))
            attributes["node_id"] = str(node_id)
            linked = self.node_resolver(node_id) if self.node_resolver else None
            if linked is not None:
                state.add(state.linked, linked)
        elif href.startswith("#"):
            attributes["anchor_name"] = href[1:]
        elif href and self.urls is not None:
            url_id = self.urls.register_url(href)
            attributes["url_id"] = str(url_id)
            state.add(state.urls, url_id)
        elif href:
            attributes["href"] = href
        else:
            self._convert_children(element, target, state)
            return

        if element.get("target"):
            attributes["target"] = element.get("target")
        link = etree.SubElement(target, "link", **attributes)
        self._convert_children(element, link, state)

    def _convert_embed(
        self,
        element: etree._Element,
        target: etree._Element,
        state: _ParseState,
        block_level: bool = False,
    ) -> None:
        object_id = _object_ref(
            element.get("href"),
            element.get("id"),
            element.get("src"),
        )
        if object_id is None and (element.get("object_id") or "").isdigit():
            object_id = int(element.get("object_id"))
        if object_id is None:
            # Plain images without an object reference carry no content.
            return

        if block_level:
            target = etree.SubElement(target, "paragraph")
        tag = "embed-inline" if element.tag.lower() == "embed-inline" or element.get("inline") == "true" else "embed"
        embed = etree.SubElement(target, tag, object_id=str(object_id))
        for name in _EMBED_ATTRIBUTES:
            if element.get(name):
                embed.set(name, element.get(name))
        state.add(state.embedded, object_id)


def wrap(value: str, container: str = ContentDefaults.RICH_TEXT_CONTAINER) -> str:
    return f"<{container}>{value.strip()}</{container}>"
