"""Tests for the rich-text input parser."""

import pytest
from lxml import etree

from powercontent.content.richtext import XmlRichTextParser, wrap

pytestmark = pytest.mark.unit


class FakeUrls:
    def __init__(self):
        self.urls = []
        self.linked = {}

    def register_url(self, url):
        if url not in self.urls:
            self.urls.append(url)
        return self.urls.index(url) + 10

    def link_urls(self, attribute, url_ids):
        self.linked[attribute] = list(url_ids)


def _xml(parsed):
    return etree.tostring(parsed.document, encoding="unicode")


class TestXmlRichTextParser:
    """Test conversion of editor markup into the section document."""

    @pytest.fixture
    def urls(self):
        return FakeUrls()

    @pytest.fixture
    def parser(self, urls):
        return XmlRichTextParser(urls=urls, node_resolver={5: 50}.get)

    def test_paragraphs_and_formatting(self, parser):
        parsed = parser.process(wrap("<p>Hello <b>bold</b> and <em>soft</em><br/>end</p>"))

        assert _xml(parsed) == (
            "<section><paragraph>Hello <strong>bold</strong> and "
            "<emphasize>soft</emphasize><line/>end</paragraph></section>"
        )
        assert parsed.linked_object_ids == []
        assert parsed.embedded_object_ids == []

    def test_bare_text_becomes_paragraph(self, parser):
        parsed = parser.process(wrap("  just text  "))

        assert _xml(parsed) == "<section><paragraph>just text</paragraph></section>"

    def test_headers(self, parser):
        parsed = parser.process(wrap("<h2>Title</h2><p>Body</p>"))

        assert _xml(parsed) == (
            '<section><header level="2">Title</header><paragraph>Body</paragraph></section>'
        )

    def test_object_and_node_links(self, parser):
        parsed = parser.process(
            wrap('<p><a href="ezobject://3">obj</a> <a href="eznode://5">node</a> <a href="ezobject://3">again</a></p>')
        )

        assert parsed.linked_object_ids == [3, 50]
        assert '<link object_id="3">obj</link>' in _xml(parsed)
        assert '<link node_id="5">node</link>' in _xml(parsed)

    def test_unresolved_node_link_adds_no_relation(self, parser):
        parsed = parser.process(wrap('<a href="eznode://99">gone</a>'))

        assert parsed.linked_object_ids == []

    def test_external_urls_are_registered(self, parser, urls):
        parsed = parser.process(
            wrap('<p><a href="https://example.com" target="_blank">site</a> <a href="#top">up</a></p>')
        )

        assert urls.urls == ["https://example.com"]
        assert parsed.url_ids == [10]
        assert '<link url_id="10" target="_blank">site</link>' in _xml(parsed)
        assert '<link anchor_name="top">up</link>' in _xml(parsed)

    def test_embeds(self, parser):
        parsed = parser.process(
            wrap('<p>Intro</p><embed href="ezobject://7" size="medium" align="right"/><img src="/plain.png"/>')
        )

        assert parsed.embedded_object_ids == [7]
        assert _xml(parsed) == (
            '<section><paragraph>Intro</paragraph>'
            '<paragraph><embed object_id="7" size="medium" align="right"/></paragraph></section>'
        )

    def test_preformatted_and_quotes_are_blocks(self, parser):
        parsed = parser.process(wrap("<pre>code <b>x</b></pre><blockquote>q</blockquote><p>after</p>"))

        assert _xml(parsed) == (
            "<section><paragraph><literal>code x</literal></paragraph>"
            '<paragraph><custom name="quote"><paragraph>q</paragraph></custom></paragraph>'
            "<paragraph>after</paragraph></section>"
        )

    def test_lists_are_wrapped_in_paragraphs(self, parser):
        parsed = parser.process(wrap("<ul><li>a</li><li>b</li></ul>"))

        assert _xml(parsed) == "<section><paragraph><ul><li>a</li><li>b</li></ul></paragraph></section>"

    def test_underline_and_scripts_become_custom_tags(self, parser):
        parsed = parser.process(wrap("<p><u>under</u> H<sub>2</sub>O</p>"))

        assert _xml(parsed) == (
            '<section><paragraph><custom name="underline">under</custom> '
            'H<custom name="sub">2</custom>O</paragraph></section>'
        )

    def test_unknown_tags_are_unwrapped(self, parser):
        parsed = parser.process(wrap("<p><span class='x'>kept</span></p>"))

        assert _xml(parsed) == "<section><paragraph>kept</paragraph></section>"

    def test_serialize_adds_declaration(self, parser):
        parsed = parser.process(wrap("<p>x</p>"))

        assert parser.serialize(parsed.document) == (
            '<?xml version="1.0" encoding="utf-8"?>\n<section><paragraph>x</paragraph></section>'
        )

    def test_empty_input_has_no_document(self, parser):
        assert parser.process("").document is None

    def test_url_links_are_delegated(self, parser, urls):
        parser.update_url_object_links("attr", [10, 11])

        assert urls.linked == {"attr": [10, 11]}

    def test_without_registry_urls_stay_inline(self):
        parsed = XmlRichTextParser().process(wrap('<a href="https://example.com">x</a>'))

        assert parsed.url_ids == []
        assert '<link href="https://example.com">x</link>' in _xml(parsed)


def test_wrap_strips_value():
    assert wrap("  <p>x</p>\n") == "<div><p>x</p></div>"
    assert wrap("x", container="section") == "<section>x</section>"
