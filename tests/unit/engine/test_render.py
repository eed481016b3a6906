"""
Unit tests for the CommonMark (mdformat) and XML renderers.
"""

import pytest
from doogie.config import Config, RenderConfig
from doogie.engine import ArenaEngine
from doogie.kinds import ListType, NodeKind

THEMATIC_BREAK = "_" * 70


@pytest.fixture
def engine():
    return ArenaEngine(Config())


def render(engine, source):
    return engine.render_commonmark(engine.parse(source.encode())).decode()


def paragraph_with(engine, kind, literal):
    doc = engine.allocate(NodeKind.DOCUMENT)
    para = engine.allocate(NodeKind.PARAGRAPH)
    node = engine.allocate(kind)
    engine.set_literal(node, literal.encode())
    engine.append_child(doc, para)
    engine.append_child(para, node)
    return doc


def link_with(engine, url, text="x"):
    doc = engine.allocate(NodeKind.DOCUMENT)
    para = engine.allocate(NodeKind.PARAGRAPH)
    link = engine.allocate(NodeKind.LINK)
    engine.set_url(link, url.encode())
    label = engine.allocate(NodeKind.TEXT)
    engine.set_literal(label, text.encode())
    engine.append_child(doc, para)
    engine.append_child(para, link)
    engine.append_child(link, label)
    return doc


class TestRoundTrip:
    @pytest.mark.parametrize("source", [
        "# Testing\n",
        "###### Deep\n",
        "- a\n- b\n",
        "- a\n\n- b\n",
        "- a\n  - b\n",
        "1. a\n2. b\n",
        "3. a\n4. b\n",
        "> quote\n",
        "> a\n>\n> b\n",
        "```py\nx = 1\n```\n",
        "*a* and **b**\n",
        '[x](http://a.com "T")\n',
        "![alt](a.png)\n",
        "<http://a.com>\n",
        "a\\\nb\n",
        "a\nb\n",
        "`code`\n",
        f"# Title\n\nBody text.\n\n{THEMATIC_BREAK}\n",
    ])
    def test_stable(self, engine, source):
        assert render(engine, source) == source

    def test_thematic_break_normalised(self, engine):
        assert render(engine, "***\n") == THEMATIC_BREAK + "\n"

    def test_paren_delimiter_normalised(self, engine):
        assert render(engine, "3) a\n") == "3. a\n"

    def test_empty_document(self, engine):
        assert render(engine, "") == ""

    def test_bullet_normalised(self, engine):
        assert render(engine, "+ a\n+ b\n") == "- a\n- b\n"

    def test_adjacent_lists_alternate_bullets(self, engine):
        assert render(engine, "- a\n\n* b\n") == "- a\n\n* b\n"

    def test_indented_code_becomes_fenced(self, engine):
        assert render(engine, "    code\n") == "```\ncode\n```\n"

    def test_inline_node_renders_without_newline(self, engine):
        doc = paragraph_with(engine, NodeKind.TEXT, "hi")
        text = engine.first_child(engine.first_child(doc))
        assert engine.render_commonmark(text) == b"hi"

    def test_subtree(self, engine):
        root = engine.parse(b"# A\n\n> quoted\n")
        assert engine.render_commonmark(engine.last_child(root)) == b"> quoted\n"

    def test_built_list(self, engine):
        doc = engine.allocate(NodeKind.DOCUMENT)
        lst = engine.allocate(NodeKind.LIST)
        engine.set_list_kind(lst, ListType.ORDERED)
        engine.set_list_start(lst, 7)
        engine.set_list_tight(lst, True)
        engine.append_child(doc, lst)
        for word in (b"x", b"y"):
            item = engine.allocate(NodeKind.ITEM)
            para = engine.allocate(NodeKind.PARAGRAPH)
            text = engine.allocate(NodeKind.TEXT)
            engine.set_literal(text, word)
            engine.append_child(para, text)
            engine.append_child(item, para)
            engine.append_child(lst, item)
        assert engine.render_commonmark(doc) == b"7. x\n8. y\n"


class TestEscaping:
    @pytest.mark.parametrize("literal,expected", [
        ("*not emph*", "\\*not emph\\*\n"),
        ("# not heading", "\\# not heading\n"),
        ("1. not list", "1\\. not list\n"),
        ("- not list", "\\- not list\n"),
        ("&amp;", "\\&amp;\n"),
        ("[x]", "\\[x\\]\n"),
    ])
    def test_text_escaped(self, engine, literal, expected):
        doc = paragraph_with(engine, NodeKind.TEXT, literal)
        assert engine.render_commonmark(doc).decode() == expected

    @pytest.mark.parametrize("literal,expected", [
        ("x", "`x`\n"),
        ("a`b", "`` a`b ``\n"),
    ])
    def test_code_span(self, engine, literal, expected):
        doc = paragraph_with(engine, NodeKind.CODE, literal)
        assert engine.render_commonmark(doc).decode() == expected

    def test_destination_with_space(self, engine):
        assert engine.render_commonmark(link_with(engine, "a b")) == b"[x](<a b>)\n"

    def test_link_text_differing_from_url_is_not_autolink(self, engine):
        assert engine.render_commonmark(link_with(engine, "http://a.com", "home")) == b"[home](http://a.com)\n"

    def test_code_fence_longer_than_content(self, engine):
        doc = engine.allocate(NodeKind.DOCUMENT)
        code = engine.allocate(NodeKind.CODE_BLOCK)
        engine.set_literal(code, b"```\n")
        engine.append_child(doc, code)
        assert engine.render_commonmark(doc).decode() == "````\n```\n````\n"

    def test_code_without_final_newline(self, engine):
        doc = engine.allocate(NodeKind.DOCUMENT)
        code = engine.allocate(NodeKind.CODE_BLOCK)
        engine.set_literal(code, b"x")
        engine.append_child(doc, code)
        assert engine.render_commonmark(doc).decode() == "```\nx\n```\n"


class TestOptions:
    def test_hardbreaks(self):
        engine = ArenaEngine(Config(render=RenderConfig(hardbreaks=True)))
        assert render(engine, "a\nb\n") == "a\\\nb\n"

    def test_repeated_numbering(self):
        engine = ArenaEngine(Config(render=RenderConfig(number=False)))
        assert render(engine, "1. a\n2. b\n") == "1. a\n1. b\n"


class TestXml:
    def test_document(self, engine):
        root = engine.parse(b"Hi *there*\n")
        assert engine.render_xml(root).decode() == (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<!DOCTYPE document SYSTEM "CommonMark.dtd">\n'
            '<document xmlns="http://commonmark.org/xml/1.0">\n'
            '  <paragraph>\n'
            '    <text xml:space="preserve">Hi </text>\n'
            '    <emph>\n'
            '      <text xml:space="preserve">there</text>\n'
            '    </emph>\n'
            '  </paragraph>\n'
            '</document>\n'
        )

    def test_attributes(self, engine):
        xml = engine.render_xml(engine.parse(b"## H\n\n2) a\n\n- b\n\n***\n\n[l](u)\n")).decode()
        assert '<heading level="2">' in xml
        assert '<list type="ordered" start="2" delim="paren" tight="true">' in xml
        assert '<list type="bullet" tight="true">' in xml
        assert "<thematic_break />" in xml
        assert '<link destination="u" title="">' in xml

    def test_code_block_info(self, engine):
        xml = engine.render_xml(engine.parse(b"```py\nx\n```\n")).decode()
        assert '<code_block info="py" xml:space="preserve">x\n</code_block>' in xml

    def test_escaping(self, engine):
        doc = paragraph_with(engine, NodeKind.TEXT, "a<b&c")
        assert '<text xml:space="preserve">a&lt;b&amp;c</text>' in engine.render_xml(doc).decode()
