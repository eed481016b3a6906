"""
User acceptance tests: whole-document transforms a caller would write.

Each test reads like a small script: parse or build a tree, walk and edit
it through the public API, render the result.
"""

import pytest
from doogie import (
    ArenaEngine,
    Code,
    Document,
    EventType,
    Heading,
    Item,
    Link,
    List,
    Paragraph,
    Text,
    parse_document,
)
from doogie.config import Config


@pytest.fixture
def engine():
    return ArenaEngine(Config())


class TestTransforms:
    def test_uppercase_all_text(self, engine):
        doc = parse_document("# hello\n\n*world* and `code`\n", engine)
        for node, _ in doc.iter():
            if isinstance(node, Text):
                node.content = node.content.upper()
        assert doc.render_commonmark() == "# HELLO\n\n*WORLD* AND `code`\n"

    def test_prune_deep_headings(self, engine):
        doc = parse_document("# Keep\n\n###### Drop\n\ntext\n\n###### Also\n", engine)
        doomed = [
            node for node, event in doc.iter()
            if isinstance(node, Heading) and event is EventType.ENTER and node.level == 6
        ]
        for heading in doomed:
            heading.unlink()
        assert doc.render_commonmark() == "# Keep\n\ntext\n"
        assert len(doc.manager.roots) == 3

    def test_rewrite_links(self, engine):
        doc = parse_document("See [docs](http://a.com/docs) and [home](http://a.com).\n", engine)
        for node, _ in doc.iter():
            if isinstance(node, Link):
                node.url = node.url.replace("http://", "https://")
        assert doc.render_commonmark() == "See [docs](https://a.com/docs) and [home](https://a.com).\n"

    def test_collect_code_spans(self, engine):
        doc = parse_document("Run `make` then `make test`.\n", engine)
        spans = [node.content for node, _ in doc.iter() if isinstance(node, Code)]
        assert spans == ["make", "make test"]

    def test_outline(self, engine):
        doc = parse_document("# A\n\ntext\n\n## B\n\n### C\n", engine)
        outline = [
            ("  " * (h.level - 1)) + h.first_child().content
            for h in doc.children() if isinstance(h, Heading)
        ]
        assert outline == ["A", "  B", "    C"]


class TestBuilding:
    def test_build_from_scratch(self, engine):
        doc = Document.new(engine)

        heading = Heading.new(engine)
        heading.level = 2
        title = Text.new(engine)
        title.content = "Title"
        heading.append_child(title)
        doc.append_child(heading)

        bullets = List.new(engine)
        bullets.tight = True
        for word in ("one", "two"):
            text = Text.new(engine)
            text.content = word
            para = Paragraph.new(engine)
            para.append_child(text)
            item = Item.new(engine)
            item.append_child(para)
            bullets.append_child(item)
        doc.append_child(bullets)

        assert doc.render_commonmark() == "## Title\n\n- one\n- two\n"
        assert parse_document(doc.render_commonmark(), engine).render_commonmark() == doc.render_commonmark()

    def test_built_tree_freed_with_document(self, engine):
        with Document.new(engine) as doc:
            para = Paragraph.new(engine)
            doc.append_child(para)
            text = Text.new(engine)
            text.content = "x"
            para.append_child(text)
            assert doc.render_xml().count("<") == 8
        assert len(engine) == 0
