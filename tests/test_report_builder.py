"""Tests for HTML assembly and PDF chunking."""

import pytest

from expense_report import DEFAULT_LAYOUT, DocumentComposer, assemble_report
from expense_report.pagination import Document, Page, RuleElement, TextElement
from expense_report.pdf_converter import iter_chunks
from expense_report.report_builder import render_element, render_page


def text(value, **kwargs):
    defaults = dict(x=40, y=60, style=DEFAULT_LAYOUT.body, color="black")
    defaults.update(kwargs)
    return TextElement(text=value, **defaults)


class TestRenderElement:
    """Test suite for render_element."""

    def test_text_is_escaped_and_positioned(self):
        html = render_element(text("Food & Drinks <b>"))

        assert "Food &amp; Drinks &lt;b&gt;" in html
        assert "left: 40pt" in html
        assert "top: 60pt" in html
        assert "font-size: 12pt" in html

    def test_heading_classes(self):
        html = render_element(text("Financial Summary", style=DEFAULT_LAYOUT.h2))

        assert 'class="text bold underline"' in html

    def test_centered_text_spans_content_width(self):
        html = render_element(text("Title", align="center"))

        assert "center" in html
        assert f"width: {DEFAULT_LAYOUT.content_width}pt" in html

    def test_color(self):
        assert "color: red" in render_element(text("Overspent", color="red"))

    def test_rule(self):
        html = render_element(RuleElement(x_start=50, x_end=550, y=100))

        assert 'class="rule"' in html
        assert "width: 500pt" in html

    def test_unknown_element(self):
        with pytest.raises(TypeError):
            render_element("not an element")


class TestAssembleReport:
    """Test suite for assemble_report."""

    def test_one_page_box_per_page(self, food_context):
        document = DocumentComposer().compose(food_context, "Summary")
        html = assemble_report(document)

        assert html.startswith("<!DOCTYPE html>")
        assert html.rstrip().endswith("</html>")
        assert html.count('<div class="page"') == document.page_count
        assert 'id="page-1"' in html
        assert f'id="page-{document.page_count}"' in html
        assert "<title>Detailed Expense Report</title>" in html

    def test_page_size_rule(self):
        html = assemble_report(Document(title="T", pages=[Page(index=0)]))

        assert f"size: {DEFAULT_LAYOUT.page_width}pt {DEFAULT_LAYOUT.page_height}pt" in html

    def test_empty_page(self):
        assert render_page(Page(index=2)) == '<div class="page" id="page-3">\n\n</div>'


class TestIterChunks:
    """Test suite for iter_chunks."""

    def test_chunks_cover_all_bytes(self):
        data = bytes(range(256)) * 10
        chunks = list(iter_chunks(data, chunk_size=1000))

        assert [len(c) for c in chunks] == [1000, 1000, 560]
        assert b"".join(chunks) == data

    def test_empty(self):
        assert list(iter_chunks(b"")) == []
