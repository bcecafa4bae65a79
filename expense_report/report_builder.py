"""
Report Builder module for Expense Report Service.

Turns a paginated Document into a print-ready HTML string. Every page is a
fixed-size box and every element is absolutely positioned at the
coordinates chosen by the PaginationEngine, so the PDF converter never
re-flows or re-paginates the content.
This module is stateless - returns strings without file I/O.
"""

from html import escape
from typing import List

from .layout import DEFAULT_LAYOUT, LayoutConfig
from .pagination import Document, Element, Page, RuleElement, TextElement


def get_html_template(title: str, layout: LayoutConfig = DEFAULT_LAYOUT) -> str:
    """
    Generate the HTML header template.

    Args:
        title: Document title
        layout: Page geometry used for the @page rule and page boxes

    Returns:
        HTML header string
    """
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>{escape(title)}</title>
    <style>
        * {{
            box-sizing: border-box;
        }}

        body {{
            font-family: Helvetica, Arial, sans-serif;
            color: #000;
            margin: 0;
        }}

        .page {{
            position: relative;
            width: {layout.page_width}pt;
            height: {layout.page_height}pt;
            overflow: hidden;
            page-break-after: always;
        }}

        .page:last-child {{
            page-break-after: auto;
        }}

        .text {{
            position: absolute;
            margin: 0;
            white-space: pre;
        }}

        .text.center {{
            text-align: center;
        }}

        .bold {{
            font-weight: bold;
        }}

        .underline {{
            text-decoration: underline;
        }}

        .rule {{
            position: absolute;
            height: 0;
            border-top: 1px solid #000;
        }}

        /* Print/PDF styles */
        @page {{
            size: {layout.page_width}pt {layout.page_height}pt;
            margin: 0;
        }}
    </style>
</head>
<body>
"""


def get_html_footer() -> str:
    """
    Generate the HTML footer.

    Returns:
        HTML footer string
    """
    return """
</body>
</html>
"""


def render_element(element: Element, layout: LayoutConfig = DEFAULT_LAYOUT) -> str:
    """Render one positioned element as an absolutely positioned HTML tag."""
    if isinstance(element, RuleElement):
        return (
            f'<div class="rule" style="left: {element.x_start}pt; top: {element.y}pt; '
            f'width: {element.x_end - element.x_start}pt"></div>'
        )

    if isinstance(element, TextElement):
        style = element.style
        classes = ["text"]
        if style.bold:
            classes.append("bold")
        if style.underline:
            classes.append("underline")

        css = [
            f"left: {element.x}pt",
            f"top: {element.y}pt",
            f"font-size: {style.font_size}pt",
            f"line-height: {style.line_height}pt",
            f"color: {element.color}",
        ]
        if element.align == "center":
            classes.append("center")
            css.append(f"width: {layout.content_width}pt")

        return f'<p class="{" ".join(classes)}" style="{"; ".join(css)}">{escape(element.text)}</p>'

    raise TypeError(f"Unsupported element type: {type(element).__name__}")


def render_page(page: Page, layout: LayoutConfig = DEFAULT_LAYOUT) -> str:
    """Render one page box with all of its elements."""
    body = "\n".join(render_element(e, layout) for e in page.elements)
    return f'<div class="page" id="page-{page.index + 1}">\n{body}\n</div>'


def assemble_report(document: Document, layout: LayoutConfig = DEFAULT_LAYOUT) -> str:
    """
    Assemble a complete HTML report from a paginated document.

    Args:
        document: The composed document
        layout: Layout the document was composed with

    Returns:
        Complete HTML document as a string
    """
    pages_html: List[str] = [render_page(page, layout) for page in document.pages]

    html = get_html_template(document.title, layout)
    html += "\n".join(pages_html)
    html += get_html_footer()
    return html
