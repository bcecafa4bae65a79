"""
Pagination module for Expense Report Service.

The PaginationEngine owns a Cursor and is the only place that decides where
the next piece of content lands. Page breaks happen before content that
would overflow the bottom margin, so a line or table row is never split
across pages.

Output is a Document: a list of Pages holding positioned elements, with
coordinates in points from the top-left corner of the page. Rendering the
document (HTML/PDF) is done elsewhere.
"""

import textwrap
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence, Union

from .layout import DEFAULT_LAYOUT, LayoutConfig, TextStyle

# Average Helvetica glyph width as a fraction of the font size
AVERAGE_CHAR_WIDTH = 0.5


@dataclass
class Cursor:
    page_index: int
    y: float
    page_height: float
    margin: float

    @property
    def top(self) -> float:
        return self.margin

    @property
    def bottom(self) -> float:
        return self.page_height - self.margin

    @property
    def remaining(self) -> float:
        return self.bottom - self.y


@dataclass(frozen=True)
class TextElement:
    text: str
    x: float
    y: float
    style: TextStyle
    color: str
    align: str = "left"


@dataclass(frozen=True)
class RuleElement:
    x_start: float
    x_end: float
    y: float


Element = Union[TextElement, RuleElement]


@dataclass
class Page:
    index: int
    elements: list[Element] = field(default_factory=list)

    @property
    def text_elements(self) -> list[TextElement]:
        return [e for e in self.elements if isinstance(e, TextElement)]

    @property
    def texts(self) -> list[str]:
        return [e.text for e in self.text_elements]


@dataclass(frozen=True)
class Cell:
    """One field of a table row."""
    text: str
    x: float
    color: Optional[str] = None


@dataclass
class Document:
    title: str
    pages: list[Page]

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def texts(self) -> list[str]:
        return [text for page in self.pages for text in page.texts]


class PaginationEngine:
    """
    Tracks the write cursor and flows content onto new pages.

    One engine per document; it is not safe to share between reports.
    """

    def __init__(self, layout: LayoutConfig = DEFAULT_LAYOUT):
        self.layout = layout
        self.cursor = Cursor(
            page_index=0,
            y=layout.margin,
            page_height=layout.page_height,
            margin=layout.margin,
        )
        self.pages: list[Page] = [Page(index=0)]
        self._running_header: Optional[tuple[str, TextStyle]] = None

    @property
    def current_page(self) -> Page:
        return self.pages[self.cursor.page_index]

    def _style(self, style: Union[str, TextStyle]) -> TextStyle:
        if isinstance(style, TextStyle):
            return style
        return self.layout.style(style)

    def max_chars(self, style: Union[str, TextStyle] = "body") -> int:
        """Estimated number of characters that fit on one line of the content width."""
        text_style = self._style(style)
        return max(1, int(self.layout.content_width / (text_style.font_size * AVERAGE_CHAR_WIDTH)))

    def fits(self, height: float) -> bool:
        """Whether ``height`` points of content fit above the bottom margin."""
        return self.cursor.y + height <= self.cursor.bottom

    def ensure_space(self, height: float) -> None:
        """
        Advance to a new page unless ``height`` fits on the current one.

        Content taller than a whole page is placed at the top of the current
        (fresh) page instead of advancing forever.
        """
        if not self.fits(height) and self.cursor.y > self.cursor.top:
            self.advance_page()

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    def write_line(
        self,
        text: str,
        style: Union[str, TextStyle] = "body",
        x: Optional[float] = None,
        align: str = "left",
        color: Optional[str] = None,
    ) -> TextElement:
        """Write one line of text and move the cursor down by its line height."""
        text_style = self._style(style)
        height = text_style.line_height
        self.ensure_space(height)

        element = TextElement(
            text=text,
            x=self.layout.margin if x is None else x,
            y=self.cursor.y,
            style=text_style,
            color=color or text_style.color,
            align=align,
        )
        self.current_page.elements.append(element)
        self.cursor.y += height
        return element

    def write_row(
        self,
        cells: Sequence[Union[Cell, tuple]],
        style: Union[str, TextStyle] = "body",
    ) -> list[TextElement]:
        """Write several fields at the same vertical position, then move down one row."""
        text_style = self._style(style)
        height = max(self.layout.row_height, text_style.line_height)
        self.ensure_space(height)

        y = self.cursor.y
        written = []
        for cell in cells:
            if not isinstance(cell, Cell):
                cell = Cell(*cell)
            element = TextElement(
                text=cell.text,
                x=cell.x,
                y=y,
                style=text_style,
                color=cell.color or text_style.color,
            )
            self.current_page.elements.append(element)
            written.append(element)

        self.cursor.y += height
        return written

    def advance_page(self) -> Page:
        """Start a new page and reset the cursor to the top margin."""
        self.pages.append(Page(index=len(self.pages)))
        self.cursor.page_index = len(self.pages) - 1
        self.cursor.y = self.cursor.top

        if self._running_header is not None:
            text, style = self._running_header
            self.write_line(text, style)
            self.space_before(self.layout.paragraph_gap)

        return self.current_page

    def space_before(self, amount: float) -> None:
        """Add vertical whitespace without emitting content."""
        self.cursor.y += amount

    # -------------------------------------------------------------------------
    # Composite helpers
    # -------------------------------------------------------------------------

    def write_section_title(self, title: str, style: Union[str, TextStyle] = "h2") -> TextElement:
        """
        Write a section heading followed by a paragraph gap.

        The heading is kept together with at least one body line, so it never
        ends up alone at the bottom of a page.
        """
        text_style = self._style(style)
        self.ensure_space(
            text_style.line_height + self.layout.paragraph_gap + self.layout.body.line_height
        )
        element = self.write_line(title, text_style)
        self.space_before(self.layout.paragraph_gap)
        return element

    def write_paragraph(
        self,
        text: str,
        style: Union[str, TextStyle] = "body",
        color: Optional[str] = None,
    ) -> list[TextElement]:
        """Wrap prose to the content width and write it line by line."""
        text_style = self._style(style)
        chars_per_line = self.max_chars(text_style)

        written = []
        for raw_line in text.splitlines():
            if not raw_line.strip():
                self.space_before(text_style.line_height / 2)
                continue
            for line in textwrap.wrap(raw_line, width=chars_per_line, break_long_words=True):
                written.append(self.write_line(line, text_style, color=color))
        return written

    def draw_rule(self, x_start: float, x_end: float, gap: float = 5) -> RuleElement:
        """Draw a horizontal line ``gap`` points below the cursor and move past it."""
        self.ensure_space(2 * gap)
        rule = RuleElement(x_start=x_start, x_end=x_end, y=self.cursor.y + gap)
        self.current_page.elements.append(rule)
        self.cursor.y += 2 * gap
        return rule

    def start_new_page(self) -> None:
        """Move to a fresh page unless the current one is still empty."""
        if self.current_page.elements:
            self.advance_page()

    @contextmanager
    def running_header(self, text: str, style: Union[str, TextStyle] = "h2") -> Iterator[None]:
        """Repeat ``text`` at the top of every page started inside the block."""
        previous = self._running_header
        self._running_header = (text, self._style(style))
        try:
            yield
        finally:
            self._running_header = previous

    def finish(self, title: str) -> Document:
        return Document(title=title, pages=list(self.pages))
