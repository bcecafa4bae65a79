"""
Layout configuration for the PDF report.

All measurements are in PostScript points (1/72 inch), measured from the
top-left corner of the page. A LayoutConfig is built once and shared
read-only by every composer and pagination engine.
"""

from dataclasses import dataclass, field

# A4 in points
A4_WIDTH = 595.28
A4_HEIGHT = 841.89


@dataclass(frozen=True)
class TextStyle:
    """Font settings for a line of text."""
    font_size: float
    bold: bool = False
    underline: bool = False
    color: str = "black"
    leading: float = 1.25  # line height as a multiple of font size

    @property
    def line_height(self) -> float:
        return self.font_size * self.leading


@dataclass(frozen=True)
class TableColumns:
    """Horizontal offsets of the breakdown table columns."""
    category: float = 50
    amount: float = 260
    budget: float = 360
    status: float = 460
    end: float = 550


@dataclass(frozen=True)
class Colors:
    primary: str = "black"
    secondary: str = "gray"
    success: str = "green"
    danger: str = "red"


@dataclass(frozen=True)
class LayoutConfig:
    page_width: float = A4_WIDTH
    page_height: float = A4_HEIGHT
    margin: float = 40
    h1: TextStyle = TextStyle(font_size=20, bold=True)
    h2: TextStyle = TextStyle(font_size=15, bold=True, underline=True)
    h3: TextStyle = TextStyle(font_size=14, bold=True)
    body: TextStyle = TextStyle(font_size=12)
    small: TextStyle = TextStyle(font_size=11)
    columns: TableColumns = field(default_factory=TableColumns)
    colors: Colors = field(default_factory=Colors)
    row_height: float = 20
    section_gap: float = 24
    paragraph_gap: float = 12
    date_gap: float = 9  # vertical gap between transactions on different dates
    list_line_gap: float = 5.5

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin

    def style(self, name: str) -> TextStyle:
        """Look up a style by name ("h1", "h2", "h3", "body", "small")."""
        if name not in ("h1", "h2", "h3", "body", "small"):
            raise KeyError(f"Unknown text style: {name}")
        return getattr(self, name)


DEFAULT_LAYOUT = LayoutConfig()
