"""
PDF Converter Module.

Renders a composed Document to PDF bytes: the document is assembled into
positioned HTML (report_builder) and printed with weasyprint. The layout
is already final, so weasyprint only paints the page boxes.
"""

import logging
from typing import Iterator, Optional

try:
    from weasyprint import HTML
    from weasyprint.text.fonts import FontConfiguration
    WEASYPRINT_AVAILABLE = True
except (ImportError, OSError):
    # OSError: the package is installed but its native libraries (Pango) are not
    WEASYPRINT_AVAILABLE = False

from .config import STREAM_CHUNK_SIZE
from .layout import DEFAULT_LAYOUT, LayoutConfig
from .pagination import Document
from .report_builder import assemble_report

logger = logging.getLogger(__name__)


def html_to_pdf(html_content: str) -> Optional[bytes]:
    """
    Convert a positioned HTML report to PDF bytes.

    Args:
        html_content: Complete HTML document string

    Returns:
        PDF as bytes, or None if conversion fails
    """
    if not WEASYPRINT_AVAILABLE:
        logger.error("weasyprint (or its Pango libraries) is not available. Run: pip install weasyprint")
        return None

    try:
        pdf_bytes = HTML(string=html_content).write_pdf(font_config=FontConfiguration())
    except Exception as e:
        logger.error(f"PDF conversion failed: {e}")
        return None

    logger.info(f"PDF generated successfully ({len(pdf_bytes):,} bytes)")
    return pdf_bytes


def render_document(document: Document, layout: LayoutConfig = DEFAULT_LAYOUT) -> Optional[bytes]:
    """Assemble the document's HTML and print it to PDF."""
    return html_to_pdf(assemble_report(document, layout))


def iter_chunks(data: bytes, chunk_size: int = STREAM_CHUNK_SIZE) -> Iterator[bytes]:
    """Split PDF bytes into chunks for streaming."""
    for offset in range(0, len(data), chunk_size):
        yield data[offset:offset + chunk_size]
