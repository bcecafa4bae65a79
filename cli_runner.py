#!/usr/bin/env python3
"""
CLI Runner for Expense Report Service.

Handles the file system side of local report generation:
- Reading records from a JSON file
- Calling Core modules for processing
- Saving PDF (and optionally HTML) reports to disk

Usage:
    python cli_runner.py --start 2025-09-01 --end 2025-09-30 [options]

Examples:
    python cli_runner.py --start 2025-09-01 --end 2025-09-30
    python cli_runner.py --start 2025-09-01 --end 2025-09-30 --records my_records.json --no-ai
    python cli_runner.py --start 2025-09-01 --end 2025-09-30 --html
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

# Import all report functionality
from expense_report import (
    # Config
    RECORDS_FILE,
    DEFAULT_OUTPUT_DIR,
    GEMINI_API_URL,
    is_narrative_configured,
    # Errors
    ReportError,
    # Narrative
    NarrativeClient,
    DisabledNarrativeClient,
    # Storage
    JsonFileRecordStore,
    # Orchestration
    ReportOrchestrator,
    ReportState,
    # Rendering
    assemble_report,
    render_document,
    DEFAULT_LAYOUT,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


# =============================================================================
# FILE SYSTEM OPERATIONS (CLI-SPECIFIC)
# =============================================================================

def save_html_report(html_content: str, output_path: Path) -> bool:
    """
    Save HTML report to disk.

    Args:
        html_content: The HTML string to save
        output_path: Path where to save the file

    Returns:
        True if successful, False otherwise
    """
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(html_content)
        return True
    except OSError as e:
        logger.error(f"Error saving report to {output_path}: {e}")
        return False


def save_pdf_report(pdf_bytes: bytes, output_path: Path) -> bool:
    """Save PDF report to disk. Returns True if successful."""
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'wb') as f:
            f.write(pdf_bytes)
        return True
    except OSError as e:
        logger.error(f"Error saving PDF to {output_path}: {e}")
        return False


# =============================================================================
# REPORT GENERATION (ORCHESTRATION)
# =============================================================================

class _HtmlCapturingRenderer:
    """Wraps a renderer and keeps the HTML of the last rendered document."""

    def __init__(self, renderer):
        self.renderer = renderer
        self.html: Optional[str] = None

    def __call__(self, document, layout):
        self.html = assemble_report(document, layout)
        return self.renderer(document, layout)


async def generate_report(
    orchestrator: ReportOrchestrator,
    start_date: str,
    end_date: str,
    output_dir: Path,
    html_capture: Optional[_HtmlCapturingRenderer] = None,
) -> Optional[Path]:
    """
    Generate one PDF report and write it to ``output_dir``.

    When ``html_capture`` is the orchestrator's renderer, the intermediate
    HTML is saved next to the PDF under the same validated name, even if
    PDF conversion fails.

    Returns:
        Path of the written PDF, or None on failure
    """
    try:
        run = await orchestrator.prepare(start_date, end_date)
    except ReportError as e:
        logger.error(f"❌ {e.message}" + (f" ({e.details})" if e.details else ""))
        return None

    chunks = [chunk async for chunk in orchestrator.stream(run)]

    if html_capture is not None and html_capture.html is not None:
        html_path = output_dir / Path(run.filename).with_suffix(".html").name
        if save_html_report(html_capture.html, html_path):
            logger.info(f"HTML report saved to: {html_path}")

    if run.state != ReportState.DONE:
        logger.error(f"❌ Report generation stopped during {run.state.value}: {run.error}")
        return None

    if run.narrative is not None and run.narrative.is_fallback:
        logger.warning(f"⚠️  AI section used fallback text: {run.narrative.reason}")

    pdf_path = output_dir / run.filename
    if not save_pdf_report(b"".join(chunks), pdf_path):
        return None

    logger.info(f"PDF report saved to: {pdf_path}")
    return pdf_path


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate an expense report PDF from a records file")
    parser.add_argument("--start", required=True, help="Period start date (YYYY-MM-DD)")
    parser.add_argument("--end", required=True, help="Period end date (YYYY-MM-DD)")
    parser.add_argument("--records", type=Path, default=RECORDS_FILE, help="JSON records file")
    parser.add_argument("--output-dir", type=Path, default=DEFAULT_OUTPUT_DIR, help="Where to write reports")
    parser.add_argument("--no-ai", action="store_true", help="Skip the AI summary call")
    parser.add_argument("--html", action="store_true", help="Also save the intermediate HTML")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for local report generation."""
    args = parse_args(argv)

    logger.info("=" * 60)
    logger.info("Starting Expense Report Generator")
    logger.info(f"Records: {args.records}")
    logger.info("=" * 60)

    if args.no_ai:
        narrator = DisabledNarrativeClient()
        logger.info("AI summary disabled (--no-ai)")
    else:
        if not is_narrative_configured():
            logger.warning("⚠️  GEMINI_API_KEY not set - the AI section will use fallback text")
        else:
            logger.info(f"AI summaries via: {GEMINI_API_URL}")
        narrator = NarrativeClient()

    capture = _HtmlCapturingRenderer(render_document) if args.html else None

    orchestrator = ReportOrchestrator(
        store=JsonFileRecordStore(args.records),
        narrator=narrator,
        layout=DEFAULT_LAYOUT,
        renderer=capture or render_document,
    )

    pdf_path = asyncio.run(
        generate_report(orchestrator, args.start, args.end, args.output_dir, html_capture=capture)
    )

    logger.info("=" * 60)
    logger.info("REPORT GENERATION " + ("COMPLETE" if pdf_path else "FAILED"))
    logger.info("=" * 60)
    return 0 if pdf_path else 1


if __name__ == "__main__":
    sys.exit(main())
