"""
Configuration module for Expense Report Service.

Loads environment variables and defines all constants used across the application.
Both CLI and Server can import settings from here.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# =============================================================================
# NARRATIVE (GEMINI) CONFIGURATION
# =============================================================================

# Placeholders keep the process alive without credentials; the call then
# fails upstream and the report falls back to FALLBACK_TEXT.
GEMINI_API_KEY_PLACEHOLDER = "YOUR_GEMINI_API_KEY"

GEMINI_API_URL = os.getenv(
    "GEMINI_API_URL",
    "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"
)
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "") or GEMINI_API_KEY_PLACEHOLDER

NARRATIVE_TIMEOUT = float(os.getenv("NARRATIVE_TIMEOUT", "30"))  # seconds

FALLBACK_TEXT = "AI summary could not be generated at this time."

# =============================================================================
# RECORD STORAGE CONFIGURATION
# =============================================================================

SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY", "")
SUPABASE_EXPENSES_TABLE = os.getenv("SUPABASE_EXPENSES_TABLE", "expenses")
SUPABASE_INCOMES_TABLE = os.getenv("SUPABASE_INCOMES_TABLE", "incomes")
SUPABASE_BUDGETS_TABLE = os.getenv("SUPABASE_BUDGETS_TABLE", "budgets")
STORAGE_TIMEOUT = float(os.getenv("STORAGE_TIMEOUT", "30"))
SUPABASE_PAGE_SIZE = int(os.getenv("SUPABASE_PAGE_SIZE", "1000"))  # rows per request; PostgREST max-rows defaults to 1000
SUPABASE_ORDER_COLUMN = os.getenv("SUPABASE_ORDER_COLUMN", "id")  # stable order for paging

RECORDS_FILE = Path(os.getenv("RECORDS_FILE", "./data/sample_records.json"))

# =============================================================================
# OUTPUT CONFIGURATION
# =============================================================================

DEFAULT_OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", "./All_Reports"))
STREAM_CHUNK_SIZE = 64 * 1024  # bytes per streamed PDF chunk

REPORT_TITLE = "Detailed Expense Report"


def is_narrative_configured() -> bool:
    """Whether a real Gemini API key was supplied."""
    return GEMINI_API_KEY != GEMINI_API_KEY_PLACEHOLDER


def is_supabase_configured() -> bool:
    """Whether Supabase credentials are present."""
    return bool(SUPABASE_URL and SUPABASE_SERVICE_KEY)


def validate_config() -> tuple[bool, list[str]]:
    """
    Validate that recommended configuration is present.

    Nothing here is fatal: a missing key only degrades the narrative
    section and missing storage settings fall back to RECORDS_FILE.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    if not is_narrative_configured():
        errors.append("GEMINI_API_KEY environment variable is not set (AI summary will use fallback text)")

    if not is_supabase_configured() and not RECORDS_FILE.exists():
        errors.append(
            f"SUPABASE_URL/SUPABASE_SERVICE_KEY are not set and records file {RECORDS_FILE} does not exist"
        )

    return len(errors) == 0, errors
