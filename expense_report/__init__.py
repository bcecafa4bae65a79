"""
Core module for Expense Report Service.

This module contains all business logic for building expense reports.
Apart from the record stores, the functions here do not touch the file system.

Modules:
- config: Settings and constants
- layout: Page geometry and text styles
- models: Records, budgets and the aggregated report context
- aggregator: Totals, category grouping and budget comparison
- prompts: AI prompt for the insights section
- narrative: Gemini API call with fallback
- pagination: Cursor-based page layout
- composer: Report sections laid out through the pagination engine
- report_builder: HTML assembly of the laid-out pages
- pdf_converter: HTML to PDF conversion and chunking
- storage: Record stores (in-memory, JSON file, Supabase)
- orchestrator: Request validation, commit point and streaming
"""

from .config import (
    GEMINI_API_URL,
    GEMINI_API_KEY,
    NARRATIVE_TIMEOUT,
    FALLBACK_TEXT,
    SUPABASE_URL,
    RECORDS_FILE,
    DEFAULT_OUTPUT_DIR,
    STREAM_CHUNK_SIZE,
    REPORT_TITLE,
    is_narrative_configured,
    is_supabase_configured,
    validate_config,
)

from .exceptions import (
    ReportError,
    ReportInputError,
    CollaboratorError,
    StorageError,
)

from .layout import (
    TextStyle,
    LayoutConfig,
    DEFAULT_LAYOUT,
)

from .models import (
    Expense,
    Income,
    FinancialRecord,
    BudgetLimit,
    CategoryAggregate,
    FinanceData,
    ReportContext,
)

from .aggregator import (
    aggregate,
    status_for,
    build_category_report,
    CategoryReportRow,
)

from .narrative import (
    NarrativeClient,
    DisabledNarrativeClient,
    NarrativeOk,
    NarrativeFallback,
    NarrativeResult,
)

from .pagination import (
    Cursor,
    PaginationEngine,
    Document,
    Page,
)

from .composer import (
    DocumentComposer,
)

from .report_builder import (
    assemble_report,
)

from .pdf_converter import (
    html_to_pdf,
    render_document,
)

from .storage import (
    RecordStore,
    InMemoryRecordStore,
    JsonFileRecordStore,
    SupabaseRecordStore,
    build_record_store,
)

from .orchestrator import (
    ReportOrchestrator,
    ReportRun,
    ReportState,
    report_filename,
)

__all__ = [
    # Config
    'GEMINI_API_URL',
    'GEMINI_API_KEY',
    'NARRATIVE_TIMEOUT',
    'FALLBACK_TEXT',
    'SUPABASE_URL',
    'RECORDS_FILE',
    'DEFAULT_OUTPUT_DIR',
    'STREAM_CHUNK_SIZE',
    'REPORT_TITLE',
    'is_narrative_configured',
    'is_supabase_configured',
    'validate_config',
    # Exceptions
    'ReportError',
    'ReportInputError',
    'CollaboratorError',
    'StorageError',
    # Layout
    'TextStyle',
    'LayoutConfig',
    'DEFAULT_LAYOUT',
    # Models
    'Expense',
    'Income',
    'FinancialRecord',
    'BudgetLimit',
    'CategoryAggregate',
    'FinanceData',
    'ReportContext',
    # Aggregation
    'aggregate',
    'status_for',
    'build_category_report',
    'CategoryReportRow',
    # Narrative
    'NarrativeClient',
    'DisabledNarrativeClient',
    'NarrativeOk',
    'NarrativeFallback',
    'NarrativeResult',
    # Pagination / composition
    'Cursor',
    'PaginationEngine',
    'Document',
    'Page',
    'DocumentComposer',
    # Rendering
    'assemble_report',
    'html_to_pdf',
    'render_document',
    # Storage
    'RecordStore',
    'InMemoryRecordStore',
    'JsonFileRecordStore',
    'SupabaseRecordStore',
    'build_record_store',
    # Orchestration
    'ReportOrchestrator',
    'ReportRun',
    'ReportState',
    'report_filename',
]
