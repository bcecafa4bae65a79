#!/usr/bin/env python3
"""
Server for Expense Report Service.

API that builds expense reports from stored income, expense and budget records.

Flow (PDF report):
1. Client POSTs {startDate, endDate}
2. Request is validated and records are loaded + aggregated
   (any failure here returns a JSON error)
3. The AI summary request starts in the background
4. The PDF is composed and streamed back; the AI section is written last
   (failures after the stream has started are only logged)

Usage:
    uvicorn server:app --reload --port 8000
"""

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel
from typing import Any, Optional
import logging

# Import all report functionality
from expense_report import (
    GEMINI_API_URL,
    SUPABASE_URL,
    RECORDS_FILE,
    validate_config,
    is_narrative_configured,
    is_supabase_configured,
    ReportError,
    NarrativeClient,
    ReportOrchestrator,
    build_record_store,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)

# =============================================================================
# FASTAPI APP
# =============================================================================

app = FastAPI(
    title="Expense Report Service",
    description="API for generating expense reports with AI insights",
    version="1.0.0"
)

# Global orchestrator instance (holds no per-request state)
_orchestrator: Optional[ReportOrchestrator] = None


def get_orchestrator() -> ReportOrchestrator:
    """Return the shared orchestrator, building it on first use."""
    global _orchestrator

    if _orchestrator is None:
        _orchestrator = ReportOrchestrator(
            store=build_record_store(),
            narrator=NarrativeClient(),
        )
    return _orchestrator


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class HealthResponse(BaseModel):
    status: str
    narrative_configured: bool
    supabase_configured: bool


class ReportPeriodRequest(BaseModel):
    """Request body for both report endpoints."""
    startDate: Optional[str] = None
    endDate: Optional[str] = None


class CategoryReportEntry(BaseModel):
    category: str
    totalAmount: float
    records: list[dict[str, Any]]


class InsightsRequest(BaseModel):
    """Optional instruction replacing the default AI prompt preamble."""
    description: Optional[str] = None


class InsightsResponse(BaseModel):
    summary: str
    fallback: bool


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(ReportError)
async def report_error_handler(request: Request, exc: ReportError):
    """Structured error for anything that fails before a stream starts."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies use the same error shape as missing fields."""
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": str(exc.errors())},
    )


# =============================================================================
# STARTUP
# =============================================================================

@app.on_event("startup")
async def startup_event():
    """Check configuration on startup. Nothing here is fatal."""
    is_valid, errors = validate_config()
    if not is_valid:
        logger.warning("Configuration is incomplete:")
        for error in errors:
            logger.warning(f"  - {error}")

    if is_supabase_configured():
        logger.info(f"Supabase configured: {SUPABASE_URL}")
    else:
        logger.warning(f"⚠️  Supabase not configured - records are read from {RECORDS_FILE}")

    if is_narrative_configured():
        logger.info(f"AI summaries via: {GEMINI_API_URL}")
    else:
        logger.warning("⚠️  GEMINI_API_KEY not set - reports will use the fallback AI summary")

    get_orchestrator()
    logger.info("Server started successfully")


# =============================================================================
# API ENDPOINTS
# =============================================================================

@app.get("/api/v1/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        narrative_configured=is_narrative_configured(),
        supabase_configured=is_supabase_configured()
    )


@app.post(
    "/api/v1/expenses/report",
    response_model=list[CategoryReportEntry],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def category_report(
    request: Optional[ReportPeriodRequest] = None,
    orchestrator: ReportOrchestrator = Depends(get_orchestrator),
):
    """
    Expense totals per category within [startDate, endDate], largest first.

    Request body:
    {
        "startDate": "2025-09-01",
        "endDate": "2025-09-30"
    }
    """
    request = request or ReportPeriodRequest()
    rows = await orchestrator.category_report(request.startDate, request.endDate)
    return [row.to_dict() for row in rows]


@app.post(
    "/api/v1/expenses/report/pdf",
    response_class=StreamingResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def pdf_report(
    request: Optional[ReportPeriodRequest] = None,
    orchestrator: ReportOrchestrator = Depends(get_orchestrator),
):
    """
    Stream the detailed PDF report.

    The document covers every stored record; the dates label the period.
    Validation and storage errors return JSON. Once streaming has started,
    failures can only truncate the document.
    """
    request = request or ReportPeriodRequest()
    logger.info(f"Received PDF report request: {request.startDate} to {request.endDate}")

    run = await orchestrator.prepare(request.startDate, request.endDate)

    return StreamingResponse(
        orchestrator.stream(run),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{run.filename}"'}
    )


@app.post(
    "/api/v1/insights",
    response_model=InsightsResponse,
    responses={500: {"model": ErrorResponse}},
)
async def insights(
    request: Optional[InsightsRequest] = None,
    orchestrator: ReportOrchestrator = Depends(get_orchestrator),
):
    """AI summary of all stored records, without building a document."""
    request = request or InsightsRequest()
    result = await orchestrator.insights(request.description)
    return InsightsResponse(summary=result.text, fallback=result.is_fallback)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "Expense Report Service",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
        "usage": {
            "pdf_report": "POST /api/v1/expenses/report/pdf",
            "category_report": "POST /api/v1/expenses/report",
            "insights": "POST /api/v1/insights",
            "body": {
                "startDate": "2025-09-01",
                "endDate": "2025-09-30"
            },
            "errors": {
                "error": "startDate and endDate are required",
                "details": "optional"
            }
        }
    }


# =============================================================================
# MAIN
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
