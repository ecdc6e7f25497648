#!/usr/bin/env python3
"""
FastAPI Underwriting Application
Deal analysis endpoint with on-demand Excel and PDF exports of the result.
"""

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel
from typing import Dict, List, Optional
from functools import lru_cache
import os
import uuid
from datetime import datetime
import logging

from analysis_models import AnalysisModel, AnalysisResult, BuyBoxCriteria, PropertyInput, Recommendation
from report_errors import ExportError, MalformedInputError, MissingResultError, PageOverflowError
from settings import settings
from underwriting_analyzer import (
    AnalysisError,
    AnalysisProvider,
    AnalysisRequest,
    SampleAnalysisProvider,
    UploadedDocument,
)
from underwriting_output import UnderwritingOutputGenerator

# FastAPI app initialization
app = FastAPI(
    title="CRE Underwriter AI",
    description="Commercial real estate deal analysis with Excel and PDF exports",
    version="1.0.0"
)

# CORS middleware for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Models for API responses
class AnalysisSession(BaseModel):
    session_id: str
    status: str  # "processing", "completed", "error"
    property_input: PropertyInput
    results: Optional[AnalysisResult] = None
    error_message: Optional[str] = None
    created_at: datetime

class DealRecord(AnalysisModel):
    session_id: str
    address: str
    date: str
    status: Recommendation
    coc_return: float

# In-memory storage (process-local)
processing_sessions: Dict[str, AnalysisSession] = {}
deal_history: List[DealRecord] = []
buy_box_settings: Dict[str, BuyBoxCriteria] = {"current": BuyBoxCriteria()}

# Setup logging
logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)


@lru_cache
def get_analysis_provider() -> AnalysisProvider:
    return SampleAnalysisProvider(delay_seconds=settings.ANALYSIS_DELAY_SECONDS, debug=settings.DEBUG)


@lru_cache
def get_output_generator() -> UnderwritingOutputGenerator:
    return UnderwritingOutputGenerator(
        assumptions=settings.model_assumptions(),
        strict_page_fit=settings.STRICT_PAGE_FIT,
        debug=settings.DEBUG,
    )


@app.post("/api/analyze")
async def analyze_deal(
    address: str = Form(""),
    city: str = Form(""),
    state: str = Form(""),
    t12: UploadFile = File(...),
    rent_roll: UploadFile = File(...),
    provider: AnalysisProvider = Depends(get_analysis_provider),
):
    """
    Run an underwriting analysis on a property and its T12 / rent roll uploads.
    Returns the session ID used to fetch results and exports.
    """
    try:
        t12_doc = UploadedDocument.from_upload(t12.filename, await t12.read())
        rent_roll_doc = UploadedDocument.from_upload(rent_roll.filename, await rent_roll.read())
    except AnalysisError as e:
        raise HTTPException(status_code=400, detail=str(e))

    property_input = PropertyInput(address=address, city=city, state=state)
    session_id = str(uuid.uuid4())
    session = AnalysisSession(
        session_id=session_id,
        status="processing",
        property_input=property_input,
        created_at=datetime.now(),
    )
    processing_sessions[session_id] = session

    request = AnalysisRequest(
        property_input=property_input,
        t12=t12_doc,
        rent_roll=rent_roll_doc,
        criteria=buy_box_settings["current"],
    )

    try:
        result = await run_in_threadpool(provider.analyze, request)
    except AnalysisError as e:
        logger.error(f"❌ Analysis failed for session {session_id}: {str(e)}")
        session.status = "error"
        session.error_message = str(e)
        raise HTTPException(status_code=502, detail=f"Analysis failed: {str(e)}")
    except Exception as e:
        logger.exception(f"❌ Unexpected analysis error for session {session_id}: {str(e)}")
        session.status = "error"
        session.error_message = str(e)
        raise HTTPException(status_code=502, detail=f"Analysis failed: {str(e)}")

    session.status = "completed"
    session.results = result
    deal_history.append(DealRecord(
        session_id=session_id,
        address=result.property_info.address,
        date=session.created_at.date().isoformat(),
        status=result.recommendation,
        coc_return=result.financials.coc_return,
    ))
    logger.info(f"✅ Analysis completed for session {session_id}")

    return {"session_id": session_id, "results": result.model_dump(by_alias=True, mode="json")}


@app.get("/api/results/{session_id}")
async def get_results(session_id: str):
    """Get the analysis result for a completed session."""
    session = _get_session(session_id)
    if session.status != "completed":
        raise HTTPException(status_code=409, detail=f"Analysis not completed (status: {session.status})")

    return session.results.model_dump(by_alias=True, mode="json")


@app.get("/api/export/{session_id}/{file_type}")
async def export_report(
    session_id: str,
    file_type: str,
    save: bool = False,
    generator: UnderwritingOutputGenerator = Depends(get_output_generator),
):
    """Download the analysis as an Excel workbook or a PDF report."""
    session = _get_session(session_id)

    if file_type == "excel":
        export = generator.export_excel
    elif file_type == "pdf":
        export = generator.export_pdf
    else:
        raise HTTPException(status_code=400, detail="Invalid file type")

    try:
        artifact = export(session.results)
        if save:
            generator.save(artifact, settings.EXPORT_DIR)
    except MissingResultError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (MalformedInputError, PageOverflowError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ExportError as e:
        raise HTTPException(status_code=500, detail=str(e))

    logger.info(f"📥 Session {session_id}: {artifact.filename} ({artifact.size:,} bytes)")
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


@app.get("/api/buy-box")
async def get_buy_box():
    """Current investment criteria."""
    return buy_box_settings["current"].model_dump(by_alias=True)


@app.put("/api/buy-box")
async def update_buy_box(criteria: BuyBoxCriteria):
    """Replace the investment criteria passed to future analyses."""
    buy_box_settings["current"] = criteria
    logger.info(f"⚙️ Buy box updated: {criteria.model_dump(by_alias=True)}")
    return criteria.model_dump(by_alias=True)


@app.get("/api/deals")
async def list_deals():
    """Deal history, most recent first."""
    deals = [deal.model_dump(by_alias=True, mode="json") for deal in reversed(deal_history)]
    approved = sum(1 for deal in deal_history if deal.status == Recommendation.PASS)
    return {"deals": deals, "approved": approved, "total": len(deal_history)}


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


def _get_session(session_id: str) -> AnalysisSession:
    if session_id not in processing_sessions:
        raise HTTPException(status_code=404, detail="Session not found")
    return processing_sessions[session_id]


if __name__ == "__main__":
    import uvicorn

    os.makedirs(settings.EXPORT_DIR, exist_ok=True)

    print("🚀 Starting CRE Underwriter AI Server...")
    print("📊 Access the API at: http://localhost:8000/docs")

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
