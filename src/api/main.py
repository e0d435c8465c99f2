
# --- [1] Standard Library Imports ---
import os
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

# --- [2] Third-Party Imports ---
import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

# --- [3] Local Application Imports ---
from ..config import format_file_size, load_app_config
from ..data_processing.dashboard import build_dashboard
from ..data_processing.pipeline import HealthAnalysisPipeline, failure_envelope
from ..data_processing.validation import read_upload_form
from ..errors import HealthAnalysisError
from ..llm_client import GeminiModelClient
from ..parser import AnalysisExtractor, DocumentClassifier
from ..storage import SqlAnalysisStore, SqlRewardLedger, create_session_factory
from .schemas import (
    AnalysisFailureResponse,
    AnalysisSuccessResponse,
    DashboardResponse,
    ReadinessResponse,
)

# --- [4] Application Setup & Configuration ---
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logging.getLogger('google.generativeai').setLevel(logging.WARNING)


def build_pipeline(params: Dict[str, Any]) -> HealthAnalysisPipeline:
    """Wires the Gemini client, the database and the ledger into one pipeline."""
    api_key = os.getenv('GEMINI_API_KEY', '')
    if not api_key:
        logging.warning("GEMINI_API_KEY is not set; Gemini calls will fail.")
    client = GeminiModelClient(api_key, params.get('llm_config', {}))
    session_factory = create_session_factory(params.get('database_config', {}))
    return HealthAnalysisPipeline(
        classifier=DocumentClassifier(client),
        extractor=AnalysisExtractor(client),
        store=SqlAnalysisStore(session_factory),
        ledger=SqlRewardLedger(session_factory, params.get('reward_config', {})),
    )


def get_pipeline(request: Request) -> HealthAnalysisPipeline:
    pipeline = request.app.state.pipeline
    if pipeline is None:
        raise HTTPException(status_code=503, detail="Service Unavailable: AI models are not initialized.")
    return pipeline


def envelope_response(envelope, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope.model_dump(mode='json', by_alias=True))


# --- [5] API Endpoints ---
router = APIRouter()


@router.get("/")
def read_root() -> Dict[str, str]:
    return {"status": "Health analysis API is running!"}


@router.post(
    "/analyze",
    response_model=AnalysisSuccessResponse,
    responses={400: {"model": AnalysisFailureResponse}, 500: {"model": AnalysisFailureResponse}},
    tags=["Analysis"],
)
async def analyze_document(request: Request, pipeline: HealthAnalysisPipeline = Depends(get_pipeline)):
    upload_config = request.app.state.params['upload_config']
    try:
        document = await read_upload_form(
            request,
            allowed_types=upload_config['allowed_file_types'],
            max_size=upload_config['max_file_size'],
        )
    except HealthAnalysisError as e:
        logging.warning(f"Rejected upload: {e.kind} - {e}")
        outcome = failure_envelope(e)
    else:
        # Gemini and the database are blocking calls
        outcome = await run_in_threadpool(pipeline.run, document)
    return envelope_response(outcome.envelope, outcome.status_code)


@router.get("/analyze", response_model=ReadinessResponse, tags=["Analysis"])
def analysis_readiness(request: Request) -> ReadinessResponse:
    upload_config = request.app.state.params['upload_config']
    return ReadinessResponse(
        status="ready",
        message="Health analysis API is ready (JSON format only)",
        supported_file_types=list(upload_config['allowed_file_types']),
        max_file_size=format_file_size(upload_config['max_file_size']),
        response_format="JSON",
    )


@router.get("/dashboard", response_model=DashboardResponse, tags=["Dashboard"])
def wallet_dashboard(
    wallet_address: Optional[str] = Query(None, alias="walletAddress"),
    pipeline: HealthAnalysisPipeline = Depends(get_pipeline),
):
    if not wallet_address or not wallet_address.strip():
        return envelope_response(
            DashboardResponse(success=False, error="Wallet address is required"), 400
        )

    data = build_dashboard(pipeline.store, pipeline.ledger, wallet_address.strip())
    if data is None:
        return envelope_response(
            DashboardResponse(
                success=False,
                error="User not found",
                details=f"No analyses recorded for wallet {wallet_address.strip()}",
            ),
            404,
        )
    return envelope_response(DashboardResponse(success=True, data=data), 200)


# --- [6] App Factory ---
def create_app(
    pipeline: Optional[HealthAnalysisPipeline] = None,
    params: Optional[Dict[str, Any]] = None,
) -> FastAPI:
    """
    Builds the FastAPI app. Pass a ready pipeline to skip wiring Gemini and the
    database at startup (tests do this with a fake model client).
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.pipeline is None:
            try:
                app.state.pipeline = build_pipeline(app.state.params)
                logging.info("✅ Classifier, extractor and database initialized successfully.")
            except Exception as e:
                logging.error(f"❌ CRITICAL: Failed to initialize the analysis pipeline: {e}", exc_info=True)
                app.state.pipeline = None
        yield

    app = FastAPI(
        title="Health Analysis API",
        description="Classifies uploaded health documents with Gemini, extracts a structured analysis and rewards the uploader.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.params = params if params is not None else load_app_config()
    app.state.pipeline = pipeline

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "src.api.main:app",
        host=os.getenv("API_HOST", "127.0.0.1"),
        port=int(os.getenv("API_PORT", 8000)),
    )
