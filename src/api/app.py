"""FastAPI application for the admission form OCR service.

Provides endpoints for processing a single form, importing new forms
from the source feed, looking up stored leads, and health checks. The
hourly scheduled import runs inside the application lifespan.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from src.errors import FetchError, PipelineError, SourceFeedError
from src.pipeline.components import build_components
from src.pipeline.importer import AutoImporter
from src.pipeline.orchestrator import LeadPipeline
from src.pipeline.scheduler import ImportScheduler
from src.storage.repository import LeadRepository
from src.utils.config import load_config
from src.utils.logger import get_logger, setup_logging

from .schemas import (
    AutoImportResponse,
    ErrorResponse,
    LeadData,
    OCRRequest,
    OCRResponse,
    StoredLeadResponse,
)

logger = get_logger(__name__)

_UPSTREAM_ERRORS = (FetchError, SourceFeedError)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start shared components and the import scheduler for the app's lifetime.

    Uses ``app.state.config`` when a launcher has set it, otherwise loads
    the default configuration file.
    """
    config = getattr(app.state, "config", None) or load_config()
    setup_logging(config.log_level)
    components = build_components(config)
    app.state.components = components

    scheduler = None
    if components.importer and config.imports.schedule_enabled:
        interval = config.imports.interval_seconds
        scheduler = ImportScheduler(
            components.importer, interval=interval, align_to_hour=interval == 3600
        )
        await scheduler.start()

    try:
        yield
    finally:
        if scheduler:
            await scheduler.stop()
        components.close()


app = FastAPI(
    title="Admission Form OCR API",
    description="Digitize scanned admission forms into structured leads",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_pipeline(request: Request) -> LeadPipeline:
    return request.app.state.components.pipeline


def get_importer(request: Request) -> AutoImporter | None:
    return request.app.state.components.importer


def get_repository(request: Request) -> LeadRepository:
    return request.app.state.components.repository


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    """Render pipeline failures as structured error bodies."""
    status_code = 502 if isinstance(exc, _UPSTREAM_ERRORS) else 500
    logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.kind, exc.detail)
    body = ErrorResponse(error=exc.kind, detail=exc.detail, stage=exc.stage)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.get("/health", response_class=PlainTextResponse)
def health_check() -> str:
    """Return a plain liveness marker."""
    return "OK"


@app.post("/ocr", response_model=OCRResponse, responses={400: {"model": ErrorResponse}})
def process_form(
    body: OCRRequest,
    pipeline: LeadPipeline = Depends(get_pipeline),
) -> OCRResponse | JSONResponse:
    """Process one form image and return the stored lead.

    Args:
        body: Request carrying the image URL in ``s3_url``.
        pipeline: Shared lead pipeline.

    Returns:
        Local identifier, extracted lead and admissions responses.
    """
    if not body.s3_url:
        return JSONResponse(status_code=400, content={"error": "s3_url required"})

    result = pipeline.process(body.s3_url)
    return OCRResponse(**result.to_dict())


@app.get(
    "/auto-import",
    response_model=AutoImportResponse,
    responses={400: {"model": ErrorResponse}},
)
def auto_import(
    importer: AutoImporter | None = Depends(get_importer),
) -> AutoImportResponse | JSONResponse:
    """Process every form the source feed lists as new."""
    if importer is None:
        return JSONResponse(status_code=400, content={"error": "SOURCE_API not set"})

    batch = importer.run()
    return AutoImportResponse(**batch.to_dict())


@app.get("/leads/{lead_id}", response_model=StoredLeadResponse)
def get_lead(
    lead_id: int,
    repository: LeadRepository = Depends(get_repository),
) -> StoredLeadResponse:
    """Return a stored lead by its local identifier."""
    stored = repository.get(lead_id)
    if stored is None:
        raise HTTPException(status_code=404, detail=f"Lead {lead_id} not found")

    return StoredLeadResponse(
        id=stored.id,
        lead_data=LeadData(**stored.record.to_dict()),
        raw_text=stored.raw_text,
        created_at=stored.created_at,
    )
