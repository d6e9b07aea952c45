"""Pydantic request/response schemas for the FastAPI endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class OCRRequest(BaseModel):
    """Request body for processing a single form image."""

    s3_url: str | None = None


class LeadData(BaseModel):
    """Structured fields extracted from one form."""

    first_name: str = ""
    last_name: str = ""
    mobile_no: str = ""
    email: str = ""
    school_college_name: str = ""
    current_grade: str = ""
    completion_year: str = ""
    father_name: str = ""
    mother_name: str = ""
    program_interested_in: str = ""
    comments: str = ""
    image_url: str = ""


class OCRResponse(BaseModel):
    """Response schema for a processed form."""

    local_id: int
    lead_data: LeadData
    admissions_uploadedLeads: Any = None
    admissions_leadStatusUpdate: Any = None


class BatchItemResponse(BaseModel):
    """Response schema for one form inside a batch import."""

    image_url: str
    status: str
    result: OCRResponse | None = None
    error: str | None = None
    detail: str | None = None


class AutoImportResponse(BaseModel):
    """Response schema for a batch import run."""

    processed: int
    failed: int
    results: list[BatchItemResponse]


class StoredLeadResponse(BaseModel):
    """Response schema for a lead loaded from storage."""

    id: int
    lead_data: LeadData
    raw_text: str
    created_at: datetime | None = None


class ErrorResponse(BaseModel):
    """Structured error body returned on pipeline failures."""

    error: str
    detail: str | None = None
    stage: str | None = None
