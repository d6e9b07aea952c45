"""Core data types shared across the pipeline stages."""

from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class ImageAsset:
    """A transient local copy of a source image (original or conditioned)."""

    reference: str
    path: Path


@dataclass
class LeadRecord:
    """Structured fields extracted from one admission form.

    Every field is a string and defaults to empty; extraction is
    best-effort and a partially filled record is valid.
    """

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

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        normalizers: Mapping[str, Callable[[str], str]] | None = None,
    ) -> "LeadRecord":
        """Build a record from an arbitrary mapping such as model JSON output.

        Unknown keys are ignored; missing or null values become empty strings.

        Args:
            data: Source mapping keyed by field name.
            normalizers: Optional per-field normalization functions.

        Returns:
            A fully populated LeadRecord.
        """
        normalizers = normalizers or {}
        values: dict[str, str] = {}
        for name in cls.field_names():
            raw = data.get(name)
            value = "" if raw is None else str(raw).strip()
            normalize = normalizers.get(name)
            values[name] = normalize(value) if normalize and value else value
        return cls(**values)


@dataclass
class Recognition:
    """Output of a recognition engine.

    ``record`` is set only when the engine returned a structured object
    matching the lead schema.
    """

    text: str
    record: dict[str, Any] | None = None


@dataclass
class PersistedLead:
    """A lead row as stored in the database."""

    id: int
    record: LeadRecord
    raw_text: str
    created_at: datetime | None = None


@dataclass
class SyncOutcome:
    """Responses from the admissions service for one lead."""

    uploaded: Any = None
    status_update: Any = None


@dataclass
class PipelineResult:
    """Result of processing a single form end to end."""

    local_id: int
    lead: LeadRecord
    raw_text: str
    sync: SyncOutcome | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "local_id": self.local_id,
            "lead_data": self.lead.to_dict(),
            "admissions_uploadedLeads": self.sync.uploaded if self.sync else None,
            "admissions_leadStatusUpdate": (
                self.sync.status_update if self.sync else None
            ),
        }


@dataclass
class BatchItemResult:
    """Outcome of one reference inside a batch run."""

    image_url: str
    status: str
    result: PipelineResult | None = None
    error: str | None = None
    detail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "image_url": self.image_url,
            "status": self.status,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
            "detail": self.detail,
        }


@dataclass
class BatchResult:
    """Aggregate outcome of a batch import."""

    results: list[BatchItemResult] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return sum(1 for r in self.results if r.status == "ok")

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == "failed")

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
        }
