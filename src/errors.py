"""Exception taxonomy for the admission form pipeline.

Every failure carries a ``kind`` tag used by the HTTP layer to build
structured error bodies.
"""


class PipelineError(Exception):
    """Base class for failures raised while processing a form.

    Args:
        detail: Human-readable description of the failure.
        stage: Pipeline stage in which the failure occurred, if known.
    """

    kind = "pipeline_failed"

    def __init__(self, detail: str, stage: str | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.stage = stage


class FetchError(PipelineError):
    """The source image could not be downloaded or stored."""

    kind = "fetch_failed"


class ConditioningError(PipelineError):
    """The downloaded image could not be decoded or transformed."""

    kind = "conditioning_failed"


class RecognitionError(PipelineError):
    """The recognition engine failed to produce text."""

    kind = "recognition_failed"


class ExtractionError(PipelineError):
    """Reserved: field extraction degrades to empty fields instead of raising."""

    kind = "extraction_failed"


class PersistenceError(PipelineError):
    """The lead row could not be written to durable storage."""

    kind = "persistence_failed"


class SyncError(PipelineError):
    """A call to the external admissions service failed."""

    kind = "sync_failed"


class SourceFeedError(PipelineError):
    """The batch source feed could not be queried."""

    kind = "auto_import_failed"
