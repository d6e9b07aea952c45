"""End-to-end processing of one admission form image.

Stages run strictly in order::

    acquiring -> conditioning -> recognizing -> extracting
              -> persisting -> syncing -> done

Any failure before persistence ends the invocation in the ``failed``
state and is re-raised as a :class:`~src.errors.PipelineError` tagged
with the stage. Transient image files are always deleted once
recognition has finished or failed. Syncing with the admissions service
is best-effort: once the row is stored the invocation succeeds.
"""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from enum import StrEnum

from src.acquisition.fetcher import ImageFetcher
from src.errors import (
    ConditioningError,
    FetchError,
    PersistenceError,
    PipelineError,
    RecognitionError,
)
from src.extraction.field_extractor import FieldExtractor, normalize_text
from src.models import (
    BatchItemResult,
    BatchResult,
    ImageAsset,
    LeadRecord,
    PipelineResult,
    Recognition,
    SyncOutcome,
)
from src.ocr.engines import RecognitionEngine
from src.preprocessing.pipeline import ImageConditioner
from src.storage.repository import LeadRepository
from src.sync.admissions import AdmissionsClient, lead_id_from
from src.utils.logger import get_logger

logger = get_logger(__name__)


class PipelineStage(StrEnum):
    """States of a single pipeline invocation."""

    ACQUIRING = "acquiring"
    CONDITIONING = "conditioning"
    RECOGNIZING = "recognizing"
    EXTRACTING = "extracting"
    PERSISTING = "persisting"
    SYNCING = "syncing"
    DONE = "done"
    FAILED = "failed"


_STAGE_ERRORS: dict[PipelineStage, type[PipelineError]] = {
    PipelineStage.ACQUIRING: FetchError,
    PipelineStage.CONDITIONING: ConditioningError,
    PipelineStage.RECOGNIZING: RecognitionError,
    PipelineStage.PERSISTING: PersistenceError,
}


@contextmanager
def _stage(stage: PipelineStage) -> Iterator[None]:
    """Tag failures raised inside a stage with the stage name."""
    logger.debug("Entering stage %s", stage)
    try:
        yield
    except PipelineError as exc:
        exc.stage = exc.stage or stage.value
        logger.error("Pipeline %s while %s: %s", PipelineStage.FAILED, stage, exc.detail)
        raise
    except Exception as exc:
        logger.exception("Unexpected error while %s", stage)
        raise _STAGE_ERRORS[stage](str(exc), stage=stage.value) from exc


class LeadPipeline:
    """Sequences acquisition, conditioning, recognition, extraction,
    persistence and admissions sync for form images.

    Args:
        fetcher: Downloads source images into transient storage.
        conditioner: Prepares images for local recognition.
        engine: Started recognition engine (local or remote).
        extractor: Label-anchored field extractor.
        repository: Durable lead storage.
        admissions: Optional admissions service client.
    """

    def __init__(
        self,
        fetcher: ImageFetcher,
        conditioner: ImageConditioner,
        engine: RecognitionEngine,
        extractor: FieldExtractor,
        repository: LeadRepository,
        admissions: AdmissionsClient | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.conditioner = conditioner
        self.engine = engine
        self.extractor = extractor
        self.repository = repository
        self.admissions = admissions

    def process(self, image_url: str) -> PipelineResult:
        """Run the full pipeline for one image reference.

        Args:
            image_url: URL of the scanned form.

        Returns:
            Local identifier, extracted lead, raw text and sync outcome.

        Raises:
            PipelineError: The fetch, conditioning, recognition or
                persistence stage failed.
        """
        logger.info("Processing form %s", image_url)
        recognition = self._read(image_url)
        record, raw_text = self._extract(recognition, image_url)

        with _stage(PipelineStage.PERSISTING):
            local_id = self.repository.insert(record, raw_text)

        sync = self._sync(record)
        logger.info(
            "Pipeline %s for %s (lead %d, synced=%s)",
            PipelineStage.DONE,
            image_url,
            local_id,
            sync is not None,
        )
        return PipelineResult(local_id=local_id, lead=record, raw_text=raw_text, sync=sync)

    def _read(self, image_url: str) -> Recognition:
        original: ImageAsset | None = None
        conditioned: ImageAsset | None = None
        try:
            with _stage(PipelineStage.ACQUIRING):
                original = self.fetcher.fetch(image_url)

            source = original
            if self.engine.uses_conditioned_image:
                with _stage(PipelineStage.CONDITIONING):
                    conditioned = self.conditioner.condition(original)
                source = conditioned

            with _stage(PipelineStage.RECOGNIZING):
                return self.engine.recognize(source)
        finally:
            self.fetcher.release(conditioned)
            self.fetcher.release(original)

    def _extract(self, recognition: Recognition, image_url: str) -> tuple[LeadRecord, str]:
        if recognition.record is not None:
            record = self.extractor.from_structured(recognition.record, image_url)
            if record is not None:
                logger.info("Using structured recognition output for %s", image_url)
                return record, normalize_text(recognition.text)

        result = self.extractor.extract(recognition.text, image_url)
        return result.record, result.raw_text

    def _sync(self, record: LeadRecord) -> SyncOutcome | None:
        if self.admissions is None or not self.admissions.enabled:
            return None

        logger.debug("Entering stage %s", PipelineStage.SYNCING)
        try:
            uploaded = self.admissions.push_uploaded_lead(record)
        except Exception as exc:
            logger.warning("Admissions intake failed for %s: %s", record.image_url, exc)
            return None

        outcome = SyncOutcome(uploaded=uploaded)
        lead_id = lead_id_from(uploaded)
        if lead_id:
            try:
                outcome.status_update = self.admissions.push_status_update(lead_id, record)
            except Exception as exc:
                logger.warning("Status update failed for lead %s: %s", lead_id, exc)
        return outcome

    def run_batch(
        self, references: Iterable[str], stop_on_error: bool = False
    ) -> BatchResult:
        """Process references one after another.

        Args:
            references: Image URLs to process.
            stop_on_error: Abort the remaining batch on the first failure
                instead of recording it and moving on.

        Returns:
            Per-item outcomes and aggregate counts.

        Raises:
            PipelineError: Only when ``stop_on_error`` is set.
        """
        batch = BatchResult()
        for image_url in references:
            try:
                result = self.process(image_url)
            except PipelineError as exc:
                if stop_on_error:
                    raise
                batch.results.append(
                    BatchItemResult(
                        image_url=image_url,
                        status="failed",
                        error=exc.kind,
                        detail=exc.detail,
                    )
                )
                continue
            batch.results.append(
                BatchItemResult(image_url=image_url, status="ok", result=result)
            )

        logger.info(
            "Batch finished: %d processed, %d failed", batch.processed, batch.failed
        )
        return batch
