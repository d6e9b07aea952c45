"""Construction of the process-wide pipeline components from configuration."""

from dataclasses import dataclass, field

from src.acquisition.fetcher import ImageFetcher
from src.extraction.field_extractor import FieldExtractor
from src.ocr.engines import RecognitionEngine, build_engine
from src.preprocessing.pipeline import ImageConditioner
from src.storage.repository import LeadRepository
from src.sync.admissions import AdmissionsClient
from src.sync.source_feed import SourceFeedClient
from src.utils.config import AppConfig
from src.utils.logger import get_logger

from .importer import AutoImporter
from .orchestrator import LeadPipeline

logger = get_logger(__name__)


@dataclass
class Components:
    """Shared resources owned by one running process."""

    pipeline: LeadPipeline
    repository: LeadRepository
    engine: RecognitionEngine
    importer: AutoImporter | None = None
    _closers: list = field(default_factory=list)

    def close(self) -> None:
        """Release engines, HTTP clients and the connection pool."""
        for close in self._closers:
            close()
        self._closers.clear()
        logger.info("Pipeline components closed")


def build_components(config: AppConfig) -> Components:
    """Create, start and wire every pipeline component.

    The recognition engine is started exactly once here and shared by
    all invocations.

    Args:
        config: Application configuration.

    Returns:
        The wired components; call :meth:`Components.close` on shutdown.
    """
    engine = build_engine(config)
    engine.start()

    fetcher = ImageFetcher(config.storage.tmp_dir, timeout=config.imports.fetch_timeout)
    repository = LeadRepository(config.storage.database_url)
    repository.create_schema()
    admissions = AdmissionsClient(config.admissions)

    pipeline = LeadPipeline(
        fetcher=fetcher,
        conditioner=ImageConditioner(config.preprocessing),
        engine=engine,
        extractor=FieldExtractor(),
        repository=repository,
        admissions=admissions,
    )
    closers = [engine.close, fetcher.close, admissions.close, repository.dispose]

    importer = None
    if config.imports.source_api:
        feed = SourceFeedClient(
            config.imports.source_api,
            token=config.admissions.token,
            timeout=config.imports.fetch_timeout,
        )
        importer = AutoImporter(feed, pipeline, stop_on_error=config.imports.stop_on_error)
        closers.append(feed.close)

    logger.info(
        "Pipeline ready (engine=%s, admissions push=%s, source feed=%s)",
        engine.name,
        admissions.enabled,
        importer is not None,
    )
    return Components(
        pipeline=pipeline,
        repository=repository,
        engine=engine,
        importer=importer,
        _closers=closers,
    )
