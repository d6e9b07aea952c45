"""Batch import of new forms listed by the source feed."""

from src.models import BatchResult
from src.sync.source_feed import SourceFeedClient
from src.utils.logger import get_logger

from .orchestrator import LeadPipeline

logger = get_logger(__name__)


class AutoImporter:
    """Runs the pipeline over every form the source feed reports as new.

    Args:
        feed: Source feed client.
        pipeline: Pipeline used for each reference.
        stop_on_error: Abort the batch on the first failing form.
    """

    def __init__(
        self,
        feed: SourceFeedClient,
        pipeline: LeadPipeline,
        stop_on_error: bool = False,
    ) -> None:
        self.feed = feed
        self.pipeline = pipeline
        self.stop_on_error = stop_on_error

    def run(self) -> BatchResult:
        """Fetch new references and process them sequentially.

        Raises:
            SourceFeedError: If the feed cannot be queried.
            PipelineError: If a form fails and ``stop_on_error`` is set.
        """
        references = self.feed.fetch_new_references()
        logger.info("Importing %d forms from %s", len(references), self.feed.url)
        return self.pipeline.run_batch(references, stop_on_error=self.stop_on_error)
