"""Recognition engine contract and configuration-driven selection."""

from typing import Protocol

from src.models import ImageAsset, Recognition
from src.utils.config import AppConfig

from .tesseract_engine import TesseractEngine
from .vision_engine import VisionEngine


class RecognitionEngine(Protocol):
    """Shared contract of the local and remote recognition engines."""

    name: str
    uses_conditioned_image: bool

    def start(self) -> None: ...

    def close(self) -> None: ...

    def recognize(self, asset: ImageAsset) -> Recognition: ...


def build_engine(config: AppConfig) -> RecognitionEngine:
    """Create the recognition engine selected by ``ocr.engine``.

    Args:
        config: Application configuration.

    Returns:
        An unstarted recognition engine.

    Raises:
        ValueError: If the configured engine name is unknown.
    """
    if config.ocr.engine == "tesseract":
        return TesseractEngine(
            languages=config.ocr.languages,
            tesseract_cmd=config.ocr.tesseract_cmd,
            psm=config.ocr.psm,
            timeout=config.ocr.timeout,
            concurrent_sessions=config.ocr.concurrent_sessions,
        )
    if config.ocr.engine == "vision":
        return VisionEngine(
            api_key=config.vision.api_key,
            model=config.vision.model,
            base_url=config.vision.base_url,
            timeout=config.vision.timeout,
        )
    raise ValueError(f"Unsupported recognition engine: {config.ocr.engine}")
