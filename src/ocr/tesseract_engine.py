"""Tesseract OCR engine wrapper for conditioned form images.

The engine is a process-wide resource: it is started once, restricts
output to a whitelisted character set, and serializes recognition calls
unless concurrent sessions are explicitly allowed.
"""

import shlex
import threading
from contextlib import nullcontext

import pytesseract
from PIL import Image

from src.errors import RecognitionError
from src.models import ImageAsset, Recognition
from src.utils.logger import get_logger

logger = get_logger(__name__)

CHAR_WHITELIST = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
    "@._-+&:/()'\", "
)


class TesseractEngine:
    """Local recognition over conditioned rasters using Tesseract.

    Args:
        languages: Tesseract language codes, combined with ``+``.
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        psm: Tesseract page segmentation mode.
        timeout: Seconds before a recognition call is aborted.
        concurrent_sessions: Allow overlapping recognition calls.
            When ``False`` calls are serialized through a lock.
    """

    name = "tesseract"
    uses_conditioned_image = True

    def __init__(
        self,
        languages: list[str] | None = None,
        tesseract_cmd: str | None = None,
        psm: int = 3,
        timeout: float = 60.0,
        concurrent_sessions: bool = False,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.lang = "+".join(languages or ["eng"])
        self.psm = psm
        self.timeout = timeout
        self.config = (
            f"--psm {psm} -c tessedit_char_whitelist={shlex.quote(CHAR_WHITELIST)}"
        )
        self._lock = None if concurrent_sessions else threading.Lock()
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        """Verify the Tesseract installation. Safe to call more than once.

        Raises:
            RecognitionError: If the Tesseract binary is unavailable.
        """
        if self._started:
            return
        try:
            version = pytesseract.get_tesseract_version()
        except pytesseract.TesseractNotFoundError as exc:
            raise RecognitionError("Tesseract executable not found") from exc
        self._started = True
        logger.info("Tesseract %s ready (lang=%s, psm=%d)", version, self.lang, self.psm)

    def close(self) -> None:
        self._started = False

    def recognize(self, asset: ImageAsset) -> Recognition:
        """Extract raw text from a conditioned image.

        Args:
            asset: Transient asset holding the conditioned image.

        Returns:
            Recognition with the raw text and no structured record.

        Raises:
            RecognitionError: If the engine is not started or Tesseract fails.
        """
        if not self._started:
            raise RecognitionError("Tesseract engine used before start()")

        with self._lock or nullcontext():
            try:
                with Image.open(asset.path) as image:
                    text = pytesseract.image_to_string(
                        image, lang=self.lang, config=self.config, timeout=self.timeout
                    )
            except RuntimeError as exc:
                # pytesseract signals timeouts with a bare RuntimeError
                raise RecognitionError(f"Tesseract failed: {exc}") from exc
            except OSError as exc:
                raise RecognitionError(f"Cannot read {asset.path}: {exc}") from exc

        logger.info("Tesseract recognized %d characters from %s", len(text), asset.path.name)
        return Recognition(text=text)
