"""Image conditioning pipeline for form recognition.

Applies orientation correction, upscaling, grayscale conversion,
contrast normalization and a finishing pass (sharpen or binarize) in a
fixed order, with quality metrics tracking.
"""

from dataclasses import dataclass

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from src.errors import ConditioningError
from src.models import ImageAsset
from src.utils.config import PreprocessingConfig
from src.utils.logger import get_logger

from .binarize import (
    apply_clahe,
    binarize_adaptive,
    binarize_otsu,
    normalize_contrast,
    to_grayscale,
)
from .geometry import apply_orientation, resize_to_width
from .sharpen import sharpen

logger = get_logger(__name__)

_FINISHES = ("sharpen", "binarize")


@dataclass
class QualityMetrics:
    """Before/after image quality measurements."""

    sharpness_before: float
    sharpness_after: float
    contrast_before: float
    contrast_after: float


def calculate_sharpness(image: np.ndarray) -> float:
    """Calculate image sharpness using Laplacian variance.

    Args:
        image: Input image (RGB or grayscale).

    Returns:
        Sharpness score (higher means sharper).
    """
    return float(cv2.Laplacian(to_grayscale(image), cv2.CV_64F).var())


def calculate_contrast(image: np.ndarray) -> float:
    """Calculate image contrast as the standard deviation of pixel intensities.

    Args:
        image: Input image (RGB or grayscale).

    Returns:
        Contrast score (higher means more contrast).
    """
    return float(to_grayscale(image).std())


class ImageConditioner:
    """Deterministic image conditioning ahead of recognition.

    Args:
        config: Preprocessing configuration selecting target width,
            contrast method and finishing pass.

    Raises:
        ValueError: If the configured finishing pass is unknown.
    """

    def __init__(self, config: PreprocessingConfig) -> None:
        if config.finish not in _FINISHES:
            raise ValueError(f"Unsupported finishing pass: {config.finish}")
        self.config = config

    def transform(self, image: Image.Image) -> tuple[np.ndarray, QualityMetrics]:
        """Run the transform sequence on a decoded image.

        Args:
            image: Decoded source image.

        Returns:
            Tuple of (conditioned_grayscale_image, quality_metrics).
        """
        result = apply_orientation(image)
        metrics = QualityMetrics(
            sharpness_before=calculate_sharpness(result),
            contrast_before=calculate_contrast(result),
            sharpness_after=0.0,
            contrast_after=0.0,
        )

        result = resize_to_width(result, self.config.target_width)
        result = to_grayscale(result)

        if self.config.contrast_method == "clahe":
            result = apply_clahe(
                result,
                clip_limit=self.config.clahe_clip_limit,
                tile_size=self.config.clahe_tile_size,
            )
        else:
            result = normalize_contrast(result)

        if self.config.finish == "binarize":
            if self.config.binarize_method == "adaptive":
                result = binarize_adaptive(result)
            else:
                result = binarize_otsu(result)
        else:
            result = sharpen(result)

        metrics.sharpness_after = calculate_sharpness(result)
        metrics.contrast_after = calculate_contrast(result)
        return result, metrics

    def condition(self, asset: ImageAsset) -> ImageAsset:
        """Condition a downloaded image and write it as a PNG beside it.

        Args:
            asset: Transient asset holding the original image.

        Returns:
            A new transient asset at ``<stem>_proc.png``.

        Raises:
            ConditioningError: If the image cannot be decoded, transformed
                or written.
        """
        out_path = asset.path.with_name(f"{asset.path.stem}_proc.png")
        try:
            with Image.open(asset.path) as image:
                image.load()
                result, metrics = self.transform(image)
        except (UnidentifiedImageError, OSError, ValueError, cv2.error) as exc:
            raise ConditioningError(f"Cannot condition {asset.path.name}: {exc}") from exc

        if not cv2.imwrite(str(out_path), result):
            out_path.unlink(missing_ok=True)
            raise ConditioningError(f"Cannot write conditioned image {out_path}")

        logger.info(
            "Conditioned %s (%s): sharpness %.1f->%.1f, contrast %.1f->%.1f",
            asset.path.name,
            self.config.finish,
            metrics.sharpness_before,
            metrics.sharpness_after,
            metrics.contrast_before,
            metrics.contrast_after,
        )
        return ImageAsset(reference=asset.reference, path=out_path)
