"""Grayscale, contrast and thresholding transforms for form images.

Provides contrast stretching, CLAHE, Otsu's thresholding and adaptive
thresholding. Binarization is the finishing step preferred for
handwritten forms.
"""

import cv2
import numpy as np

from src.utils.logger import get_logger

logger = get_logger(__name__)


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert an RGB or RGBA image to single-channel grayscale.

    Args:
        image: Input image (RGB, RGBA or grayscale).

    Returns:
        Grayscale image.
    """
    if len(image.shape) == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)


def normalize_contrast(
    image: np.ndarray, low_percentile: float = 1.0, high_percentile: float = 99.0
) -> np.ndarray:
    """Stretch intensities so the given percentiles map to 0 and 255.

    Args:
        image: Grayscale input image.
        low_percentile: Percentile mapped to black.
        high_percentile: Percentile mapped to white.

    Returns:
        Contrast-normalized grayscale image.
    """
    gray = to_grayscale(image)
    low, high = np.percentile(gray, (low_percentile, high_percentile))
    if high <= low:
        logger.debug("Flat image, skipping contrast stretch")
        return gray

    stretched = (gray.astype(np.float32) - low) * (255.0 / (high - low))
    result = np.clip(stretched, 0, 255).astype(np.uint8)
    logger.debug("Stretched contrast from [%.0f, %.0f] to [0, 255]", low, high)
    return result


def apply_clahe(
    image: np.ndarray,
    clip_limit: float = 2.0,
    tile_size: int = 8,
) -> np.ndarray:
    """Enhance contrast using CLAHE (Contrast Limited Adaptive Histogram Equalization).

    Args:
        image: Input image (RGB or grayscale).
        clip_limit: Threshold for contrast limiting.
        tile_size: Size of the grid for histogram equalization.

    Returns:
        Contrast-enhanced grayscale image.
    """
    gray = to_grayscale(image)
    clahe = cv2.createCLAHE(clipLimit=clip_limit, tileGridSize=(tile_size, tile_size))
    result = clahe.apply(gray)
    logger.debug("Applied CLAHE (clip=%.1f, tile=%d)", clip_limit, tile_size)
    return result


def binarize_otsu(image: np.ndarray) -> np.ndarray:
    """Binarize an image using Otsu's automatic thresholding.

    Args:
        image: Input image (RGB or grayscale).

    Returns:
        Binary image with pixel values 0 or 255.
    """
    gray = to_grayscale(image)
    _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    logger.debug("Applied Otsu binarization")
    return binary


def binarize_adaptive(
    image: np.ndarray, block_size: int = 31, c: int = 10
) -> np.ndarray:
    """Binarize an image using adaptive Gaussian thresholding.

    Handles uneven lighting on photographed forms better than a global
    threshold.

    Args:
        image: Input image (RGB or grayscale).
        block_size: Size of the pixel neighborhood for threshold calculation.
        c: Constant subtracted from the mean.

    Returns:
        Binary image with pixel values 0 or 255.
    """
    gray = to_grayscale(image)
    result = cv2.adaptiveThreshold(
        gray,
        255,
        cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
        cv2.THRESH_BINARY,
        block_size,
        c,
    )
    logger.debug("Applied adaptive binarization (block=%d, c=%d)", block_size, c)
    return result
