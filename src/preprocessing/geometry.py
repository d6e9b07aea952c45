"""Orientation and size normalization for scanned form images."""

import cv2
import numpy as np
from PIL import Image, ImageOps

from src.utils.logger import get_logger

logger = get_logger(__name__)


def apply_orientation(image: Image.Image) -> np.ndarray:
    """Apply the EXIF orientation tag and return an RGB array.

    Phone photos of forms are often stored sideways with a rotation flag
    instead of rotated pixels.

    Args:
        image: Decoded Pillow image, possibly carrying EXIF metadata.

    Returns:
        Upright image as an RGB numpy array.
    """
    upright = ImageOps.exif_transpose(image)
    return np.array(upright.convert("RGB"))


def resize_to_width(image: np.ndarray, target_width: int) -> np.ndarray:
    """Upscale an image so its width reaches ``target_width``.

    Images already at or above the target are returned unchanged; they
    are never downscaled.

    Args:
        image: Input image (color or grayscale).
        target_width: Minimum output width in pixels.

    Returns:
        Resized image with the aspect ratio preserved.
    """
    h, w = image.shape[:2]
    if w >= target_width or w == 0:
        return image

    scale = target_width / w
    new_size = (target_width, max(1, round(h * scale)))
    result = cv2.resize(image, new_size, interpolation=cv2.INTER_CUBIC)
    logger.debug("Upscaled image from %dx%d to %dx%d", w, h, *new_size)
    return result
