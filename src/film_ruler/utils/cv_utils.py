"""
OpenCV utility functions for the film calibration pipeline.

This module provides reusable image helpers for:
- Image I/O with validation
- EXIF orientation lookup and normalization
- Landscape enforcement and channel normalization

I/O functions follow the Result | ProcessingError pattern for error handling.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeAlias

import cv2
import numpy as np
from numpy.typing import NDArray
from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from film_ruler.models import ProcessingError, ProcessingStage

# =============================================================================
# TYPE ALIASES
# =============================================================================

# Use Any for dtype to avoid MatLike compatibility issues with OpenCV
Image: TypeAlias = NDArray[Any]  # BGR or grayscale image
GrayImage: TypeAlias = NDArray[Any]  # Single channel grayscale

EXIF_ORIENTATION_TAG = 0x0112


# =============================================================================
# RESULT DATACLASSES
# =============================================================================


@dataclass(frozen=True)
class ImageInfo:
    """Information about a loaded image."""

    height: int
    width: int
    channels: int
    is_grayscale: bool
    megapixels: float


# =============================================================================
# SECTION 1: IMAGE I/O
# =============================================================================


def load_image(
    path: str | Path,
    stage: ProcessingStage = ProcessingStage.INPUT,
) -> Image | ProcessingError:
    """
    Load an image from disk without applying its EXIF orientation.

    Orientation is applied later by the pipeline from the tag returned by
    read_exif_orientation(), so the decoded pixels are kept as stored.

    Args:
        path: Path to image file
        stage: Processing stage for error reporting

    Returns:
        Decoded image array (grayscale, BGR or BGRA) or ProcessingError
    """
    path = Path(path)

    if not path.exists():
        return ProcessingError(
            stage=stage,
            error_type="file_not_found",
            recoverable=False,
            message=f"Image file not found: {path}",
            details={"path": str(path)},
        )

    try:
        # IMREAD_UNCHANGED also skips the EXIF rotation cv2 would apply
        img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)

        if img is None or img.size == 0:
            return ProcessingError(
                stage=stage,
                error_type="invalid_input",
                recoverable=False,
                message=f"Failed to decode image (may be corrupted): {path}",
                details={"path": str(path)},
            )

        if img.dtype == np.uint16:
            img = (img // 257).astype(np.uint8)

        return img

    except PermissionError:
        return ProcessingError(
            stage=stage,
            error_type="permission_denied",
            recoverable=False,
            message=f"Permission denied reading: {path}",
            details={"path": str(path)},
        )
    except Exception as e:
        return ProcessingError(
            stage=stage,
            error_type="io_error",
            recoverable=False,
            message=f"Error reading image: {e}",
            details={"path": str(path), "error": str(e)},
        )


def read_exif_orientation(path: str | Path) -> int:
    """Return the EXIF orientation code (1-8) of an image file, 1 when absent."""
    try:
        with PILImage.open(path) as pil_img:
            value = pil_img.getexif().get(EXIF_ORIENTATION_TAG, 1)
    except (OSError, UnidentifiedImageError):
        return 1
    try:
        code = int(value)
    except (TypeError, ValueError):
        return 1
    return code if 1 <= code <= 8 else 1


def save_image(
    image: Image,
    path: str | Path,
    stage: ProcessingStage = ProcessingStage.RENDER,
) -> Path | ProcessingError:
    """
    Save an image to disk.

    Args:
        image: Image to save
        path: Output path (the extension selects the codec, .png is lossless)
        stage: Processing stage for error reporting

    Returns:
        Path to saved file or ProcessingError
    """
    path = Path(path)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)

        success = cv2.imwrite(str(path), image)
        if not success:
            return ProcessingError(
                stage=stage,
                error_type="imwrite_failed",
                recoverable=True,
                message=f"Failed to write image: {path}",
                details={"path": str(path)},
            )
        return path

    except PermissionError:
        return ProcessingError(
            stage=stage,
            error_type="permission_denied",
            recoverable=True,
            message=f"Permission denied writing: {path}",
            details={"path": str(path)},
        )
    except Exception as e:
        return ProcessingError(
            stage=stage,
            error_type="io_error",
            recoverable=True,
            message=f"Error writing image: {e}",
            details={"path": str(path), "error": str(e)},
        )


def get_image_info(image: Image) -> ImageInfo:
    """
    Extract metadata about an image.

    Args:
        image: BGR or grayscale image

    Returns:
        ImageInfo with dimensions and channel info
    """
    if len(image.shape) == 2:
        height, width = image.shape
        channels = 1
        is_grayscale = True
    else:
        height, width, channels = image.shape
        is_grayscale = channels == 1

    megapixels = (height * width) / 1_000_000

    return ImageInfo(
        height=height,
        width=width,
        channels=channels,
        is_grayscale=is_grayscale,
        megapixels=megapixels,
    )


# =============================================================================
# SECTION 2: ORIENTATION
# =============================================================================


def apply_exif_orientation(image: Image, orientation: int) -> Image:
    """
    Undo the camera orientation recorded in an EXIF tag.

    Codes follow the TIFF/EXIF convention: 3 = rotated 180, 6 = needs a 90
    degree clockwise turn, 8 = needs a 90 degree counter-clockwise turn and
    2/4/5/7 are their mirrored variants. Unknown codes leave the image as is.
    """
    if orientation == 2:
        return cv2.flip(image, 1)
    if orientation == 3:
        return cv2.rotate(image, cv2.ROTATE_180)
    if orientation == 4:
        return cv2.flip(image, 0)
    if orientation == 5:
        return cv2.transpose(image)
    if orientation == 6:
        return cv2.rotate(image, cv2.ROTATE_90_CLOCKWISE)
    if orientation == 7:
        return cv2.flip(cv2.transpose(image), -1)
    if orientation == 8:
        return cv2.rotate(image, cv2.ROTATE_90_COUNTERCLOCKWISE)
    return image


def force_landscape(image: Image) -> tuple[Image, bool]:
    """Rotate portrait images 90 degrees counter-clockwise so width >= height."""
    height, width = image.shape[:2]
    if height > width:
        return cv2.rotate(image, cv2.ROTATE_90_COUNTERCLOCKWISE), True
    return image, False


# =============================================================================
# SECTION 3: HELPERS
# =============================================================================


def to_grayscale(image: Image) -> GrayImage:
    """
    Convert BGR image to grayscale.

    Args:
        image: BGR image (3 channels) or already grayscale

    Returns:
        Single-channel grayscale image
    """
    if len(image.shape) == 2:
        return image
    if len(image.shape) == 3:
        channels = image.shape[2]
        if channels == 1:
            return image[:, :, 0]
        if channels == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        # Assume BGR for 3 channels
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return image


def ensure_bgr(image: Image) -> Image:
    """
    Ensure image is in BGR format.

    Args:
        image: Grayscale, BGR or BGRA image

    Returns:
        3-channel BGR image
    """
    if len(image.shape) == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if len(image.shape) == 3:
        channels = image.shape[2]
        if channels == 1:
            # Single channel 3D array -> BGR
            return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2BGR)
        if channels == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image
