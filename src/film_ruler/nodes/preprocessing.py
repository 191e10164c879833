"""Preprocessing node: orientation normalization and input validation."""

import logging

import cv2
import numpy as np

from film_ruler.models import PipelineState, ProcessingError, ProcessingStage
from film_ruler.utils import cv_utils

logger = logging.getLogger(__name__)


def _invalid_input(state: PipelineState, message: str, **details: object) -> PipelineState:
    error = ProcessingError(
        stage=ProcessingStage.PREPROCESS,
        error_type="invalid_input",
        recoverable=False,
        message=message,
        details=dict(details),
    )
    return state.model_copy(
        update={
            "errors": state.errors + [error],
            "logs": state.logs + [f"[error] {message}"],
        }
    )


def _to_uint8(image: np.ndarray) -> np.ndarray:
    if image.dtype == np.uint8:
        return image
    if image.dtype == np.uint16:
        return (image // 257).astype(np.uint8)
    return cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)


def preprocess(state: PipelineState) -> PipelineState:
    """
    Normalize the input image before analysis.

    Applies the EXIF orientation, forces landscape (width >= height) and
    converts to 3-channel BGR uint8.

    Updates state with:
    - image: normalized image
    - logs: orientation notices
    - errors: invalid_input (non-recoverable) for empty or malformed arrays
    """
    image = state.image
    if image is None:
        return _invalid_input(state, "No image supplied")
    if (
        image.ndim not in (2, 3)
        or image.size == 0
        or (image.ndim == 3 and image.shape[2] not in (1, 3, 4))
    ):
        return _invalid_input(
            state, f"Malformed image with shape {tuple(image.shape)}", shape=list(image.shape)
        )

    logs = list(state.logs)

    oriented = cv_utils.apply_exif_orientation(image, state.exif_orientation)
    if state.exif_orientation != 1:
        logs.append(f"[input] EXIF orientation {state.exif_orientation} applied")

    oriented, rotated = cv_utils.force_landscape(oriented)
    if rotated:
        logs.append("[input] rotated to landscape (90 deg)")

    normalized = cv_utils.ensure_bgr(_to_uint8(oriented))
    info = cv_utils.get_image_info(normalized)
    logs.append(f"[input] loaded {info.width}x{info.height} (landscape enforced)")
    logger.debug("preprocessed %s: %dx%d", state.source_name, info.width, info.height)

    return state.model_copy(update={"image": np.ascontiguousarray(normalized), "logs": logs})
