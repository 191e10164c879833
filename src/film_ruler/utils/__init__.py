"""Utility modules for film-ruler."""

from film_ruler.utils.cv_utils import (
    EXIF_ORIENTATION_TAG,
    GrayImage,
    # Type aliases
    Image,
    # Dataclasses
    ImageInfo,
    # Orientation
    apply_exif_orientation,
    ensure_bgr,
    force_landscape,
    get_image_info,
    # Image I/O
    load_image,
    read_exif_orientation,
    save_image,
    # Helpers
    to_grayscale,
)

__all__ = [
    # Type aliases
    "Image",
    "GrayImage",
    # Constants
    "EXIF_ORIENTATION_TAG",
    # Dataclasses
    "ImageInfo",
    # Image I/O
    "load_image",
    "read_exif_orientation",
    "save_image",
    "get_image_info",
    # Orientation
    "apply_exif_orientation",
    "force_landscape",
    # Helpers
    "to_grayscale",
    "ensure_bgr",
]
