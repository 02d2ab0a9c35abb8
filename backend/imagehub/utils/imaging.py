import logging
from typing import Optional, Tuple

from PIL import Image, ImageOps

logger = logging.getLogger(__name__)

# Modes the JPEG encoder accepts as-is
_JPEG_MODES = ("RGB", "L", "CMYK")


def image_dimensions(file_path: str) -> Tuple[Optional[int], Optional[int]]:
    """Return (width, height) of an image on disk, or (None, None) if unreadable."""
    try:
        with Image.open(file_path) as img:
            return img.size
    except Exception as e:
        logger.warning(f"Error extracting dimensions from {file_path}: {e}")
        return None, None


def cover(img: Image.Image, size: Tuple[int, int]) -> Image.Image:
    """Scale and center-crop so the result exactly fills ``size``."""
    return ImageOps.fit(img, size, method=Image.Resampling.LANCZOS)


def fit_inside(img: Image.Image, box: Tuple[int, int]) -> Image.Image:
    """Scale down to fit ``box`` keeping aspect ratio; never enlarges."""
    result = img.copy()
    result.thumbnail(box, Image.Resampling.LANCZOS)
    return result


def save_as(img: Image.Image, dest_path: str, image_format: Optional[str]) -> None:
    """Write ``img`` in the original's encoding."""
    image_format = image_format or "PNG"
    if image_format == "JPEG" and img.mode not in _JPEG_MODES:
        img = img.convert("RGB")
    img.save(dest_path, format=image_format)
