"""Writing finalized images to disk."""

import logging
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)


def to_image(pixels: np.ndarray) -> Image.Image:
    """Wrap a finalized (height, width, 3) uint8 array, row 0 at the top."""
    if pixels.ndim != 3 or pixels.shape[2] != 3 or pixels.dtype != np.uint8:
        raise ValueError(f"expected a (height, width, 3) uint8 array, got {pixels.shape} {pixels.dtype}")
    return Image.fromarray(pixels)


def to_ppm(pixels: np.ndarray) -> str:
    """Plain-text P3 encoding."""
    height, width, _ = pixels.shape
    lines = ["P3", f"{width} {height}", "255"]
    lines.extend(" ".join(str(int(c)) for c in pixel) for row in pixels for pixel in row)
    return "\n".join(lines) + "\n"


def save_image(pixels: np.ndarray, path: Union[str, Path]) -> Path:
    """Save by file extension: ``.ppm`` as ASCII P3, anything else through Pillow."""
    path = Path(path)
    if path.parent != Path("."):
        path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".ppm":
        path.write_text(to_ppm(pixels), encoding="ascii")
    else:
        to_image(pixels).save(path)
    logger.info("image saved: %s (%dx%d)", path, pixels.shape[1], pixels.shape[0])
    return path
