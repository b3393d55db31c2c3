import numpy as np

from pathtracer.core.errors import RenderError
from pathtracer.core.math import Color, Interval

# Output intensities stay strictly below 1.0 so that 256 * value fits a byte.
INTENSITY = Interval(0.000, 0.999)


def linear_to_gamma(linear_component: float) -> float:
    if linear_component > 0:
        return float(np.sqrt(linear_component))
    return 0.0


def color_to_bytes(pixel_color: Color) -> tuple:
    """Gamma-2 encode, clamp and quantize one linear color."""
    return tuple(int(256 * INTENSITY.clamp(linear_to_gamma(c))) for c in pixel_color)


class ImageBuffer:
    """Linear color grid, ``height`` rows of ``width`` RGB pixels, row 0 at the top.

    Each row is owned by exactly one work unit and may be written only once.
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.pixels = np.full((height, width, 3), np.nan, dtype=np.float64)
        self._written = np.zeros(height, dtype=bool)

    @property
    def shape(self):
        return self.pixels.shape

    def write_row(self, row: int, colors) -> None:
        if not 0 <= row < self.height:
            raise RenderError(f"row {row} is outside the image (height {self.height})")
        if self._written[row]:
            raise RenderError(f"row {row} was written twice")
        values = np.asarray(colors, dtype=np.float64)
        if values.shape != (self.width, 3):
            raise RenderError(f"row {row} has shape {values.shape}, expected {(self.width, 3)}")
        self.pixels[row] = values
        self._written[row] = True

    def is_complete(self) -> bool:
        return bool(self._written.all()) and not np.isnan(self.pixels).any()

    def missing_rows(self):
        return np.flatnonzero(~self._written).tolist()

    def finalize(self) -> np.ndarray:
        """Gamma-correct, clamp and quantize into a (height, width, 3) uint8 array."""
        if not self.is_complete():
            missing = self.missing_rows()
            raise RenderError(f"image is incomplete, {len(missing)} row(s) never written: {missing[:10]}")
        gamma = np.sqrt(np.maximum(self.pixels, 0.0))
        clamped = np.clip(gamma, INTENSITY.min, INTENSITY.max)
        return (256.0 * clamped).astype(np.uint8)
