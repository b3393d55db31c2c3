import numpy as np
import pytest
from PIL import Image

from pathtracer.core.errors import RenderError
from pathtracer.core.image import ImageBuffer, color_to_bytes, linear_to_gamma
from pathtracer.core.math import Color
from pathtracer.output import save_image, to_ppm


class TestQuantization:
    def test_gamma_two(self):
        assert linear_to_gamma(0.25) == 0.5
        assert linear_to_gamma(0.0) == 0.0
        assert linear_to_gamma(-1.0) == 0.0

    def test_known_color(self):
        assert color_to_bytes(Color(0.5, 0.25, 0.75)) == (181, 128, 221)

    def test_out_of_range_is_clamped(self):
        assert color_to_bytes(Color(4.0, -1.0, 1.0)) == (255, 0, 255)

    def test_buffer_matches_scalar_path(self):
        buffer = ImageBuffer(2, 1)
        buffer.write_row(0, [[0.5, 0.25, 0.75], [1.2, 0.0, 0.01]])
        pixels = buffer.finalize()
        assert pixels.dtype == np.uint8
        assert tuple(pixels[0, 0]) == (181, 128, 221)
        assert tuple(pixels[0, 1]) == color_to_bytes(Color(1.2, 0.0, 0.01))


class TestImageBuffer:
    def test_starts_unwritten(self):
        buffer = ImageBuffer(3, 2)
        assert buffer.shape == (2, 3, 3)
        assert np.isnan(buffer.pixels).all()
        assert buffer.missing_rows() == [0, 1]
        assert not buffer.is_complete()

    def test_row_written_twice(self):
        buffer = ImageBuffer(2, 2)
        buffer.write_row(1, np.zeros((2, 3)))
        with pytest.raises(RenderError, match="twice"):
            buffer.write_row(1, np.zeros((2, 3)))

    def test_row_out_of_range(self):
        with pytest.raises(RenderError):
            ImageBuffer(2, 2).write_row(2, np.zeros((2, 3)))

    def test_row_with_wrong_width(self):
        with pytest.raises(RenderError, match="shape"):
            ImageBuffer(2, 2).write_row(0, np.zeros((3, 3)))

    def test_incomplete_image_cannot_be_finalized(self):
        buffer = ImageBuffer(2, 3)
        buffer.write_row(0, np.zeros((2, 3)))
        with pytest.raises(RenderError, match="incomplete"):
            buffer.finalize()

    def test_nan_row_is_not_complete(self):
        buffer = ImageBuffer(1, 1)
        buffer.write_row(0, [[np.nan, 0.0, 0.0]])
        assert not buffer.is_complete()


class TestOutput:
    def pixels(self):
        return np.array([[[255, 0, 0], [0, 255, 0]],
                         [[0, 0, 255], [10, 20, 30]]], dtype=np.uint8)

    def test_ppm_text(self):
        assert to_ppm(self.pixels()) == "P3\n2 2\n255\n255 0 0\n0 255 0\n0 0 255\n10 20 30\n"

    def test_png_round_trip(self, tmp_path):
        path = save_image(self.pixels(), tmp_path / "out" / "image.png")
        with Image.open(path) as image:
            assert image.size == (2, 2)
            assert np.array_equal(np.asarray(image.convert("RGB")), self.pixels())

    def test_rejects_float_pixels(self, tmp_path):
        with pytest.raises(ValueError):
            save_image(np.zeros((2, 2, 3)), tmp_path / "image.png")
