import unittest

import numpy as np
from PIL import Image

from smart_colorizer.config import LightnessConfig, LightnessScale
from smart_colorizer.errors import EncodeError
from smart_colorizer.lightness import LuminanceExtractor


def _solid(value: int, size=(3, 5)) -> np.ndarray:
    return np.full(size + (3,), value, dtype=np.uint8)


class LuminanceExtractorTest(unittest.TestCase):
    def setUp(self) -> None:
        self.linear = LuminanceExtractor(LightnessConfig(scale=LightnessScale.LINEAR))
        self.perceptual = LuminanceExtractor(LightnessConfig(scale=LightnessScale.PERCEPTUAL))

    def test_plane_layout(self) -> None:
        plane = self.perceptual.extract_lightness(_solid(40))

        self.assertEqual(plane.shape, (256 * 256,))
        self.assertEqual(plane.dtype, np.float32)

    def test_linear_scale(self) -> None:
        self.assertTrue(np.allclose(self.linear.extract_lightness(_solid(0)), 0.0))
        self.assertTrue(np.allclose(self.linear.extract_lightness(_solid(255)), 100.0))
        self.assertAlmostEqual(
            float(self.linear.extract_lightness(_solid(128))[0]), 128 / 255.0 * 100.0, places=4
        )

    def test_perceptual_scale(self) -> None:
        self.assertAlmostEqual(float(self.perceptual.extract_lightness(_solid(0))[0]), 0.0, places=4)
        self.assertAlmostEqual(
            float(self.perceptual.extract_lightness(_solid(255))[0]), 100.0, places=3
        )
        self.assertAlmostEqual(
            float(self.perceptual.extract_lightness(_solid(128))[0]), 53.585, delta=0.05
        )

    def test_perceptual_scale_is_monotonic(self) -> None:
        ramp = np.arange(256, dtype=np.uint8).reshape(1, 256)
        ramp = np.repeat(ramp, 256, axis=0)

        row = self.perceptual.extract_lightness(ramp).reshape(256, 256)[0]

        self.assertTrue(np.all(np.diff(row) > 0))
        self.assertGreaterEqual(float(row.min()), 0.0)
        self.assertLessEqual(float(row.max()), 100.0 + 1e-4)

    def test_reads_luma_of_original_color_image(self) -> None:
        red = np.zeros((6, 6, 3), dtype=np.uint8)
        red[..., 0] = 255

        plane = self.linear.extract_lightness(red)

        # BT.601 luma of pure red is round(0.299 * 255) = 76.
        self.assertAlmostEqual(float(plane[0]), 76 / 255.0 * 100.0, places=3)

    def test_pil_and_rgba_inputs(self) -> None:
        gray = Image.new("L", (9, 4), 255)
        rgba = np.full((4, 9, 4), 255, dtype=np.uint8)
        rgba[..., 3] = 0

        self.assertTrue(np.allclose(self.linear.extract_lightness(gray), 100.0))
        self.assertTrue(np.allclose(self.linear.extract_lightness(rgba), 100.0))

    def test_sixteen_bit_image_matches_eight_bit(self) -> None:
        sixteen = Image.fromarray(np.full((3, 5), 128 * 257, dtype=np.uint16))

        plane = self.perceptual.extract_lightness(sixteen)

        self.assertTrue(np.allclose(plane, self.perceptual.extract_lightness(_solid(128))))
        self.assertLess(float(plane.max()), 60.0)

    def test_zero_size_fails(self) -> None:
        with self.assertRaises(EncodeError):
            self.perceptual.extract_lightness(np.zeros((0, 0), dtype=np.uint8))

    def test_scale_accepts_strings(self) -> None:
        self.assertIs(LightnessConfig(scale="linear").scale, LightnessScale.LINEAR)
        self.assertIs(LightnessConfig(scale="PERCEPTUAL").scale, LightnessScale.PERCEPTUAL)
        with self.assertRaises(ValueError):
            LightnessConfig(scale="gamma")


if __name__ == "__main__":
    unittest.main()
