"""Luminance extractor: original image to an L* plane."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from smart_colorizer.config import (
    CIE_EPSILON,
    CIE_KAPPA,
    CIE_OFFSET,
    LightnessConfig,
    LightnessScale,
)
from smart_colorizer.types import ImageLike
from smart_colorizer.utils.vision import rasterize, resize, to_gray

logger = logging.getLogger(__name__)


def _linear_table() -> np.ndarray:
    return np.arange(256, dtype=np.float64) / 255.0 * 100.0


def _perceptual_table() -> np.ndarray:
    encoded = np.arange(256, dtype=np.float64) / 255.0
    luminance = np.where(
        encoded <= 0.04045,
        encoded / 12.92,
        ((encoded + 0.055) / 1.055) ** 2.4,
    )
    f = np.where(
        luminance > CIE_EPSILON,
        np.cbrt(luminance),
        CIE_KAPPA * luminance + CIE_OFFSET,
    )
    return 116.0 * f - 16.0


_TABLES = {
    LightnessScale.LINEAR: _linear_table().astype(np.float32),
    LightnessScale.PERCEPTUAL: _perceptual_table().astype(np.float32),
}


class LuminanceExtractor:
    """Derives the lightness plane straight from the captured image.

    The plane is read from the original image rather than from the encoder's
    normalized RGB copy so that lightness does not depend on the tensor path.
    """

    def __init__(self, config: Optional[LightnessConfig] = None) -> None:
        self.config = config or LightnessConfig()

    def intensity(self, image: ImageLike) -> np.ndarray:
        """Single-channel 8-bit intensity at the model resolution."""

        gray = to_gray(rasterize(image))
        size = (self.config.size, self.config.size)
        return resize(gray, size, self.config.resample)

    def extract_lightness(self, image: ImageLike) -> np.ndarray:
        """Return a flat float32 L* plane of length ``size * size``.

        With ``LightnessScale.LINEAR`` each sample maps as ``v / 255 * 100``.
        With ``LightnessScale.PERCEPTUAL`` the sample is decoded with the sRGB
        transfer curve first, so a gray level survives the trip through the
        reconstructor unchanged.

        Raises:
            EncodeError: if the image has zero size or cannot be rasterized.
        """

        intensity = self.intensity(image)
        plane = _TABLES[self.config.scale][intensity].ravel()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Lightness (%s) range [%.3f, %.3f], head %s",
                self.config.scale.value,
                float(plane.min()),
                float(plane.max()),
                np.round(plane[:10], 3).tolist(),
            )
        return plane

    __call__ = extract_lightness
