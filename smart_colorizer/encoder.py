"""Tensor encoder: captured image to the model's planar RGB input."""

from __future__ import annotations

import logging
from typing import Optional

import einops
import numpy as np

from smart_colorizer.config import EncoderConfig
from smart_colorizer.types import ImageLike
from smart_colorizer.utils.vision import normalize_uint8, rasterize, resize, to_rgb

logger = logging.getLogger(__name__)


class TensorEncoder:
    """Builds the ``[3, size, size]`` float tensor the colorization model consumes.

    The source is stretched to the model resolution, converted to RGB with any
    alpha dropped, scaled from 8-bit to [0, 1] and stored channel-major
    (all R, then all G, then all B).
    """

    def __init__(self, config: Optional[EncoderConfig] = None) -> None:
        self.config = config or EncoderConfig()

    def encode(self, image: ImageLike) -> np.ndarray:
        """Encode ``image`` into a planar float32 RGB tensor.

        Raises:
            EncodeError: if the image has zero size or cannot be rasterized.
        """

        pixels = to_rgb(rasterize(image))
        size = (self.config.size, self.config.size)
        resized = resize(pixels, size, self.config.resample)
        tensor = einops.rearrange(normalize_uint8(resized), "h w c -> c h w")
        tensor = np.ascontiguousarray(tensor, dtype=np.float32)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Encoded %dx%d image into %s tensor, range [%.4f, %.4f], head %s",
                pixels.shape[1],
                pixels.shape[0],
                tensor.shape,
                float(tensor.min()),
                float(tensor.max()),
                np.round(tensor.ravel()[:10], 4).tolist(),
            )
        return tensor

    __call__ = encode
