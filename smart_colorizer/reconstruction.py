"""Color reconstructor: L* plane plus predicted a*b* to an RGBA image.

The decode path is CIE L*a*b* -> CIE XYZ (D65) -> linear sRGB -> gamma
encoded sRGB -> saturating 8-bit quantization. Every pixel is independent,
so each step is written as a whole-array numpy expression.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from smart_colorizer.config import CIE_EPSILON, CIE_KAPPA, CIE_OFFSET, ReconstructionConfig
from smart_colorizer.errors import ConversionError, ShapeError
from smart_colorizer.utils.vision import to_uint8

logger = logging.getLogger(__name__)

XYZ_TO_LINEAR_SRGB = np.array(
    [
        [3.2406, -1.5372, -0.4986],
        [-0.9689, 1.8758, 0.0415],
        [0.0557, -0.2040, 1.0570],
    ],
    dtype=np.float64,
)


def expected_chrominance_shape(size: int) -> Tuple[int, int, int, int]:
    return (1, 2, size, size)


def validate_chrominance_shape(chrominance, size: int) -> np.ndarray:
    """Return ``chrominance`` as an array, or raise if its shape is wrong.

    Raises:
        ShapeError: unless the shape is exactly ``(1, 2, size, size)`` and
            every element is numeric.
    """

    expected = expected_chrominance_shape(size)
    try:
        shape = tuple(np.shape(chrominance))
    except (TypeError, ValueError) as exc:
        raise ShapeError(f"Chrominance tensor is ragged, expected {expected}.") from exc
    if shape != expected:
        raise ShapeError(f"Chrominance tensor has shape {shape}, expected {expected}.")
    try:
        return np.asarray(chrominance, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ShapeError("Chrominance tensor has non-numeric elements.") from exc


def clamp_chrominance(channel: np.ndarray, limit: float = 100.0) -> np.ndarray:
    """Clamp one chrominance channel to ``[-limit, limit]``."""

    return np.clip(channel, -limit, limit)


def _inverse_f(f: np.ndarray) -> np.ndarray:
    cubed = f ** 3
    return np.where(cubed > CIE_EPSILON, cubed, (f - CIE_OFFSET) / CIE_KAPPA)


def lab_to_xyz(
    lightness: np.ndarray,
    a: np.ndarray,
    b: np.ndarray,
    white_point: Optional[Sequence[float]] = None,
) -> np.ndarray:
    """Convert L*a*b* samples to XYZ, stacked on the last axis.

    ``white_point`` scales X, Y and Z by the reference white tristimulus.
    Passing ``None`` leaves them relative to a unit white.
    """

    fy = (lightness + 16.0) / 116.0
    fx = a / 500.0 + fy
    fz = fy - b / 200.0
    xyz = np.stack([_inverse_f(fx), _inverse_f(fy), _inverse_f(fz)], axis=-1)
    if white_point is not None:
        xyz = xyz * np.asarray(white_point, dtype=np.float64)
    return xyz


def xyz_to_linear_rgb(xyz: np.ndarray) -> np.ndarray:
    """Apply the XYZ to linear sRGB matrix along the last axis."""

    return xyz @ XYZ_TO_LINEAR_SRGB.T


def gamma_encode(linear: np.ndarray) -> np.ndarray:
    """sRGB transfer function; output is not clamped."""

    # Floor the base so the power stays real on the branch np.where discards.
    curve = 1.055 * np.power(np.maximum(linear, 0.0031308), 1.0 / 2.4) - 0.055
    return np.where(linear > 0.0031308, curve, 12.92 * linear)


class ColorReconstructor:
    """Fuses the lightness plane with predicted chrominance into RGBA pixels."""

    def __init__(self, config: Optional[ReconstructionConfig] = None) -> None:
        self.config = config or ReconstructionConfig()

    @property
    def white_point(self) -> Optional[Tuple[float, float, float]]:
        if not self.config.apply_white_point:
            return None
        return tuple(self.config.white_point)

    def _prepare(self, lightness, chrominance) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        size = self.config.size
        chroma = validate_chrominance_shape(chrominance, size)
        plane = np.asarray(lightness, dtype=np.float64).ravel()
        if plane.size != size * size:
            raise ConversionError(
                f"Lightness plane has {plane.size} samples, expected {size * size} ({size}x{size})."
            )
        if not np.isfinite(plane).all():
            raise ConversionError("Lightness plane contains non-finite values.")
        if np.isnan(chroma).any():
            raise ConversionError("Chrominance tensor contains NaN values.")

        limit = self.config.chroma_limit
        a = clamp_chrominance(chroma[0, 0].ravel(), limit)
        b = clamp_chrominance(chroma[0, 1].ravel(), limit)
        return plane, a, b

    def reconstruct(self, lightness, chrominance) -> np.ndarray:
        """Decode ``(lightness, chrominance)`` into an RGBA ``uint8`` image.

        Args:
            lightness: L* samples in [0, 100], flat of length size*size or
                shaped (size, size).
            chrominance: a*/b* prediction shaped (1, 2, size, size).

        Returns:
            Array shaped (size, size, 4) with alpha 255.

        Raises:
            ShapeError: chrominance shape mismatch.
            ConversionError: lightness length mismatch or invalid samples.
        """

        plane, a, b = self._prepare(lightness, chrominance)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Decoding L [%.3f, %.3f], a [%.3f, %.3f], b [%.3f, %.3f] after clamping",
                plane.min(),
                plane.max(),
                a.min(),
                a.max(),
                b.min(),
                b.max(),
            )

        xyz = lab_to_xyz(plane, a, b, self.white_point)
        encoded = gamma_encode(xyz_to_linear_rgb(xyz))
        rgb = to_uint8(encoded)

        size = self.config.size
        rgba = np.empty((size * size, 4), dtype=np.uint8)
        rgba[:, :3] = rgb
        rgba[:, 3] = 255
        return rgba.reshape(size, size, 4)

    __call__ = reconstruct
