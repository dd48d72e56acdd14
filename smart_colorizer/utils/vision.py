"""Utility helpers for rasterizing, resizing and quantizing images."""

from typing import Tuple

import cv2
import numpy as np
from PIL import Image

from smart_colorizer.errors import EncodeError
from smart_colorizer.types import ImageLike

_RESAMPLE_FLAGS = {
    "bilinear": cv2.INTER_LINEAR,
    "bicubic": cv2.INTER_CUBIC,
    "area": cv2.INTER_AREA,
    "lanczos": cv2.INTER_LANCZOS4,
}

_GRAY_MODES = {"1", "L"}

# Integer modes hold 16-bit samples; "F" holds floats on the 8-bit scale.
_WIDE_MODE_PEAKS = {
    "I": 65535.0,
    "I;16": 65535.0,
    "I;16L": 65535.0,
    "I;16B": 65535.0,
    "I;16N": 65535.0,
    "F": 255.0,
}


def resample_flag(name: str) -> int:
    """Map a filter name to its OpenCV interpolation flag."""

    try:
        return _RESAMPLE_FLAGS[name.lower()]
    except KeyError as exc:
        choices = ", ".join(sorted(_RESAMPLE_FLAGS))
        raise ValueError(f"Unknown resample filter: {name!r} (expected one of {choices})") from exc


def _scale_to_uint8(samples: np.ndarray, peak: float) -> np.ndarray:
    scaled = np.nan_to_num(samples.astype(np.float64) * (255.0 / peak))
    return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)


def rasterize(image: ImageLike) -> np.ndarray:
    """Return an 8-bit pixel buffer for ``image``.

    Args:
        image: PIL image, or uint8 array shaped HxW, HxWx1, HxWx3 (RGB) or
            HxWx4 (RGBA).
            16-bit and float grayscale PIL modes are rescaled to 8 bits.

    Returns:
        ``uint8`` array shaped HxW (gray) or HxWxC with C in {3, 4}.

    Raises:
        EncodeError: if the image has no pixels or is not 8-bit rasterizable.
    """

    if isinstance(image, Image.Image):
        if image.width == 0 or image.height == 0:
            raise EncodeError(f"Image has zero size: {image.width}x{image.height}.")
        try:
            if image.mode in _WIDE_MODE_PEAKS:
                pixels = _scale_to_uint8(np.asarray(image), _WIDE_MODE_PEAKS[image.mode])
            else:
                converted = image.convert("L" if image.mode in _GRAY_MODES else "RGB")
                pixels = np.asarray(converted, dtype=np.uint8)
        except (OSError, ValueError) as exc:
            raise EncodeError(f"Cannot rasterize {image.mode} image.") from exc
    elif isinstance(image, np.ndarray):
        if image.dtype != np.uint8:
            raise EncodeError(f"Expected 8-bit components, got dtype {image.dtype}.")
        pixels = image
    else:
        raise EncodeError(f"Unsupported image type: {type(image).__name__}")

    if pixels.ndim == 3 and pixels.shape[-1] == 1:
        pixels = pixels[..., 0]
    if pixels.ndim not in (2, 3) or (pixels.ndim == 3 and pixels.shape[-1] not in (3, 4)):
        raise EncodeError(f"Unsupported pixel layout with shape {pixels.shape}.")
    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise EncodeError(f"Image has zero size: {pixels.shape[1]}x{pixels.shape[0]}.")
    return np.ascontiguousarray(pixels)


def to_rgb(pixels: np.ndarray) -> np.ndarray:
    """Convert a rasterized buffer to HxWx3 RGB, discarding alpha."""

    if pixels.ndim == 2:
        return cv2.cvtColor(pixels, cv2.COLOR_GRAY2RGB)
    if pixels.shape[-1] == 4:
        return cv2.cvtColor(pixels, cv2.COLOR_RGBA2RGB)
    return pixels


def to_gray(pixels: np.ndarray) -> np.ndarray:
    """Convert a rasterized buffer to single-channel BT.601 luma."""

    if pixels.ndim == 2:
        return pixels
    if pixels.shape[-1] == 4:
        return cv2.cvtColor(pixels, cv2.COLOR_RGBA2GRAY)
    return cv2.cvtColor(pixels, cv2.COLOR_RGB2GRAY)


def resize(image: np.ndarray, size: Tuple[int, int], resample: str = "bilinear") -> np.ndarray:
    """Stretch ``image`` to ``size`` given as (height, width)."""

    height, width = size
    if image.shape[:2] == (height, width):
        return image
    return cv2.resize(image, (width, height), interpolation=resample_flag(resample))


def normalize_uint8(image: np.ndarray) -> np.ndarray:
    """Convert uint8 images to float32 in [0, 1]."""

    if image.dtype == np.uint8:
        return image.astype("float32") / 255.0
    return image.astype("float32")


def to_uint8(image: np.ndarray) -> np.ndarray:
    """Saturating conversion of float images in [0, 1] to uint8."""

    image = np.clip(image, 0.0, 1.0)
    return np.clip((image * 255).round(), 0, 255).astype("uint8")
