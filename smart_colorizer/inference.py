"""Contract for the external colorization model."""

from __future__ import annotations

import logging
import time
from typing import Any, Optional, Protocol, runtime_checkable

import numpy as np

from smart_colorizer.errors import InferenceError, ModelNotLoadedError

logger = logging.getLogger(__name__)


@runtime_checkable
class InferenceInvoker(Protocol):
    """Tensor in, chrominance out.

    Input is the ``[3, 256, 256]`` planar RGB tensor; output must be the
    ``[1, 2, 256, 256]`` a*b* prediction. Implementations may expose a
    boolean ``loaded`` attribute; the pipeline refuses to start while it is
    false.
    """

    def __call__(self, tensor: np.ndarray) -> Any:
        ...


def ensure_ready(invoker: Optional[InferenceInvoker]) -> InferenceInvoker:
    """Raise ``ModelNotLoadedError`` unless ``invoker`` can be called now."""

    if invoker is None:
        raise ModelNotLoadedError("No inference invoker configured.")
    if not getattr(invoker, "loaded", True):
        raise ModelNotLoadedError(f"{type(invoker).__name__} has not loaded its model yet.")
    return invoker


def invoke(invoker: InferenceInvoker, tensor: np.ndarray) -> Any:
    """Call ``invoker`` and tag any failure as ``InferenceError``."""

    started = time.perf_counter()
    try:
        output = invoker(tensor)
    except InferenceError:
        raise
    except Exception as exc:
        raise InferenceError(f"Inference failed: {exc}") from exc
    if output is None:
        raise InferenceError("Inference returned no output.")
    logger.debug("Inference took %.1f ms", (time.perf_counter() - started) * 1000.0)
    return output
