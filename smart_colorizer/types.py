"""Shared type definitions for the SmartColorizer pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Union

import numpy as np
from PIL import Image

# Anything the capture side may hand to the pipeline.
ImageLike = Union[np.ndarray, Image.Image]


class PipelineState(Enum):
    """Lifecycle of a single colorization request."""

    IDLE = "idle"
    ENCODING = "encoding"
    INFERRING = "inferring"
    DECODING = "decoding"
    DONE = "done"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (PipelineState.DONE, PipelineState.CANCELLED, PipelineState.FAILED)


@dataclass
class ColorizationResult:
    """Outcome of a request that did not fail.

    ``image`` is an RGBA ``uint8`` array when ``state`` is DONE and ``None``
    when the request was cancelled.
    """

    state: PipelineState
    request_id: int
    image: Optional[np.ndarray] = None
    timings: Dict[str, float] = field(default_factory=dict)

    @property
    def cancelled(self) -> bool:
        return self.state is PipelineState.CANCELLED

    def to_pil(self) -> Image.Image:
        if self.image is None:
            raise ValueError(f"Request {self.request_id} produced no image ({self.state.value}).")
        return Image.fromarray(self.image)
