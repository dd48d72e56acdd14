"""SmartColorizer: the numeric pipeline around a pretrained colorization model.

A captured image is encoded into the planar RGB tensor the model expects, the
model predicts a*b* chrominance, and the prediction is fused with lightness
read from the original image and decoded through CIE XYZ into an sRGB image.
The model itself is an injected callable so any runtime can back it.
"""

from smart_colorizer.config import (
    BusyPolicy,
    EncoderConfig,
    InferenceConfig,
    LightnessConfig,
    LightnessScale,
    PipelineConfig,
    ReconstructionConfig,
)
from smart_colorizer.encoder import TensorEncoder
from smart_colorizer.errors import (
    ColorizationError,
    ConversionError,
    EncodeError,
    InferenceError,
    ModelNotLoadedError,
    PipelineBusyError,
    ShapeError,
)
from smart_colorizer.inference import InferenceInvoker
from smart_colorizer.lightness import LuminanceExtractor
from smart_colorizer.pipeline import ColorizationJob, ColorizationPipeline
from smart_colorizer.reconstruction import ColorReconstructor
from smart_colorizer.types import ColorizationResult, PipelineState

__all__ = [
    "ColorizationPipeline",
    "ColorizationJob",
    "TensorEncoder",
    "LuminanceExtractor",
    "ColorReconstructor",
    "InferenceInvoker",
    "BusyPolicy",
    "EncoderConfig",
    "InferenceConfig",
    "LightnessConfig",
    "LightnessScale",
    "PipelineConfig",
    "ReconstructionConfig",
    "ColorizationError",
    "ConversionError",
    "EncodeError",
    "InferenceError",
    "ModelNotLoadedError",
    "PipelineBusyError",
    "ShapeError",
    "ColorizationResult",
    "PipelineState",
]
