"""Configuration dataclasses for the SmartColorizer pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple, Union

# Model input and output spatial resolution.
MODEL_SIZE = 256

# CIE D65 reference white, Y normalized to 1.
D65_WHITE_POINT = (0.95047, 1.0, 1.08883)

# CIE L* forward and inverse transform constants.
CIE_EPSILON = 0.008856
CIE_KAPPA = 7.787
CIE_OFFSET = 16.0 / 116.0


class LightnessScale(Enum):
    """How 8-bit intensity is mapped to L*."""

    LINEAR = "linear"
    PERCEPTUAL = "perceptual"


class BusyPolicy(Enum):
    """What the pipeline does with a request while another is in flight."""

    REJECT = "reject"
    REPLACE = "replace"


@dataclass
class EncoderConfig:
    """Settings for turning a captured image into the model input tensor.

    Attributes:
        size: Square edge length of the input tensor.
        resample: Resize filter (bilinear/bicubic/area/lanczos).
    """

    size: int = MODEL_SIZE
    resample: str = "bilinear"


@dataclass
class LightnessConfig:
    """Settings for extracting the L* plane from the original image.

    Attributes:
        size: Square edge length of the lightness plane.
        resample: Resize filter (bilinear/bicubic/area/lanczos).
        scale: Intensity to L* mapping. ``LINEAR`` is the plain
            ``L = v / 255 * 100`` formula. ``PERCEPTUAL`` decodes sRGB first and
            is the exact inverse of the decoder, so neutral gray round-trips.
    """

    size: int = MODEL_SIZE
    resample: str = "bilinear"
    scale: Union[LightnessScale, str] = LightnessScale.PERCEPTUAL

    def __post_init__(self) -> None:
        if isinstance(self.scale, str):
            self.scale = LightnessScale(self.scale.lower())


@dataclass
class ReconstructionConfig:
    """Settings for decoding predicted chrominance into RGBA.

    Attributes:
        size: Expected spatial size of the chrominance tensor.
        chroma_limit: a* and b* are clamped to [-chroma_limit, chroma_limit].
        white_point: XYZ tristimulus of the reference white.
        apply_white_point: Scale XYZ by the white point. Disable only to
            reproduce output of the original app, which skipped it.
    """

    size: int = MODEL_SIZE
    chroma_limit: float = 100.0
    white_point: Tuple[float, float, float] = D65_WHITE_POINT
    apply_white_point: bool = True


@dataclass
class InferenceConfig:
    """Settings for the bundled TorchScript colorization model.

    Attributes:
        model_path: Path to a TorchScript file.
        device: Torch device string.
        output_index: Which element to use when the model returns a tuple.
    """

    model_path: str = "models/colorization_model.pt"
    device: str = "cpu"
    output_index: int = 0


@dataclass
class PipelineConfig:
    """Top-level configuration for the SmartColorizer pipeline."""

    encoder: EncoderConfig = field(default_factory=EncoderConfig)
    lightness: LightnessConfig = field(default_factory=LightnessConfig)
    reconstruction: ReconstructionConfig = field(default_factory=ReconstructionConfig)
    busy_policy: Union[BusyPolicy, str] = BusyPolicy.REJECT
    thread_name_prefix: str = "smart-colorizer"

    def __post_init__(self) -> None:
        if isinstance(self.busy_policy, str):
            self.busy_policy = BusyPolicy(self.busy_policy.lower())
