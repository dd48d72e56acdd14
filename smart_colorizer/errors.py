"""Exceptions raised by the SmartColorizer pipeline.

Every pipeline error is terminal for the request that raised it. Cancellation
is not an error; it is reported through :class:`PipelineState.CANCELLED`.
"""


class ColorizationError(Exception):
    """Base class for all colorization failures."""


class EncodeError(ColorizationError):
    """The source image has no pixels or cannot be rasterized to 8 bits."""


class InferenceError(ColorizationError):
    """The inference invoker reported a failure."""


class ShapeError(ColorizationError):
    """The chrominance tensor does not have the expected shape."""


class ConversionError(ColorizationError):
    """Lightness and chrominance cannot be combined into an image."""


class ModelNotLoadedError(ColorizationError):
    """The inference invoker is missing or its model is not loaded yet."""


class PipelineBusyError(ColorizationError):
    """A request was rejected because another one is still in flight."""
