"""Adapters for external model integrations."""

from smart_colorizer.adapters.torch_adapter import TorchColorizerAdapter

__all__ = [
    "TorchColorizerAdapter",
]
