"""TorchScript adapter implementing the inference invoker contract."""

from __future__ import annotations

import logging
import os

import numpy as np

from smart_colorizer.config import InferenceConfig
from smart_colorizer.errors import ModelNotLoadedError

logger = logging.getLogger(__name__)


class TorchColorizerAdapter:
    """Loads a TorchScript colorization model and runs it on encoded tensors."""

    def __init__(self, config: InferenceConfig) -> None:
        self.config = config
        self._loaded = False
        self._model = None
        self._torch = None

    @property
    def loaded(self) -> bool:
        return self._loaded

    def _resolve_path(self, path: str) -> str:
        if os.path.isabs(path):
            return path
        return os.path.abspath(path)

    def load(self) -> None:
        """Load the TorchScript module onto the configured device."""

        if self._loaded:
            return
        model_path = self._resolve_path(self.config.model_path)
        if not os.path.exists(model_path):
            raise FileNotFoundError(f"Colorization model not found: {model_path}")
        try:
            import torch
        except Exception as exc:  # pragma: no cover - depends on external libs
            raise RuntimeError("Failed to import torch; install the 'torch' extra.") from exc

        model = torch.jit.load(model_path, map_location=self.config.device)
        model.eval()

        self._model = model
        self._torch = torch
        self._loaded = True
        logger.info("Loaded colorization model %s on %s", model_path, self.config.device)

    def __call__(self, tensor: np.ndarray) -> np.ndarray:
        if not self._loaded:
            raise ModelNotLoadedError("Call load() before running inference.")
        torch = self._torch
        batch = torch.from_numpy(np.ascontiguousarray(tensor, dtype=np.float32)[None])
        batch = batch.to(self.config.device)
        with torch.no_grad():
            output = self._model(batch)
        if isinstance(output, (tuple, list)):
            output = output[self.config.output_index]
        return output.detach().float().cpu().numpy()

    def unload(self) -> None:
        """Release model weights to free device memory."""

        if not self._loaded:
            return
        self._model = None
        if self._torch is not None and self.config.device.startswith("cuda"):
            self._torch.cuda.empty_cache()
        self._loaded = False
        logger.info("Unloaded colorization model")
