import importlib.util
import os
import tempfile
import unittest
from typing import Tuple

import numpy as np

from smart_colorizer.adapters.torch_adapter import TorchColorizerAdapter
from smart_colorizer.config import InferenceConfig
from smart_colorizer.errors import ModelNotLoadedError
from smart_colorizer.pipeline import ColorizationPipeline
from smart_colorizer.types import PipelineState

HAS_TORCH = importlib.util.find_spec("torch") is not None

if HAS_TORCH:
    import torch

    class _ZeroChroma(torch.nn.Module):
        def forward(self, x: torch.Tensor) -> torch.Tensor:
            return x[:, :2] * 0.0

    class _TupleChroma(torch.nn.Module):
        def forward(self, x: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
            return x[:, :2] * 0.0, x


class TorchColorizerAdapterTest(unittest.TestCase):
    def test_call_before_load(self) -> None:
        adapter = TorchColorizerAdapter(InferenceConfig(model_path="missing.pt"))

        self.assertFalse(adapter.loaded)
        with self.assertRaises(ModelNotLoadedError):
            adapter(np.zeros((3, 256, 256), dtype=np.float32))
        with self.assertRaises(ModelNotLoadedError):
            ColorizationPipeline(adapter).run(np.zeros((4, 4, 3), dtype=np.uint8))

    def test_missing_model_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            config = InferenceConfig(model_path=os.path.join(tmpdir, "absent.pt"))
            adapter = TorchColorizerAdapter(config)

            with self.assertRaises(FileNotFoundError):
                adapter.load()
        self.assertFalse(adapter.loaded)

    def test_unload_without_load_is_noop(self) -> None:
        adapter = TorchColorizerAdapter(InferenceConfig())

        adapter.unload()

        self.assertFalse(adapter.loaded)


@unittest.skipUnless(HAS_TORCH, "torch is not installed")
class TorchColorizerAdapterModelTest(unittest.TestCase):
    def _save_model(self, directory: str, with_tuple: bool) -> str:
        module = _TupleChroma() if with_tuple else _ZeroChroma()
        path = os.path.join(directory, "model.pt")
        torch.jit.script(module).save(path)
        return path

    def test_runs_model_and_pipeline(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            adapter = TorchColorizerAdapter(InferenceConfig(model_path=self._save_model(tmpdir, False)))
            adapter.load()
            self.assertTrue(adapter.loaded)

            output = adapter(np.ones((3, 256, 256), dtype=np.float32))
            self.assertEqual(output.shape, (1, 2, 256, 256))
            self.assertEqual(output.dtype, np.float32)

            with ColorizationPipeline(adapter) as pipeline:
                result = pipeline.run(np.full((8, 8), 200, dtype=np.uint8))
            self.assertIs(result.state, PipelineState.DONE)
            self.assertLessEqual(np.abs(result.image[..., :3].astype(int) - 200).max(), 2)

            adapter.unload()
            self.assertFalse(adapter.loaded)

    def test_selects_output_from_tuple(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            config = InferenceConfig(model_path=self._save_model(tmpdir, True), output_index=0)
            adapter = TorchColorizerAdapter(config)
            adapter.load()

            output = adapter(np.ones((3, 256, 256), dtype=np.float32))

        self.assertEqual(output.shape, (1, 2, 256, 256))
        self.assertTrue(np.all(output == 0.0))


if __name__ == "__main__":
    unittest.main()
