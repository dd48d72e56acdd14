import argparse
import logging
import os
import sys
from typing import Optional

import cv2
import numpy as np

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from smart_colorizer.adapters import TorchColorizerAdapter
from smart_colorizer.config import (
    EncoderConfig,
    InferenceConfig,
    LightnessConfig,
    PipelineConfig,
    ReconstructionConfig,
)
from smart_colorizer.pipeline import ColorizationPipeline


def _load_image(path: str) -> np.ndarray:
    image = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if image is None:
        raise FileNotFoundError(f"Cannot read image: {path}")
    if image.dtype == np.uint16:
        image = (image / 257.0).round().astype(np.uint8)
    if image.ndim == 2:
        return image
    if image.shape[-1] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def _save_rgba(path: str, image: np.ndarray) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    cv2.imwrite(path, cv2.cvtColor(image, cv2.COLOR_RGBA2BGRA))


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Colorize a photograph with a TorchScript model.")
    parser.add_argument("--image", required=True, help="Input image path")
    parser.add_argument("--model", required=True, help="TorchScript colorization model")
    parser.add_argument("--out", default="outputs/colorized.png", help="Output PNG path")
    parser.add_argument("--device", default="cpu")
    parser.add_argument(
        "--resample",
        default="bilinear",
        choices=["bilinear", "bicubic", "area", "lanczos"],
    )
    parser.add_argument(
        "--lightness-scale",
        default="perceptual",
        choices=["perceptual", "linear"],
        help="linear reproduces the original app's L = v / 255 * 100",
    )
    parser.add_argument(
        "--no-white-point",
        action="store_true",
        help="Skip the D65 white point scaling (original app behavior)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log channel ranges and timings")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    config = PipelineConfig(
        encoder=EncoderConfig(resample=args.resample),
        lightness=LightnessConfig(resample=args.resample, scale=args.lightness_scale),
        reconstruction=ReconstructionConfig(apply_white_point=not args.no_white_point),
    )
    adapter = TorchColorizerAdapter(InferenceConfig(model_path=args.model, device=args.device))
    adapter.load()
    try:
        with ColorizationPipeline(adapter, config) as pipeline:
            result = pipeline.submit(_load_image(args.image)).result()
    finally:
        adapter.unload()

    _save_rgba(args.out, result.image)
    print(f"colorized image saved to {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
