"""
depthstream/pipeline.py

Single-image depth estimation.

Responsibilities:
- Load the model once on the requested backend
- Run preprocessing, inference, decoding and colorization for one image
- Release the model when the session ends

Usage:
    with DepthPipeline("models/depth_anything_small.onnx", backend="gpu") as pipeline:
        result = pipeline.predict(rgb_image)
        print(result.latency_ms)
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .models.backend import Backend
from .models.handle import ModelDescriptor, ModelHandle
from .processing.colorize import build_palette, colorize_depth
from .processing.decoder import decode_output
from .processing.inference import run_model
from .processing.preprocess import prepare_tensor, to_rgb

logger = logging.getLogger(__name__)


@dataclass
class InferenceResult:
    depth_image: np.ndarray  # (H, W, 3) uint8 RGB at the input's resolution
    latency_ms: int
    frame_index: Optional[int] = None


class DepthPipeline:
    def __init__(self, model_path: str, backend=Backend.CPU, colormap: str = "inferno"):
        """
        Args:
            model_path: Path to the .onnx model file
            backend: Backend or one of "cpu", "gpu", "nnapi"
            colormap: Palette used to render the depth map

        Raises:
            ModelLoadError: if the model cannot be loaded
        """
        self.colormap = colormap
        self.palette = build_palette(colormap)
        self.handle = ModelHandle(model_path, backend)

    @property
    def descriptor(self) -> ModelDescriptor:
        return self.handle.descriptor

    def predict(self, image) -> InferenceResult:
        """
        Estimates depth for one RGB image.

        Returns:
            InferenceResult whose depth image has the input's width and height

        Raises:
            MalformedInputError: empty or badly shaped image
            InferenceError: the runtime failed, or the pipeline is closed
        """
        rgb = to_rgb(image)
        h, w = rgb.shape[:2]

        tensor = prepare_tensor(rgb, self.descriptor)
        buffer, latency_ms = run_model(self.handle, tensor)
        grid = decode_output(buffer, self.descriptor.output_type, self.descriptor.output_side)
        depth_image = colorize_depth(grid, w, h, self.palette)

        logger.debug(f"Depth {w}x{h} in {latency_ms} ms")
        return InferenceResult(depth_image=depth_image, latency_ms=latency_ms)

    def close(self):
        self.handle.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
