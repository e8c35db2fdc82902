import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np
import onnxruntime as ort

from ..errors import InferenceError, ModelLoadError
from .backend import Backend, candidate_configs, session_options

logger = logging.getLogger(__name__)


class ElementType(Enum):
    FLOAT32 = "tensor(float)"
    UINT8 = "tensor(uint8)"
    OTHER = "other"

    @classmethod
    def from_onnx(cls, type_name: str) -> "ElementType":
        for member in (cls.FLOAT32, cls.UINT8):
            if type_name == member.value:
                return member
        return cls.OTHER

    @property
    def bytes_per_element(self) -> int:
        return 1 if self is ElementType.UINT8 else 4

    @property
    def dtype(self):
        # Anything that is not uint8 is carried as float32.
        return np.uint8 if self is ElementType.UINT8 else np.float32


@dataclass(frozen=True)
class ModelDescriptor:
    name: str
    backend: Backend
    input_side: int
    output_side: int
    input_type: ElementType
    output_type: ElementType
    input_name: str
    input_channels: int
    channels_first: bool


def _static_dims(shape, what: str) -> Tuple[int, ...]:
    """Spatial dims must be fixed; a symbolic batch dim is read as 1."""
    dims = []
    for i, d in enumerate(shape):
        if isinstance(d, int) and d > 0:
            dims.append(d)
        elif i == 0:
            dims.append(1)
        else:
            raise ModelLoadError(f"{what} tensor has a dynamic dimension: {list(shape)}")
    if not dims or dims[0] != 1:
        raise ModelLoadError(f"{what} tensor must have batch size 1: {list(shape)}")
    return tuple(dims)


def parse_input_shape(shape) -> Tuple[int, int, bool]:
    """Returns (side, channels, channels_first) for [1,S,S,C] or [1,C,S,S]."""
    dims = _static_dims(shape, "Input")
    if len(dims) != 4:
        raise ModelLoadError(f"Input tensor must be 4-D, got {list(dims)}")
    if dims[1] == dims[2] and dims[3] in (1, 3):
        return dims[1], dims[3], False
    if dims[1] in (1, 3) and dims[2] == dims[3]:
        return dims[2], dims[1], True
    raise ModelLoadError(f"Input tensor is not a square image: {list(dims)}")


def parse_output_shape(shape) -> int:
    """Returns the side of a [1,S,S,1], [1,1,S,S] or [1,S,S] output."""
    dims = _static_dims(shape, "Output")[1:]
    if len(dims) == 3:
        if dims[2] == 1:
            dims = dims[:2]
        elif dims[0] == 1:
            dims = dims[1:]
    if len(dims) != 2 or dims[0] != dims[1]:
        raise ModelLoadError(f"Output tensor is not a square depth map: {list(shape)}")
    return dims[0]


class ModelHandle:
    """
    Owns one loaded network and the session bound to the chosen backend.

    Tensor shapes and element types are read back from the model, so models
    with different resolutions or quantization load the same way.
    Use as a context manager, or call close() once when done.
    """

    def __init__(self, model_path: str, backend=Backend.CPU):
        self.model_path = model_path
        self.name = os.path.basename(model_path)
        self.session = None

        model_bytes = self._read_model(model_path)
        self.session, effective = self._create_session(model_bytes, Backend.parse(backend))
        self.descriptor = self._describe(effective)

        d = self.descriptor
        logger.info(f"Model {d.name} loaded on {d.backend.value} | input dim: {d.input_side}, output dim: {d.output_side}")
        logger.debug(f"Input type: {d.input_type.name}, output type: {d.output_type.name}")

    @staticmethod
    def _read_model(model_path):
        try:
            with open(model_path, "rb") as f:
                return f.read()
        except OSError as e:
            raise ModelLoadError(f"Cannot read model {model_path}: {e}") from e

    def _create_session(self, model_bytes, backend):
        configs = candidate_configs(backend)
        last_error = None
        for config in configs:
            try:
                session = ort.InferenceSession(
                    model_bytes, sess_options=session_options(), providers=list(config.providers)
                )
            except Exception as e:
                last_error = e
                if config is not configs[-1]:
                    logger.warning(f"{config.primary_provider} failed ({e}), falling back")
                continue

            if config.primary_provider not in session.get_providers():
                # The runtime may silently drop a provider it cannot initialise.
                logger.warning(f"{config.primary_provider} not available, falling back to CPU")
                return session, Backend.CPU
            return session, config.backend

        raise ModelLoadError(f"Cannot load model {self.name}: {last_error}") from last_error

    def _describe(self, backend) -> ModelDescriptor:
        inp = self.session.get_inputs()[0]
        out = self.session.get_outputs()[0]

        input_type = ElementType.from_onnx(inp.type)
        if input_type is ElementType.OTHER:
            self.close()
            raise ModelLoadError(f"Unsupported input element type {inp.type} in {self.name}")

        try:
            side, channels, channels_first = parse_input_shape(inp.shape)
            output_side = parse_output_shape(out.shape)
        except ModelLoadError:
            self.close()
            raise

        return ModelDescriptor(
            name=self.name,
            backend=backend,
            input_side=side,
            output_side=output_side,
            input_type=input_type,
            output_type=ElementType.from_onnx(out.type),
            input_name=inp.name,
            input_channels=channels,
            channels_first=channels_first,
        )

    @property
    def closed(self):
        return self.session is None

    def run(self, tensor: np.ndarray) -> np.ndarray:
        if self.session is None:
            raise InferenceError(f"Model {self.name} is closed")
        return self.session.run(None, {self.descriptor.input_name: tensor})[0]

    def close(self):
        if self.session is not None:
            self.session = None
            logger.debug(f"Model {self.name} released")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
