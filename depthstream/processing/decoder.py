import logging

import numpy as np

from ..errors import InferenceError
from ..models.handle import ElementType

logger = logging.getLogger(__name__)


def decode_output(buffer, element_type: ElementType, side: int) -> np.ndarray:
    """
    Turns the raw output buffer into a (side, side) uint8 intensity grid.
    Darker means closer, lighter means farther, for both encodings.
    Types other than uint8 take the float path.
    """
    expected = side * side * element_type.bytes_per_element
    size = memoryview(buffer).nbytes
    if size != expected:
        raise InferenceError(f"Output buffer holds {size} bytes, expected {expected}")

    if element_type is ElementType.UINT8:
        return decode_quantized(buffer, side)
    return decode_float(buffer, side)


def decode_float(buffer, side: int) -> np.ndarray:
    values = np.frombuffer(buffer, dtype=np.float32, count=side * side).astype(np.float64)
    finite = np.isfinite(values)
    if not finite.any():
        logger.debug("Float output has no finite values")
        return np.zeros((side, side), dtype=np.uint8)

    d_min, d_max = values[finite].min(), values[finite].max()
    logger.debug(f"Float output range: min={d_min}, max={d_max}")

    # Min-max is taken per frame, so intensities are relative within one frame.
    if not d_max > d_min:
        return np.zeros((side, side), dtype=np.uint8)
    # Non-finite cells (NaN, +/-inf) render as 0.
    scaled = np.zeros_like(values)
    scaled[finite] = np.round((values[finite] - d_min) / (d_max - d_min) * 255.0)
    return np.clip(scaled, 0, 255).astype(np.uint8).reshape(side, side)


def decode_quantized(buffer, side: int) -> np.ndarray:
    values = np.frombuffer(buffer, dtype=np.uint8, count=side * side).reshape(side, side)
    return (255 - values.astype(np.int16)).astype(np.uint8)
