import time
from typing import Tuple

import numpy as np

from ..errors import InferenceError
from ..models.handle import ModelHandle


def run_model(handle: ModelHandle, tensor: np.ndarray) -> Tuple[bytes, int]:
    """
    Runs the model once and returns the raw output bytes and the latency in ms.

    The buffer holds output_side * output_side elements of the output type.
    Latency covers the model call only.
    """
    d = handle.descriptor
    buffer = np.empty(d.output_side * d.output_side, dtype=d.output_type.dtype)

    start = time.perf_counter()
    try:
        output = handle.run(tensor)
    except InferenceError:
        raise
    except Exception as e:
        raise InferenceError(f"Model {d.name} failed: {e}") from e
    latency_ms = int((time.perf_counter() - start) * 1000)

    output = np.asarray(output)
    if output.size != buffer.size:
        raise InferenceError(
            f"Model {d.name} produced {output.size} values, expected {d.output_side}x{d.output_side}"
        )
    np.copyto(buffer, output.reshape(-1), casting="unsafe")
    return buffer.tobytes(), latency_ms
