import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import onnxruntime as ort

logger = logging.getLogger(__name__)

CPU_PROVIDER = "CPUExecutionProvider"
# Ordered by preference; only the ones compiled into the installed runtime are tried.
GPU_PROVIDERS = ("CUDAExecutionProvider", "ROCMExecutionProvider", "DmlExecutionProvider")
ACCELERATOR_PROVIDERS = ("NnapiExecutionProvider", "CoreMLExecutionProvider", "QNNExecutionProvider")


class Backend(Enum):
    CPU = "cpu"
    GPU = "gpu"
    NEURAL_ACCELERATOR = "nnapi"

    @classmethod
    def parse(cls, value) -> "Backend":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for backend in cls:
            if key in (backend.value, backend.name.lower()):
                return backend
        raise ValueError(f"Unknown backend: {value!r}. Choose from: {[b.value for b in cls]}")


@dataclass(frozen=True)
class RuntimeConfig:
    """One attempted session configuration: the backend it stands for and its providers."""
    backend: Backend
    providers: Tuple[str, ...]

    @property
    def primary_provider(self) -> str:
        return self.providers[0]


CPU_CONFIG = RuntimeConfig(Backend.CPU, (CPU_PROVIDER,))


def candidate_configs(backend: Backend, available: Optional[Sequence[str]] = None) -> List[RuntimeConfig]:
    """
    Returns the session configurations to try, in order, for the requested backend.
    The model loader keeps the first one that produces a session.

    GPU gets every available GPU provider followed by plain CPU execution.
    The neural accelerator gets a single configuration: the accelerator provider
    with CPU appended, which the runtime uses internally for the nodes the
    accelerator declines.
    """
    backend = Backend.parse(backend)
    if available is None:
        available = ort.get_available_providers()

    if backend is Backend.GPU:
        configs = [RuntimeConfig(Backend.GPU, (p, CPU_PROVIDER)) for p in GPU_PROVIDERS if p in available]
        if not configs:
            logger.warning("GPU delegate not available in this onnxruntime build, falling back to CPU")
        configs.append(CPU_CONFIG)
        return configs

    if backend is Backend.NEURAL_ACCELERATOR:
        accelerators = [p for p in ACCELERATOR_PROVIDERS if p in available]
        if accelerators:
            return [RuntimeConfig(Backend.NEURAL_ACCELERATOR, (accelerators[0], CPU_PROVIDER))]
        logger.warning("No neural accelerator provider available, using default execution")

    return [CPU_CONFIG]


def session_options() -> ort.SessionOptions:
    so = ort.SessionOptions()
    so.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
    return so
