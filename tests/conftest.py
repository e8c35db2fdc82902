from types import SimpleNamespace

import numpy as np
import pytest

import depthstream.models.handle as handle_module


class FakeSession:
    """
    Stands in for onnxruntime.InferenceSession.

    Input and output metadata are class attributes so each test can shape
    the "model" it needs; run() returns `output_fn(tensor)`.
    """
    input_shape = [1, 8, 8, 3]
    input_type = "tensor(float)"
    output_shape = [1, 4, 4, 1]
    output_type = "tensor(float)"
    active_providers = None
    fail_providers = ()
    output_fn = None
    created = []

    def __init__(self, model_bytes, sess_options=None, providers=None):
        if providers and providers[0] in self.fail_providers:
            raise RuntimeError(f"{providers[0]} init failed")
        self.providers = list(providers or ["CPUExecutionProvider"])
        self.calls = 0
        type(self).created.append(self)

    def get_inputs(self):
        return [SimpleNamespace(name="image", shape=self.input_shape, type=self.input_type)]

    def get_outputs(self):
        return [SimpleNamespace(name="depth", shape=self.output_shape, type=self.output_type)]

    def get_providers(self):
        return self.active_providers if self.active_providers is not None else self.providers

    def run(self, output_names, feed):
        self.calls += 1
        tensor = feed["image"]
        if self.output_fn is not None:
            return [type(self).output_fn(tensor)]
        return [default_output(tensor, self.output_shape, self.output_type)]


def default_output(tensor, output_shape, output_type):
    """Deterministic depth: mean brightness per output cell, plus a ramp."""
    side = output_shape[1] if output_shape[-1] == 1 else output_shape[-1]
    img = tensor[0].astype(np.float32)
    if img.shape[0] in (1, 3) and img.shape[0] != img.shape[-1]:
        img = img.transpose(1, 2, 0)
    gray = img.mean(axis=2)
    step = gray.shape[0] // side
    cells = gray[:side * step, :side * step].reshape(side, step, side, step).mean(axis=(1, 3))
    depth = cells + np.arange(side * side, dtype=np.float32).reshape(side, side)
    if output_type == "tensor(uint8)":
        depth = np.clip(depth * 10, 0, 255).astype(np.uint8)
    return depth.reshape(output_shape)


@pytest.fixture
def fake_session(monkeypatch):
    """Fresh FakeSession subclass patched into onnxruntime for one test."""
    session_cls = type("Session", (FakeSession,), {"created": []})
    monkeypatch.setattr(handle_module.ort, "InferenceSession", session_cls)
    monkeypatch.setattr(handle_module.ort, "get_available_providers",
                        lambda: ["CUDAExecutionProvider", "CPUExecutionProvider"])
    return session_cls


@pytest.fixture
def model_file(tmp_path):
    path = tmp_path / "depth_small.onnx"
    path.write_bytes(b"not-a-real-model")
    return str(path)


@pytest.fixture
def test_image():
    """A 64x48 RGB gradient with a bright square."""
    h, w = 48, 64
    arr = np.zeros((h, w, 3), dtype=np.uint8)
    arr[:, :, 0] = np.linspace(0, 255, w, dtype=np.uint8)[np.newaxis, :]
    arr[:, :, 1] = np.linspace(0, 255, h, dtype=np.uint8)[:, np.newaxis]
    arr[10:30, 20:40] = [255, 200, 150]
    return arr
