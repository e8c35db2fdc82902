import numpy as np
import pytest

from depthstream.evaluation.metrics import MetricTracker
from depthstream.pipeline import InferenceResult


def result(value, latency):
    img = np.full((16, 16, 3), value, dtype=np.uint8)
    img[4:8, 4:8] = 255 - value
    return InferenceResult(depth_image=img, latency_ms=latency)


def test_empty_summary():
    summary = MetricTracker().get_summary()
    assert summary["processed"] == 0
    assert summary["fps"] == 0.0


def test_latency_and_fps():
    tracker = MetricTracker()
    for latency in (10, 20, 30):
        tracker.update(result(50, latency))
    tracker.record_drop(4)

    summary = tracker.get_summary()
    assert summary["mean_latency_ms"] == 20.0
    assert summary["fps"] == 50.0
    assert summary["processed"] == 3
    assert summary["dropped"] == 4
    assert summary["avg_ssim"] == pytest.approx(1.0)


def test_flicker_needs_ten_frames():
    tracker = MetricTracker()
    for i in range(9):
        tracker.update(result(0 if i % 2 else 200, 5))
    assert tracker.compute_psd_flicker() == 0.0

    tracker.update(result(200, 5))
    assert tracker.compute_psd_flicker() > 0.0


def test_plot_metrics(tmp_path):
    tracker = MetricTracker()
    assert tracker.plot_metrics(str(tmp_path), "run") is None

    tracker.update(result(10, 5))
    tracker.update(result(20, 7))
    path = tracker.plot_metrics(str(tmp_path), "run")
    assert path.endswith("run_metrics_plot.png")
    assert (tmp_path / "run_metrics_plot.png").exists()
