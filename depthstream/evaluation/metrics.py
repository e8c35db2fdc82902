import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import cv2
import os
from scipy.signal import periodogram
from skimage.metrics import structural_similarity as ssim


class MetricTracker:
    def __init__(self):
        self.latencies = []
        self.mean_depths = []
        self.ssim_scores = []
        self.dropped = 0
        self.prev_depth = None

    def update(self, result):
        """Records one delivered InferenceResult."""
        self.latencies.append(result.latency_ms)

        gray = cv2.cvtColor(result.depth_image, cv2.COLOR_RGB2GRAY)
        self.mean_depths.append(float(np.mean(gray)))

        # Resolution can only change between sources, not within one.
        if self.prev_depth is not None and self.prev_depth.shape == gray.shape and min(gray.shape) >= 7:
            self.ssim_scores.append(ssim(self.prev_depth, gray, data_range=255))
        self.prev_depth = gray

    def record_drop(self, count=1):
        self.dropped += count

    def compute_psd_flicker(self):
        """
        High-frequency energy of the per-frame mean intensity.
        A high score means the rendered depth flickers from frame to frame.
        """
        if len(self.mean_depths) < 10:
            return 0.0

        signal = np.array(self.mean_depths)
        signal = signal - np.mean(signal)
        freqs, psd = periodogram(signal)
        mid_point = len(freqs) // 2
        return float(np.sum(psd[mid_point:]))

    def get_summary(self):
        if not self.latencies:
            return {"mean_latency_ms": 0.0, "fps": 0.0, "processed": 0, "dropped": self.dropped,
                    "avg_ssim": 0.0, "high_freq_psd": 0.0}

        mean_latency = float(np.mean(self.latencies))
        return {
            "mean_latency_ms": mean_latency,
            "fps": 1000.0 / mean_latency if mean_latency > 0 else 0.0,
            "processed": len(self.latencies),
            "dropped": self.dropped,
            "avg_ssim": float(np.mean(self.ssim_scores)) if self.ssim_scores else 0.0,
            "high_freq_psd": self.compute_psd_flicker(),
        }

    def plot_metrics(self, output_dir, filename_prefix):
        """Saves latency and mean-depth curves; returns the png path."""
        if len(self.latencies) < 2:
            return None

        plt.figure(figsize=(12, 8))

        plt.subplot(2, 1, 1)
        plt.plot(self.latencies, label='Inference latency (ms)', color='red', alpha=0.8)
        plt.axhline(np.mean(self.latencies), color='black', linestyle='--', label='Mean')
        plt.title('Inference latency per processed frame')
        plt.xlabel('Processed frame')
        plt.ylabel('ms')
        plt.grid(True, linestyle=':', alpha=0.6)
        plt.legend()

        plt.subplot(2, 1, 2)
        plt.plot(self.mean_depths, label='Mean depth intensity', color='blue', alpha=0.8)
        plt.title('Mean depth intensity (flicker analysis)')
        plt.xlabel('Processed frame')
        plt.ylabel('Intensity (0-255)')
        plt.grid(True, linestyle=':', alpha=0.6)
        plt.legend()

        plt.tight_layout()
        os.makedirs(output_dir, exist_ok=True)
        plot_path = os.path.join(output_dir, f"{filename_prefix}_metrics_plot.png")
        plt.savefig(plot_path, dpi=150)
        plt.close()

        return plot_path
