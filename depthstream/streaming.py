"""
depthstream/streaming.py

Live depth estimation over a continuous frame source.

One thread reads frames at the source's cadence and offers each to a
FrameAdmissionGate; predictions run on the gate's worker, so reading never
waits on the model. Frames that arrive mid-prediction are dropped.
"""

import logging
import threading
import time

from .processing.gate import FrameAdmissionGate

logger = logging.getLogger(__name__)


class StreamSession:
    def __init__(self, pipeline, source, on_result, on_error=None, max_frames=None, realtime=False):
        """
        Args:
            pipeline: object with predict(image) -> InferenceResult
            source: object with read() -> (ok, rgb_frame) and an fps attribute
            on_result: called with each InferenceResult, on the inference worker
            on_error: called with (frame_index, exception) for failed frames
            max_frames: stop after reading this many frames
            realtime: pace reads at the source fps (for video files standing in for a camera)
        """
        self.source = source
        self.max_frames = max_frames
        self.realtime = realtime
        self.frames_read = 0
        self.gate = FrameAdmissionGate(pipeline, on_result, on_error)
        self._stop = threading.Event()

    def _ingest(self):
        interval = 1.0 / self.source.fps if self.realtime and getattr(self.source, "fps", 0) else 0.0
        while not self._stop.is_set():
            started = time.perf_counter()
            ok, frame = self.source.read()
            if not ok:
                break
            self.frames_read += 1
            self.gate.on_frame(frame)
            if self.max_frames and self.frames_read >= self.max_frames:
                break
            if interval:
                time.sleep(max(0.0, interval - (time.perf_counter() - started)))
        logger.debug(f"Ingestion stopped after {self.frames_read} frames")

    def run(self):
        """Blocks until the source is exhausted (or stop() is called) and the last prediction is delivered."""
        thread = threading.Thread(target=self._ingest, name="frame-ingest", daemon=True)
        thread.start()
        try:
            while thread.is_alive():
                thread.join(timeout=0.1)
        finally:
            self._stop.set()
            thread.join()
            self.gate.shutdown(wait=True)
        logger.info(f"Stream finished: {self.gate.accepted} processed, {self.gate.dropped} dropped")

    def stop(self):
        self._stop.set()
