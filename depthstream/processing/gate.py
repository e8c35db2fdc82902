import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from enum import Enum

logger = logging.getLogger(__name__)


class GateState(Enum):
    IDLE = "idle"
    BUSY = "busy"


class FrameAdmissionGate:
    """
    Lets at most one frame through to the pipeline at a time.

    Frames offered while a prediction is running are dropped, never queued,
    so a fast source always gets its latest frame processed next.
    Predictions run on a single worker thread; results and errors go to the
    callbacks in the order the frames were accepted.
    """

    def __init__(self, pipeline, on_result, on_error=None):
        self.pipeline = pipeline
        self.on_result = on_result
        self.on_error = on_error
        self.accepted = 0
        self.dropped = 0
        self._busy = False
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="depth-inference")

    @property
    def state(self) -> GateState:
        with self._lock:
            return GateState.BUSY if self._busy else GateState.IDLE

    def _acquire(self):
        """Returns the accepted frame's index, or None if busy."""
        with self._lock:
            if self._busy:
                self.dropped += 1
                return None
            self._busy = True
            self.accepted += 1
            return self.accepted

    def _release(self):
        with self._lock:
            self._busy = False

    def on_frame(self, frame) -> bool:
        index = self._acquire()
        if index is None:
            logger.debug("Frame dropped, inference in flight")
            return False
        try:
            self._executor.submit(self._run, frame, index)
        except RuntimeError:
            self._release()
            raise
        return True

    def _run(self, frame, index):
        result, error = None, None
        try:
            result = self.pipeline.predict(frame)
            result.frame_index = index
        except Exception as e:
            error = e
        finally:
            self._release()

        if error is not None and self.on_error is None:
            logger.error(f"Inference failed on frame {index}: {error}")
            return
        # Nothing collects the worker's future, so delivery failures are logged here.
        try:
            if error is None:
                self.on_result(result)
            else:
                self.on_error(index, error)
        except Exception:
            logger.exception(f"Result delivery failed on frame {index}")

    def shutdown(self, wait=True):
        self._executor.shutdown(wait=wait)
