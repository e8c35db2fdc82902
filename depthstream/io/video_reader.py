import cv2
import os
import logging

from ..errors import FrameSourceError

logger = logging.getLogger(__name__)

DEFAULT_CAMERA_FPS = 30.0


def load_image(path):
    """Reads a still image as an RGB array."""
    if not os.path.exists(path):
        raise FrameSourceError(f"File not found: {path}")
    img = cv2.imread(path, cv2.IMREAD_COLOR)
    if img is None:
        raise FrameSourceError(f"Could not read image: {path}")
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)


def save_image(path, rgb):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    if not cv2.imwrite(path, cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)):
        raise FrameSourceError(f"Could not write image: {path}")


class VideoHandler:
    """Frame source over a video file or a camera index, with an optional mp4 writer."""

    def __init__(self, source, output_dir=None, filename_prefix="depth"):
        self.source = source
        self.is_camera = isinstance(source, int)

        if not self.is_camera and not os.path.exists(source):
            raise FrameSourceError(f"File not found: {source}")

        self.cap = cv2.VideoCapture(source)
        if not self.cap.isOpened():
            raise FrameSourceError(f"Could not open video source: {source}")

        self.width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self.fps = self.cap.get(cv2.CAP_PROP_FPS) or DEFAULT_CAMERA_FPS
        self.total_frames = 0 if self.is_camera else max(int(self.cap.get(cv2.CAP_PROP_FRAME_COUNT)), 0)

        self.output_path = None
        if output_dir:
            self.output_path = os.path.join(output_dir, f"{filename_prefix}.mp4")
        self.writer = None

    def get_info(self):
        return {'width': self.width, 'height': self.height, 'fps': self.fps, 'frames': self.total_frames}

    def start_writer(self, width, height):
        if self.output_path is None:
            raise FrameSourceError("No output directory configured for the writer")
        os.makedirs(os.path.dirname(self.output_path), exist_ok=True)
        fourcc = cv2.VideoWriter_fourcc(*'mp4v')
        self.writer = cv2.VideoWriter(self.output_path, fourcc, self.fps, (width, height))
        logger.info(f"Writer started: {self.output_path} ({width}x{height})")

    def read(self):
        ret, frame = self.cap.read()
        if not ret:
            return False, None
        return True, cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def write(self, rgb):
        if self.writer:
            self.writer.write(cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR))

    def close(self):
        if self.cap:
            self.cap.release()
        if self.writer:
            self.writer.release()
            self.writer = None
