class DepthStreamError(Exception):
    """Base class for every error raised by depthstream."""


class ModelLoadError(DepthStreamError):
    """The model asset could not be read, decoded or bound to the runtime."""


class InferenceError(DepthStreamError):
    """The runtime failed while executing a single prediction."""


class MalformedInputError(DepthStreamError):
    """The input raster is empty or has an unusable shape."""


class FrameSourceError(DepthStreamError):
    """A camera, video file or image could not be opened or read."""
