import cv2
import numpy as np

from ..errors import MalformedInputError
from ..models.handle import ElementType, ModelDescriptor


def to_rgb(image) -> np.ndarray:
    """
    Validates a raster and returns it as an (H, W, 3) uint8 array.
    Grayscale rasters are expanded and RGBA drops its alpha channel.
    """
    if image is None:
        raise MalformedInputError("No image supplied")
    img = np.asarray(image)
    if img.dtype != np.uint8:
        raise MalformedInputError(f"Expected 8-bit channels, got {img.dtype}")
    if img.ndim == 2:
        img = np.stack([img] * 3, axis=-1)
    elif img.ndim != 3 or img.shape[2] not in (3, 4):
        raise MalformedInputError(f"Expected an RGB raster, got shape {img.shape}")
    elif img.shape[2] == 4:
        img = img[:, :, :3]

    if img.shape[0] == 0 or img.shape[1] == 0:
        raise MalformedInputError(f"Image has zero area: {img.shape[1]}x{img.shape[0]}")
    return np.ascontiguousarray(img)


def prepare_tensor(image, descriptor: ModelDescriptor) -> np.ndarray:
    rgb = to_rgb(image)
    side = descriptor.input_side

    # Aspect ratio is discarded: the model sees a fixed square field of view.
    resized = cv2.resize(rgb, (side, side), interpolation=cv2.INTER_LINEAR)
    if descriptor.input_channels == 1:
        resized = cv2.cvtColor(resized, cv2.COLOR_RGB2GRAY)[:, :, np.newaxis]

    if descriptor.input_type is ElementType.UINT8:
        # Quantized models take the raw bytes; their scale lives in the model.
        tensor = resized.astype(np.uint8)
    else:
        tensor = resized.astype(np.float32) / 255.0

    if descriptor.channels_first:
        tensor = tensor.transpose(2, 0, 1)
    return np.ascontiguousarray(tensor[np.newaxis])
