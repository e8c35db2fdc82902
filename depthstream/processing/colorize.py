from functools import lru_cache

import cv2
import numpy as np

COLORMAPS = {
    "inferno": cv2.COLORMAP_INFERNO,
    "magma": cv2.COLORMAP_MAGMA,
    "plasma": cv2.COLORMAP_PLASMA,
    "viridis": cv2.COLORMAP_VIRIDIS,
}


@lru_cache(maxsize=None)
def build_palette(name="inferno") -> np.ndarray:
    """256 x 3 RGB lookup table, one entry per intensity."""
    if name not in COLORMAPS:
        raise ValueError(f"Unknown colormap: {name}. Choose from: {list(COLORMAPS)}")
    ramp = np.arange(256, dtype=np.uint8).reshape(256, 1)
    bgr = cv2.applyColorMap(ramp, COLORMAPS[name])
    palette = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB).reshape(256, 3)
    palette.flags.writeable = False
    return palette


def colorize_depth(grid: np.ndarray, width: int, height: int, palette: np.ndarray) -> np.ndarray:
    """
    Rotates the grid into the input's orientation, scales it back to the
    caller's resolution and maps it through the palette.
    Returns an (height, width, 3) uint8 RGB image.
    """
    # The network's output is a quarter turn off from its input.
    rotated = cv2.rotate(grid, cv2.ROTATE_90_CLOCKWISE)
    scaled = cv2.resize(rotated, (width, height), interpolation=cv2.INTER_LINEAR)
    return palette[scaled]
