"""
CPU grayscale reduction of video frames to the mosaic grid.

Frames are shrunk to one sample per block with area-weighted interpolation
(each output sample is the overlap-weighted mean of the source pixels it
covers) and then converted to luma.
"""

import math
import numpy as np
from numba import jit, prange

from ..errors import ConfigError


# Standard RGB to grayscale weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


@jit(nopython=True, parallel=True)
def _area_resize_cpu_horizontal(image, new_width):
    """Area-weighted horizontal resize of a (height, width, channels) float32 image."""
    old_height, old_width, channels = image.shape
    resized = np.zeros((old_height, new_width, channels), dtype=np.float32)

    x_scale = old_width / new_width

    for x in prange(new_width):
        start = x * x_scale
        end = start + x_scale
        first = int(math.floor(start))
        last = min(int(math.ceil(end)), old_width)

        for src_x in range(first, last):
            overlap = min(end, src_x + 1.0) - max(start, float(src_x))
            if overlap <= 0.0:
                continue
            for y in range(old_height):
                for c in range(channels):
                    resized[y, x, c] += image[y, src_x, c] * overlap

        for y in range(old_height):
            for c in range(channels):
                resized[y, x, c] /= x_scale

    return resized


def area_resize_cpu(image: np.ndarray, new_width: int, new_height: int) -> np.ndarray:
    """
    Area-weighted resize using CPU.

    Args:
        image: Input image (H, W, C) or (H, W)
        new_width: Target width
        new_height: Target height

    Returns:
        Resized float32 image with the same number of dimensions as the input
    """
    squeeze = image.ndim == 2
    work = image[:, :, np.newaxis] if squeeze else image
    work = np.ascontiguousarray(work, dtype=np.float32)

    if new_width == 0 or new_height == 0:
        empty = np.zeros((new_height, new_width, work.shape[2]), dtype=np.float32)
        return empty[:, :, 0] if squeeze else empty

    temp = _area_resize_cpu_horizontal(work, new_width)
    # Vertical pass reuses the horizontal kernel on the transposed image
    temp = np.ascontiguousarray(temp.transpose(1, 0, 2))
    resized = _area_resize_cpu_horizontal(temp, new_height)
    resized = np.ascontiguousarray(resized.transpose(1, 0, 2))

    return resized[:, :, 0] if squeeze else resized


def luma_cpu(image: np.ndarray) -> np.ndarray:
    """Convert an RGB float image to a rounded uint8 luma plane."""
    if image.ndim == 3 and image.shape[2] == 3:
        gray = image.astype(np.float64) @ LUMA_WEIGHTS
    elif image.ndim == 3 and image.shape[2] == 1:
        gray = image[:, :, 0]
    else:
        gray = image
    return np.clip(np.rint(gray), 0, 255).astype(np.uint8)


def reduce_to_grid_cpu(frame: np.ndarray, block_size: int) -> np.ndarray:
    """
    Reduce a frame to a grayscale grid with one cell per block.

    Any rows/columns left over after integer division by block_size are
    dropped from the grid.

    Args:
        frame: Input frame (H, W, 3) RGB or (H, W) gray
        block_size: Pixels per grid cell along each axis

    Returns:
        Grid as uint8 array of shape (H // block_size, W // block_size)
    """
    if block_size < 1:
        raise ConfigError(f"Block size must be at least 1, got {block_size}", component="GrayscaleReducer")

    height, width = frame.shape[:2]
    rows = height // block_size
    cols = width // block_size

    resized = area_resize_cpu(frame, cols, rows)
    return luma_cpu(resized)
