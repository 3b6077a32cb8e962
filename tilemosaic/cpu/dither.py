"""
CPU-based grid dithering.

Both algorithms binarize a grayscale grid in place to 0/255 using Numba JIT
compilation. Ordered dithering is parallel over rows; error diffusion is a
strictly sequential row-major scan.
"""

import numpy as np
from numba import jit, prange

from ..config import DitherMode


BAYER_4X4 = np.array([
    [ 0,  8,  2, 10],
    [12,  4, 14,  6],
    [ 3, 11,  1,  9],
    [15,  7, 13,  5]
], dtype=np.int32)
BAYER_4X4.setflags(write=False)

# Fixed quantization midpoint for error diffusion, unrelated to the tile threshold
DIFFUSION_MIDPOINT = 127.0

# Floyd-Steinberg weights: right, below-left, below, below-right
DIFFUSION_WEIGHTS = np.array([7.0, 3.0, 5.0, 1.0]) / 16.0
DIFFUSION_WEIGHTS.setflags(write=False)


def ordered_dither_scale(dither_matrix: np.ndarray) -> int:
    """Multiplier that maps matrix entries onto the 0-255 range (15 for 4x4)."""
    return 256 // (dither_matrix.size + 1)


@jit(nopython=True, parallel=True)
def _ordered_dither_kernel(grid, dither_matrix, scale):
    height, width = grid.shape
    matrix_size = dither_matrix.shape[0]

    for y in prange(height):
        for x in range(width):
            threshold = dither_matrix[y % matrix_size, x % matrix_size] * scale
            grid[y, x] = 255 if grid[y, x] > threshold else 0


def ordered_dither_cpu(grid: np.ndarray, dither_matrix: np.ndarray = BAYER_4X4) -> np.ndarray:
    """
    Ordered (Bayer) dithering using CPU, in place.

    Args:
        grid: uint8 grayscale grid (H, W)
        dither_matrix: Square threshold matrix, entries 0..n*n-1

    Returns:
        The same grid, now holding only 0 and 255
    """
    if grid.size:
        _ordered_dither_kernel(grid, np.ascontiguousarray(dither_matrix, dtype=np.int32),
                               ordered_dither_scale(dither_matrix))
    return grid


@jit(nopython=True)
def _floyd_steinberg_kernel(buffer, midpoint, weights):
    height, width = buffer.shape

    for y in range(height):
        for x in range(width):
            old_pixel = buffer[y, x]
            new_pixel = 255.0 if old_pixel > midpoint else 0.0
            buffer[y, x] = new_pixel

            # Calculate quantization error
            quant_error = old_pixel - new_pixel

            # Distribute error to neighboring pixels
            if x + 1 < width:
                buffer[y, x + 1] += quant_error * weights[0]
            if y + 1 < height:
                if x > 0:
                    buffer[y + 1, x - 1] += quant_error * weights[1]
                buffer[y + 1, x] += quant_error * weights[2]
                if x + 1 < width:
                    buffer[y + 1, x + 1] += quant_error * weights[3]


def error_diffusion_dither_cpu(grid: np.ndarray) -> np.ndarray:
    """
    Floyd-Steinberg dithering using CPU, in place.

    Error accumulates in a private float32 buffer; the binarized result is
    copied back into the grid when the scan completes.

    Args:
        grid: uint8 grayscale grid (H, W)

    Returns:
        The same grid, now holding only 0 and 255
    """
    if grid.size:
        buffer = grid.astype(np.float32)
        _floyd_steinberg_kernel(buffer, DIFFUSION_MIDPOINT, DIFFUSION_WEIGHTS)
        grid[...] = buffer.astype(np.uint8)
    return grid


def apply_dither_cpu(grid: np.ndarray, dither_mode: int,
                     dither_matrix: np.ndarray = BAYER_4X4) -> np.ndarray:
    """
    Dither a grid in place according to dither_mode.

    Modes outside DitherMode leave the grid untouched.
    """
    if dither_mode == DitherMode.ORDERED:
        return ordered_dither_cpu(grid, dither_matrix)
    elif dither_mode == DitherMode.ERROR_DIFFUSION:
        return error_diffusion_dither_cpu(grid)
    return grid
