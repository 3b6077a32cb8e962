"""
CPU mosaic composition: expand a grid back to frame size by stamping tiles.
"""

import numpy as np
from typing import Tuple

from ..errors import AssetLoadError, ProcessingError


def _validate_tile(tile: np.ndarray, block_size: int, label: str):
    expected = (block_size, block_size, 3)
    if tile.shape != expected:
        raise AssetLoadError(
            f"{label} tile has shape {tile.shape}, expected {expected}",
            component="MosaicComposer",
            details={'tile': label, 'shape': tile.shape, 'block_size': block_size}
        )


def compose_mosaic_cpu(grid: np.ndarray,
                       threshold: int,
                       black_tile: np.ndarray,
                       white_tile: np.ndarray,
                       block_size: int,
                       frame_size: Tuple[int, int]) -> np.ndarray:
    """
    Build the output frame from a grid and the two tiles.

    Cells below the threshold get the black tile, all others the white tile.
    The right/bottom strip not covered by whole blocks stays zero.

    Args:
        grid: uint8 grid (rows, cols)
        threshold: Tile selection cutoff (0-255)
        black_tile: RGB tile (block_size, block_size, 3)
        white_tile: RGB tile (block_size, block_size, 3)
        block_size: Pixels per grid cell along each axis
        frame_size: Output (width, height)

    Returns:
        uint8 frame (height, width, 3)
    """
    _validate_tile(black_tile, block_size, 'black')
    _validate_tile(white_tile, block_size, 'white')

    width, height = frame_size
    rows, cols = grid.shape
    if rows * block_size > height or cols * block_size > width:
        raise ProcessingError(
            f"Grid {cols}x{rows} of {block_size}px blocks does not fit in {width}x{height}",
            component="MosaicComposer"
        )

    output = np.zeros((height, width, 3), dtype=np.uint8)
    if rows == 0 or cols == 0:
        return output

    tiles = np.stack([black_tile, white_tile]).astype(np.uint8, copy=False)
    selection = (grid >= threshold).astype(np.intp)

    # (rows, cols, b, b, 3) -> (rows, b, cols, b, 3) -> image
    blocks = tiles[selection]
    output[:rows * block_size, :cols * block_size] = blocks.transpose(0, 2, 1, 3, 4).reshape(
        rows * block_size, cols * block_size, 3
    )

    return output
