"""
Per-frame mosaic pipeline: grayscale reduction, optional dithering and tile
composition.
"""

import numpy as np
from typing import Tuple

from .config import MosaicConfig
from .cpu.dither import BAYER_4X4, apply_dither_cpu
from .cpu.grayscale_reduce import reduce_to_grid_cpu
from .cpu.mosaic_compose import compose_mosaic_cpu
from .errors import FrameDecodeError
from .tiles import TileSet


class FramePipeline:
    """Turns one decoded frame into one mosaic frame. Holds no per-frame state."""

    def __init__(self, config: MosaicConfig, tiles: TileSet, dither_matrix: np.ndarray = BAYER_4X4):
        self.config = config
        self.tiles = tiles
        self.dither_matrix = dither_matrix

    def grid_shape(self, width: int, height: int) -> Tuple[int, int]:
        return self.config.grid_shape(width, height)

    def _validate_frame(self, frame: np.ndarray):
        if not isinstance(frame, np.ndarray):
            raise FrameDecodeError(f"Expected numpy frame, got {type(frame)}", component="FramePipeline")

        if frame.ndim == 3 and frame.shape[2] in (1, 3):
            return
        if frame.ndim == 2:
            return

        raise FrameDecodeError(f"Malformed frame with shape {frame.shape}", component="FramePipeline",
                               details={'shape': frame.shape})

    def reduce(self, frame: np.ndarray) -> np.ndarray:
        return reduce_to_grid_cpu(frame, self.config.block_size)

    def dither(self, grid: np.ndarray) -> np.ndarray:
        return apply_dither_cpu(grid, self.config.dither_mode, self.dither_matrix)

    def compose(self, grid: np.ndarray, frame_size: Tuple[int, int]) -> np.ndarray:
        return compose_mosaic_cpu(
            grid,
            self.config.threshold,
            self.tiles.black,
            self.tiles.white,
            self.config.block_size,
            frame_size
        )

    def process_frame(self, frame: np.ndarray) -> np.ndarray:
        """
        Run reduce -> dither -> compose for a single frame.

        Args:
            frame: Decoded frame (H, W, 3) RGB or (H, W) gray

        Returns:
            Mosaic frame (H, W, 3) uint8
        """
        self._validate_frame(frame)
        height, width = frame.shape[:2]

        grid = self.reduce(frame)
        grid = self.dither(grid)
        return self.compose(grid, (width, height))
