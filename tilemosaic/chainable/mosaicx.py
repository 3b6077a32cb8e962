"""
Tile mosaic conversion component.

Applies the FramePipeline (grayscale reduction, optional dithering, tile
composition) to every frame of an in-memory clip.
"""

import numpy as np
from typing import Callable, Optional
import time

from .basex import ChainComponent, VideoData, ProcessingError, ProgressReporter, LogManager
from ..config import MosaicConfig, DitherMode
from ..frame_pipeline import FramePipeline
from ..tiles import TileSet


class VideoMosaicConverter(ChainComponent):
    """Component for converting RGB/Grayscale video to a two-tile mosaic."""

    def __init__(self, config: MosaicConfig, tiles: TileSet,
                 progress_callback: Optional[Callable[[int, int, float], None]] = None):
        super().__init__("VideoMosaicConverter")

        if tiles.block_size != config.block_size:
            raise ProcessingError(
                f"Tiles are {tiles.block_size}px but block size is {config.block_size}px",
                component=self.name
            )

        if not config.dither_known:
            LogManager.log_warning(
                self.name,
                f"Unknown dither mode {config.dither_mode}, frames will not be dithered"
            )

        self.config = config
        self.pipeline = FramePipeline(config, tiles)
        self.progress_callback = progress_callback

        LogManager.log_info(
            self.name,
            f"Initialized: block_size={config.block_size}, threshold={config.threshold}, "
            f"dither={config.dither_mode}"
        )

    def _validate_input(self, data: VideoData):
        super()._validate_input(data)

        if data.frames.size == 0:
            raise ProcessingError("No frames to process", component=self.name)

    def process(self, data: VideoData) -> VideoData:
        """
        Convert every frame of the clip.

        Args:
            data: Input VideoData ('RGB' or 'GRAY')

        Returns:
            RGB VideoData of the same resolution with mosaic frames
        """
        self._validate_input(data)
        start_time = time.time()

        rows, cols = self.pipeline.grid_shape(data.width, data.height)
        LogManager.log_info(
            self.name,
            f"Starting mosaic conversion: {data.frame_count} frames, grid {cols}x{rows}"
        )

        progress = ProgressReporter(data.frame_count, "Composing mosaic", self.progress_callback)
        output_frames = np.zeros((data.frame_count, data.height, data.width, 3), dtype=np.uint8)
        for i, frame in enumerate(data.frames):
            output_frames[i] = self.pipeline.process_frame(frame)
            progress.update()
        progress.finish()

        processing_time = time.time() - start_time

        output_data = VideoData(
            frames=output_frames,
            frame_rate=data.frame_rate,
            resolution=data.resolution,
            color_mode='RGB',
            metadata=data.metadata.copy()
        )
        output_data.add_processing_step(self.name, {
            'block_size': self.config.block_size,
            'threshold': self.config.threshold,
            'dither_mode': DitherMode(self.config.dither_mode).name if self.config.dither_known else self.config.dither_mode,
            'grid': (cols, rows),
            'processing_time_seconds': processing_time
        })

        return output_data
