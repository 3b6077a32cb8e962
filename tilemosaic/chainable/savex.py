"""
Video saving component: encodes an in-memory RGB clip with PyAV.
"""

from pathlib import Path
from typing import Callable, Optional, Union

from .basex import ChainComponent, VideoData, ProcessingError, LogManager
from .openx import VideoOpener
from .mosaicx import VideoMosaicConverter
from ..config import MosaicConfig
from ..tiles import TileSet
from ..video_scheduler import VideoFrameWriter


class VideoSaver(ChainComponent):
    """Terminal component that writes VideoData frames to a video file."""

    def __init__(self, output_path: Union[str, Path], codec: str = 'libx264', pixel_format: str = 'yuv420p'):
        super().__init__("VideoSaver")
        self.output_path = Path(output_path)
        self.codec = codec
        self.pixel_format = pixel_format

    def _validate_input(self, data: VideoData):
        super()._validate_input(data)

        if data.color_mode != 'RGB':
            raise ProcessingError(f"VideoSaver expects RGB frames, got {data.color_mode}", component=self.name)

    def process(self, data: VideoData) -> VideoData:
        self._validate_input(data)

        LogManager.log_debug(
            self.name,
            f"Encoder: {self.codec}/{self.pixel_format}, {data.width}x{data.height} @ {data.frame_rate:.3f} fps"
        )
        with VideoFrameWriter(self.output_path, data.width, data.height, data.frame_rate,
                              codec=self.codec, pixel_format=self.pixel_format) as writer:
            for frame in data.frames:
                writer.write(frame)

        data.add_processing_step(self.name, {
            'output_path': str(self.output_path),
            'codec': self.codec,
            'frames_written': writer.frames_written
        })
        LogManager.log_info(self.name, f"Saved {writer.frames_written} frames to {self.output_path}")
        return data


def render_clip(video_path: Union[str, Path],
                output_path: Union[str, Path],
                config: MosaicConfig,
                tiles: TileSet,
                max_frames: Optional[int] = None,
                codec: str = 'libx264',
                progress_callback: Optional[Callable[[int, int, float], None]] = None) -> VideoData:
    """
    Open, convert and save a short clip entirely in memory.

    Returns the saved VideoData with the processing history of every step.
    """
    opener = VideoOpener(video_path, max_frames)
    opener.set_next(VideoMosaicConverter(config, tiles, progress_callback)).set_next(
        VideoSaver(output_path, codec=codec)
    )
    return opener.execute()
