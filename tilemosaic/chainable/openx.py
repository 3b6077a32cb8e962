"""
Video file opening and frame extraction component.

This component handles video file validation and frame extraction using PyAV,
converting video files into standardized VideoData structures for processing.
"""

import numpy as np
from pathlib import Path
from typing import Optional, Union

from .basex import ChainComponent, VideoData, ProcessingError, ProgressReporter, LogManager
from ..video_scheduler import VideoValidator, VideoFrameExtractor


class VideoOpener(ChainComponent):
    """Component for opening video files and extracting all frames into memory."""

    def __init__(self,
                 file_path: Union[str, Path],
                 max_frames: Optional[int] = None):
        """
        Initialize VideoOpener component.

        Args:
            file_path: Path to the video file
            max_frames: Maximum number of frames to extract (None for all)
        """
        super().__init__("VideoOpener")

        self.file_path = Path(file_path)
        self.max_frames = max_frames

    def _validate_input(self, data: VideoData):
        """VideoOpener is the first component, so it takes no VideoData."""
        pass

    def process(self, data: Optional[VideoData] = None) -> VideoData:
        """
        Extract frames from the video file.

        Args:
            data: Not used by VideoOpener

        Returns:
            VideoData containing extracted RGB frames
        """
        metadata = VideoValidator.validate_video_file(self.file_path)

        estimated_frames = metadata.estimated_frames
        if self.max_frames:
            estimated_frames = min(estimated_frames, self.max_frames) if estimated_frames > 0 else self.max_frames

        self.logger.info(f"Video: {metadata.width}x{metadata.height}, {metadata.fps:.2f} fps, ~{estimated_frames} frames")

        frames_list = []
        progress = ProgressReporter(estimated_frames, "Extracting frames")
        with VideoFrameExtractor(self.file_path, convert_to_rgb=True) as extractor:
            for _, frame_array, _ in extractor.extract_frames_generator(self.max_frames):
                frames_list.append(frame_array)
                progress.update()
        progress.finish()

        if not frames_list:
            raise ProcessingError(
                "No frames extracted from video",
                component=self.name,
                details={'file_path': str(self.file_path)}
            )

        video_data = VideoData(
            frames=np.array(frames_list),
            frame_rate=metadata.fps,
            resolution=(metadata.width, metadata.height),
            color_mode='RGB',
            metadata={
                'source_file': str(self.file_path),
                'original_duration': metadata.duration,
                'codec': metadata.codec,
                'pixel_format': metadata.pixel_format
            }
        )
        video_data.add_processing_step(self.name, {
            'file_path': str(self.file_path),
            'max_frames': self.max_frames
        })

        LogManager.log_info(self.name, f"Extracted {video_data.frame_count} frames from {self.file_path}")
        return video_data

    def open(self) -> VideoData:
        """Convenience method to extract frames without chaining."""
        return self.process()


def open_video(file_path: Union[str, Path], max_frames: Optional[int] = None) -> VideoData:
    """Convenience function to open a video file and extract its frames."""
    return VideoOpener(file_path, max_frames).open()
