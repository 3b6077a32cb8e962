"""
Video mosaic scheduler using PyAV for video handling and parallel processing.

Frames are decoded in batches, transformed by a FramePipeline on a pool of
worker threads or processes, and written back in their original order.
"""

import av
from av.error import FFmpegError
import numpy as np
from dataclasses import dataclass
from fractions import Fraction
from typing import List, Callable, Tuple, Optional, Union
from pathlib import Path
import logging
import time
import warnings
from concurrent.futures import Executor, ThreadPoolExecutor, ProcessPoolExecutor, as_completed

from .errors import ProcessingError, SourceOpenError, SinkOpenError, FrameDecodeError
from .frame_pipeline import FramePipeline


logger = logging.getLogger("tilemosaic.scheduler")


@dataclass
class FrameData:
    """Container for frame data with RGB matrix and metadata."""
    frame_number: int
    rgb_matrix: np.ndarray  # Shape: (height, width, 3)
    timestamp: float


@dataclass
class VideoMetadata:
    """Container for video metadata."""
    width: int
    height: int
    fps: float
    rate: Fraction
    duration: float
    frame_count: int
    codec: str
    pixel_format: str

    @property
    def estimated_frames(self) -> int:
        """Frame count from the container, or estimated from duration and fps."""
        if self.frame_count > 0:
            return self.frame_count
        return int(self.duration * self.fps)


class VideoValidator:
    """Validates video files and extracts metadata using PyAV."""

    SUPPORTED_FORMATS = {
        'mp4', 'avi', 'mov', 'mkv', 'webm', 'flv', 'wmv', 'm4v'
    }

    @staticmethod
    def validate_video_file(video_path: Union[str, Path]) -> VideoMetadata:
        """
        Validate video file and extract metadata.

        Args:
            video_path: Path to the video file

        Returns:
            VideoMetadata object with file information

        Raises:
            SourceOpenError: If the file is missing, not a file or cannot be decoded
        """
        video_path = Path(video_path)

        if not video_path.exists():
            raise SourceOpenError(f"Video file not found: {video_path}", component="VideoValidator")

        if not video_path.is_file():
            raise SourceOpenError(f"Path is not a file: {video_path}", component="VideoValidator")

        # Check file extension
        extension = video_path.suffix.lower().lstrip('.')
        if extension not in VideoValidator.SUPPORTED_FORMATS:
            warnings.warn(f"File extension '{extension}' might not be supported. Supported: {VideoValidator.SUPPORTED_FORMATS}")

        try:
            container = av.open(str(video_path))
            try:
                if not container.streams.video:
                    raise SourceOpenError(f"No video stream found in {video_path}", component="VideoValidator")
                video_stream = container.streams.video[0]

                duration_seconds = 0.0
                if video_stream.duration and video_stream.time_base:
                    duration_seconds = float(video_stream.duration * video_stream.time_base)

                rate = Fraction(video_stream.average_rate) if video_stream.average_rate else Fraction(30)

                metadata = VideoMetadata(
                    width=video_stream.width,
                    height=video_stream.height,
                    fps=float(rate),
                    rate=rate,
                    duration=duration_seconds,
                    frame_count=video_stream.frames if video_stream.frames else 0,
                    codec=video_stream.codec.name.lower() if video_stream.codec else 'unknown',
                    pixel_format=str(video_stream.pix_fmt) if video_stream.pix_fmt else 'unknown'
                )
            finally:
                container.close()
        except ProcessingError:
            raise
        except Exception as e:
            raise SourceOpenError(
                f"Failed to open video file {video_path}: {e}",
                component="VideoValidator",
                details={'file_path': str(video_path)}
            )

        # Basic sanity checks
        if metadata.width <= 0 or metadata.height <= 0:
            raise SourceOpenError(f"Invalid video dimensions: {metadata.width}x{metadata.height}",
                                  component="VideoValidator")

        if metadata.fps <= 0:
            warnings.warn(f"Invalid or missing FPS: {metadata.fps}, defaulting to 30.0")
            metadata.fps = 30.0
            metadata.rate = Fraction(30)

        return metadata


class VideoFrameExtractor:
    """Extracts frames from video using PyAV."""

    def __init__(self, video_path: Union[str, Path], convert_to_rgb: bool = True):
        """
        Initialize frame extractor.

        Args:
            video_path: Path to video file
            convert_to_rgb: Whether to convert frames to RGB format
        """
        self.video_path = Path(video_path)
        self.convert_to_rgb = convert_to_rgb
        self._container = None
        self._video_stream = None

    def __enter__(self):
        """Context manager entry."""
        try:
            self._container = av.open(str(self.video_path))
            self._video_stream = self._container.streams.video[0]
        except Exception as e:
            if self._container:
                self._container.close()
            raise SourceOpenError(f"Failed to open video file {self.video_path}: {e}", component="VideoFrameExtractor")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        if self._container:
            self._container.close()

    def extract_frames_generator(self, max_frames: Optional[int] = None):
        """
        Generator that yields frames one by one.

        Args:
            max_frames: Maximum number of frames to extract (None for all)

        Yields:
            Tuple of (frame_number, numpy_array, timestamp)
        """
        if not self._container:
            raise RuntimeError("Extractor not initialized. Use as context manager.")

        frame_count = 0
        decoder = iter(self._container.decode(self._video_stream))
        while True:
            if max_frames and frame_count >= max_frames:
                break

            try:
                frame = next(decoder)
            except StopIteration:
                break
            except Exception as e:
                raise FrameDecodeError(
                    f"Failed to decode frame {frame_count}: {e}",
                    component="VideoFrameExtractor",
                    details={'frame_number': frame_count}
                )

            if self.convert_to_rgb:
                frame_array = frame.to_rgb().to_ndarray()
            else:
                frame_array = frame.to_ndarray()

            timestamp = 0.0
            if frame.pts is not None and self._video_stream.time_base:
                timestamp = float(frame.pts * self._video_stream.time_base)

            yield frame_count, frame_array, timestamp
            frame_count += 1


class VideoFrameWriter:
    """Encodes RGB frames into a video file using PyAV."""

    # Full-resolution chroma, used when a subsampled format cannot hold odd sizes
    ODD_SIZE_PIXEL_FORMAT = 'yuv444p'

    def __init__(self,
                 output_path: Union[str, Path],
                 width: int,
                 height: int,
                 fps: Union[float, Fraction],
                 codec: str = 'libx264',
                 pixel_format: str = 'yuv420p'):
        self.output_path = Path(output_path)
        self.width = width
        self.height = height
        self.fps = fps
        self.codec = codec
        self.pixel_format = pixel_format
        self.frames_written = 0
        self._container = None
        self._stream = None

    def _resolve_pixel_format(self) -> str:
        """
        Pick the stream pixel format for this frame size.

        Chroma-subsampled formats such as yuv420p need even dimensions. For odd
        sizes the writer switches to yuv444p when the codec supports it.
        """
        if self.width % 2 == 0 and self.height % 2 == 0:
            return self.pixel_format

        requested = av.VideoFormat(self.pixel_format)
        if (requested.chroma_width(self.width) == self.width
                and requested.chroma_height(self.height) == self.height):
            return self.pixel_format

        supported = av.codec.Codec(self.codec, 'w').video_formats or []
        if self.ODD_SIZE_PIXEL_FORMAT in {fmt.name for fmt in supported}:
            logger.warning(
                f"{self.width}x{self.height} cannot be encoded as {self.pixel_format}, "
                f"using {self.ODD_SIZE_PIXEL_FORMAT}"
            )
            return self.ODD_SIZE_PIXEL_FORMAT
        return self.pixel_format

    def _sink_error(self, message: str, error: Exception) -> SinkOpenError:
        return SinkOpenError(
            f"{message} {self.output_path}: {error}",
            component="VideoFrameWriter",
            details={'codec': self.codec, 'pixel_format': self.pixel_format}
        )

    def __enter__(self):
        try:
            self.pixel_format = self._resolve_pixel_format()
            self._container = av.open(str(self.output_path), mode='w')
            self._stream = self._container.add_stream(self.codec, rate=Fraction(self.fps).limit_denominator())
            self._stream.width = self.width
            self._stream.height = self.height
            self._stream.pix_fmt = self.pixel_format
        except Exception as e:
            if self._container:
                self._close(discard=True)
            raise self._sink_error("Could not open output video", e)
        return self

    def write(self, frame_array: np.ndarray):
        """Encode and mux one (height, width, 3) uint8 RGB frame."""
        if frame_array.shape[:2] != (self.height, self.width):
            raise ProcessingError(
                f"Frame size {frame_array.shape[1]}x{frame_array.shape[0]} does not match "
                f"output size {self.width}x{self.height}",
                component="VideoFrameWriter"
            )

        frame = av.VideoFrame.from_ndarray(frame_array, format='rgb24')
        # The codec is opened on the first encode call
        try:
            for packet in self._stream.encode(frame):
                self._container.mux(packet)
        except FFmpegError as e:
            raise self._sink_error(f"Failed to encode frame {self.frames_written} into", e)
        self.frames_written += 1

    def _close(self, discard: bool):
        try:
            self._container.close()
        finally:
            if discard and self.output_path.exists():
                self.output_path.unlink()
                logger.warning(f"Removed incomplete output video {self.output_path}")

    def __exit__(self, exc_type, exc_val, exc_tb):
        # A failed run leaves no partial video behind
        failed = exc_type is not None
        try:
            if not failed:
                try:
                    for packet in self._stream.encode():
                        self._container.mux(packet)
                except FFmpegError as e:
                    failed = True
                    raise self._sink_error("Failed to flush encoder for", e)
        finally:
            self._close(discard=failed)


class MosaicTaskScheduler:
    """
    Parallel mosaic scheduler.

    Each worker runs the whole FramePipeline for the frames it is handed;
    results are reordered by frame number before they reach the writer.
    """
    def __init__(
        self,
        pipeline: FramePipeline,
        max_workers: int = 4,
        execution_mode: str = 'threading',
        batch_size: int = 50,
        codec: str = 'libx264',
        pixel_format: str = 'yuv420p'
    ):
        """
        Initialize the mosaic scheduler.

        Args:
            pipeline: Per-frame transformation to run on every frame
            max_workers: Maximum number of worker threads/processes
            execution_mode: 'threading' or 'multiprocessing'
            batch_size: Number of frames decoded and in flight at once
            codec: Output video codec
            pixel_format: Output pixel format
        """
        self.pipeline = pipeline
        self.max_workers = max_workers
        self.execution_mode = execution_mode
        self.batch_size = batch_size
        self.codec = codec
        self.pixel_format = pixel_format

        # Validate parameters
        if execution_mode not in ['threading', 'multiprocessing']:
            raise ValueError("execution_mode must be 'threading' or 'multiprocessing'")

        if max_workers <= 0:
            raise ValueError("max_workers must be positive")

        if batch_size <= 0:
            raise ValueError("batch_size must be positive")

    def _process_frame_batch(self, frame_batch: List[Tuple[int, np.ndarray, float]]) -> List[FrameData]:
        """
        Run the pipeline on a batch of frames.

        Args:
            frame_batch: List of (frame_number, frame_array, timestamp) tuples

        Returns:
            List of FrameData objects with mosaic frames
        """
        results = []

        for frame_number, frame_array, timestamp in frame_batch:
            try:
                mosaic = self.pipeline.process_frame(frame_array)
            except ProcessingError:
                raise
            except Exception as e:
                raise FrameDecodeError(
                    f"Failed to process frame {frame_number}: {e}",
                    component="MosaicTaskScheduler",
                    details={'frame_number': frame_number}
                )

            results.append(FrameData(frame_number=frame_number, rgb_matrix=mosaic, timestamp=timestamp))

        return results

    def _create_executor(self) -> Executor:
        if self.execution_mode == 'threading':
            return ThreadPoolExecutor(max_workers=self.max_workers)
        return ProcessPoolExecutor(max_workers=self.max_workers)

    def _process_batch_parallel(self, executor: Executor,
                                frame_batch: List[Tuple[int, np.ndarray, float]]) -> List[FrameData]:
        """
        Process a batch of frames using parallel execution.

        Args:
            executor: Pool shared for the whole run
            frame_batch: List of frame tuples to process

        Returns:
            Processed FrameData objects sorted by frame number
        """
        sub_batches = self._split_batch(frame_batch, self.max_workers)

        futures = [
            executor.submit(self._process_frame_batch, sub_batch)
            for sub_batch in sub_batches if sub_batch
        ]

        results = []
        for future in as_completed(futures):
            results.extend(future.result())

        # Workers finish in any order; restore source order
        results.sort(key=lambda x: x.frame_number)
        return results

    def _split_batch(self, batch: List, num_splits: int) -> List[List]:
        """Split a batch into roughly equal sub-batches."""
        if not batch:
            return []

        batch_size = len(batch)
        sub_batch_size = max(1, batch_size // num_splits)

        sub_batches = []
        for i in range(0, batch_size, sub_batch_size):
            sub_batch = batch[i:i + sub_batch_size]
            if sub_batch:
                sub_batches.append(sub_batch)

        return sub_batches

    def _flush_batch(self, executor: Executor, frame_batch, writer: VideoFrameWriter) -> int:
        for frame_data in self._process_batch_parallel(executor, frame_batch):
            writer.write(frame_data.rgb_matrix)
        return len(frame_batch)

    def process_video_file(
        self,
        video_path: Union[str, Path],
        output_path: Union[str, Path],
        progress_callback: Optional[Callable[[int, int, float], None]] = None,
        max_frames: Optional[int] = None
    ) -> Tuple[int, VideoMetadata]:
        """
        Convert an entire video file into its mosaic rendering.

        Args:
            video_path: Path to input video file
            output_path: Path of the encoded output video
            progress_callback: Optional callback for progress updates (current, total, elapsed_time)
            max_frames: Maximum number of frames to process (None for all)

        Returns:
            Tuple of (frames_written, video_metadata)
        """
        metadata = VideoValidator.validate_video_file(video_path)

        total_frames = metadata.estimated_frames
        if max_frames:
            total_frames = min(total_frames, max_frames) if total_frames > 0 else max_frames

        rows, cols = self.pipeline.grid_shape(metadata.width, metadata.height)
        logger.info(f"Processing {total_frames} frames from {video_path}")
        logger.info(f"Using {self.execution_mode} with {self.max_workers} workers, batch size {self.batch_size}")
        logger.info(
            f"Input {metadata.width}x{metadata.height} @ {metadata.fps:.2f} fps, "
            f"grid {cols}x{rows}, codec={metadata.codec}"
        )

        start_time = time.perf_counter()
        processed_frames = 0

        with VideoFrameExtractor(video_path, convert_to_rgb=True) as extractor, \
                VideoFrameWriter(output_path, metadata.width, metadata.height, metadata.rate,
                                 codec=self.codec, pixel_format=self.pixel_format) as writer, \
                self._create_executor() as executor:
            frame_batch = []

            for frame_number, frame_array, timestamp in extractor.extract_frames_generator(max_frames):
                frame_batch.append((frame_number, frame_array, timestamp))

                # Process batch when full
                if len(frame_batch) >= self.batch_size:
                    processed_frames += self._flush_batch(executor, frame_batch, writer)

                    if progress_callback:
                        progress_callback(processed_frames, total_frames, time.perf_counter() - start_time)

                    frame_batch = []

            # Process remaining frames
            if frame_batch:
                processed_frames += self._flush_batch(executor, frame_batch, writer)

                if progress_callback:
                    progress_callback(processed_frames, total_frames, time.perf_counter() - start_time)

        logger.info(f"Wrote {processed_frames} frames to {output_path}")
        return processed_frames, metadata


__all__ = [
    'VideoValidator',
    'VideoFrameExtractor',
    'VideoFrameWriter',
    'MosaicTaskScheduler',
    'FrameData',
    'VideoMetadata'
]
