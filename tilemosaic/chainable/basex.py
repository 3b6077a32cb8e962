"""
Shared pieces of the in-memory mosaic chain.

VideoData carries a whole clip between components, LogManager owns the
per-run log file, and ChainComponent links the open, mosaic and save steps.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Tuple, Callable
from abc import ABC, abstractmethod
import logging
import time
import traceback
from pathlib import Path
from datetime import datetime

from ..errors import ProcessingError


PACKAGE_LOGGER = 'tilemosaic'


@dataclass
class VideoData:
    """A decoded clip held in memory, with the history of steps applied to it."""
    frames: np.ndarray  # RGB: (count, height, width, 3); GRAY: (count, height, width)
    frame_rate: float
    resolution: Tuple[int, int]  # (width, height)
    color_mode: str  # 'RGB' or 'GRAY'
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.color_mode not in ('RGB', 'GRAY'):
            raise ValueError(f"Unsupported color mode: {self.color_mode}")

        if self.color_mode == 'RGB' and (self.frames.ndim != 4 or self.frames.shape[-1] != 3):
            raise ValueError(f"RGB clips need (count, height, width, 3) frames, got {self.frames.shape}")
        if self.color_mode == 'GRAY' and self.frames.ndim != 3:
            raise ValueError(f"GRAY clips need (count, height, width) frames, got {self.frames.shape}")

        frame_height, frame_width = self.frames.shape[1:3]
        if (frame_width, frame_height) != self.resolution:
            raise ValueError(f"Resolution {self.resolution} doesn't match frames ({frame_width}, {frame_height})")

    @property
    def frame_count(self) -> int:
        return self.frames.shape[0]

    @property
    def width(self) -> int:
        return self.resolution[0]

    @property
    def height(self) -> int:
        return self.resolution[1]

    def add_processing_step(self, component_name: str, parameters: Dict[str, Any]):
        """Append a step to metadata['processing_history']."""
        self.metadata.setdefault('processing_history', []).append({
            'component': component_name,
            'parameters': dict(parameters),
            'timestamp': np.datetime64('now').astype(str)
        })


class LogManager:
    """
    Owns the log file of a single mosaic run.

    Every logger under 'tilemosaic' (components, scheduler, tile loader)
    propagates into the file while a run is active. The log_* helpers are
    no-ops outside a run.
    """

    _log_file_path: Optional[Path] = None
    _file_handler: Optional[logging.FileHandler] = None
    _initialized = False

    @classmethod
    def initialize(cls, log_dir: str = "logs"):
        """Start a fresh tilemosaic_<timestamp>.log in log_dir, closing any previous run log."""
        if cls._initialized:
            cls.cleanup()

        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        cls._log_file_path = log_path / f"tilemosaic_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

        handler = logging.FileHandler(cls._log_file_path, mode='w', encoding='utf-8')
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))

        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.addHandler(handler)
        package_logger.setLevel(logging.DEBUG)

        cls._file_handler = handler
        cls._initialized = True
        cls.log_info("LogManager", f"Run log: {cls._log_file_path}")

    @classmethod
    def cleanup(cls):
        """Detach and close the run log. Safe to call when no run is active."""
        if cls._file_handler:
            logging.getLogger(PACKAGE_LOGGER).removeHandler(cls._file_handler)
            cls._file_handler.close()
            cls._file_handler = None

        cls._initialized = False

    @classmethod
    def _component_logger(cls, component: str) -> Optional[logging.Logger]:
        if not cls._initialized:
            return None
        return logging.getLogger(f'{PACKAGE_LOGGER}.{component}')

    @classmethod
    def log_info(cls, component: str, message: str):
        logger = cls._component_logger(component)
        if logger:
            logger.info(message)

    @classmethod
    def log_warning(cls, component: str, message: str):
        logger = cls._component_logger(component)
        if logger:
            logger.warning(message)

    @classmethod
    def log_debug(cls, component: str, message: str):
        logger = cls._component_logger(component)
        if logger:
            logger.debug(message)

    @classmethod
    def log_error(cls, component: str, message: str, exception: Optional[Exception] = None):
        """Log an error; with an exception, its full traceback follows."""
        logger = cls._component_logger(component)
        if not logger:
            return

        logger.error(message)
        if exception:
            tb_str = ''.join(traceback.format_exception(type(exception), exception, exception.__traceback__))
            logger.error(f"Full traceback:\n{tb_str}")

    @classmethod
    def get_log_file_path(cls) -> Optional[Path]:
        return cls._log_file_path


class ChainComponent(ABC):
    """
    One step of the in-memory chain.

    Subclasses implement process(); execute() validates, runs, times and
    hands the result to the next component set with set_next().
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name or self.__class__.__name__
        self.next_component: Optional['ChainComponent'] = None
        self.logger = self._setup_logger()

    def _setup_logger(self) -> logging.Logger:
        logger = logging.getLogger(f"{PACKAGE_LOGGER}.{self.name}")
        if not logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(f'[{self.name}] %(levelname)s: %(message)s'))
            handler.setLevel(logging.INFO)
            logger.addHandler(handler)
        return logger

    def set_next(self, component: 'ChainComponent') -> 'ChainComponent':
        """Link component after this one and return it, so calls can be chained."""
        self.next_component = component
        return component

    @abstractmethod
    def process(self, data: Optional[VideoData]) -> VideoData:
        pass

    def execute(self, data: Optional[VideoData] = None) -> VideoData:
        """Run this component, then the rest of the chain."""
        try:
            self._validate_input(data)

            if data is not None:
                self.logger.info(f"Processing {data.frame_count} frames...")
            start_time = time.perf_counter()

            result = self.process(data)

            self._validate_output(result)
            LogManager.log_info(
                self.name,
                f"Produced {result.frame_count} {result.width}x{result.height} frames "
                f"in {time.perf_counter() - start_time:.3f}s"
            )
        except Exception as e:
            error_msg = f"Processing failed: {str(e)}"
            LogManager.log_error(self.name, error_msg, e)
            self.logger.error(error_msg)

            if isinstance(e, ProcessingError):
                raise
            raise ProcessingError(
                error_msg,
                component=self.name,
                details={'original_exception': type(e).__name__}
            )

        if self.next_component:
            return self.next_component.execute(result)
        return result

    def _validate_input(self, data: Optional[VideoData]):
        if not isinstance(data, VideoData):
            raise ProcessingError(f"Expected VideoData, got {type(data)}", component=self.name)

    def _validate_output(self, data: VideoData):
        if not isinstance(data, VideoData):
            raise ProcessingError(
                f"Component produced invalid output: expected VideoData, got {type(data)}",
                component=self.name
            )


class ProgressReporter:
    """
    Frame counter for chain components.

    Logs at every tenth of the total and, when given, forwards each update to
    a callback with the same (current, total, elapsed) signature that
    MosaicTaskScheduler uses.
    """

    def __init__(self, total_items: int, description: str = "Processing",
                 callback: Optional[Callable[[int, int, float], None]] = None):
        self.total_items = total_items
        self.current_item = 0
        self.description = description
        self.callback = callback
        self.logger = logging.getLogger(f"{PACKAGE_LOGGER}.progress")
        self._start_time = time.perf_counter()
        self._step = max(1, total_items // 10)

    def update(self, increment: int = 1):
        self.current_item += increment
        if self.total_items > 0:
            self.current_item = min(self.current_item, self.total_items)

        if self.callback:
            self.callback(self.current_item, self.total_items, time.perf_counter() - self._start_time)

        if self.total_items > 0 and (self.current_item % self._step == 0 or self.current_item == self.total_items):
            percentage = self.current_item / self.total_items * 100
            self.logger.info(f"{self.description}: {percentage:.1f}% ({self.current_item}/{self.total_items})")

    def finish(self):
        if self.total_items <= 0:
            self.total_items = self.current_item
        self.current_item = self.total_items
        self.logger.info(f"{self.description}: done, {self.current_item} frames")
