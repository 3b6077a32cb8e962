"""
Error hierarchy for the tile mosaic encoder.

Every error raised by the package derives from ProcessingError, so callers can
catch one type and still report which component failed.
"""

from typing import Dict, Any, Optional


class ProcessingError(Exception):
    """Custom exception for video processing errors."""
    def __init__(self, message: str, component: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.component = component
        self.details = details or {}


class ConfigError(ProcessingError):
    """Invalid block size, threshold or other run configuration."""


class SourceOpenError(ProcessingError):
    """The input video cannot be opened or read."""


class AssetLoadError(ProcessingError):
    """A tile image is missing, malformed or has the wrong shape."""


class SinkOpenError(ProcessingError):
    """The output video container or stream cannot be created."""


class FrameDecodeError(ProcessingError):
    """A frame is malformed or failed inside the frame pipeline."""


__all__ = [
    'ProcessingError',
    'ConfigError',
    'SourceOpenError',
    'AssetLoadError',
    'SinkOpenError',
    'FrameDecodeError'
]
