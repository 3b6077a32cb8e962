"""
Tile mosaic video encoder.

Renders each video frame as a grid of two fixed tile images chosen per block
from a (optionally dithered) grayscale reduction of the frame.
"""

from .config import MosaicConfig, DitherMode
from .errors import (
    ProcessingError, ConfigError, SourceOpenError, AssetLoadError, SinkOpenError, FrameDecodeError
)
from .frame_pipeline import FramePipeline
from .tiles import TileSet, load_tile, load_tiles

__version__ = "0.1.0"

__all__ = [
    'MosaicConfig',
    'DitherMode',
    'FramePipeline',
    'TileSet',
    'load_tile',
    'load_tiles',
    'ProcessingError',
    'ConfigError',
    'SourceOpenError',
    'AssetLoadError',
    'SinkOpenError',
    'FrameDecodeError'
]
