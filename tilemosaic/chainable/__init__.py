"""
Chainable mosaic processing components.

Each component has a single responsibility and can be linked with set_next()
to form an in-memory pipeline: open -> mosaic -> save.
"""

from .basex import VideoData, ChainComponent, ProcessingError, ProgressReporter, LogManager
from .openx import VideoOpener, open_video
from .mosaicx import VideoMosaicConverter
from .savex import VideoSaver, render_clip

__all__ = [
    # Base classes
    'VideoData',
    'ChainComponent',
    'ProcessingError',
    'ProgressReporter',
    'LogManager',

    # Components
    'VideoOpener',
    'VideoMosaicConverter',
    'VideoSaver',

    # Convenience functions
    'open_video',
    'render_clip'
]
