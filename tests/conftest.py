import numpy as np
import pytest

from tilemosaic.chainable.basex import VideoData, LogManager
from tilemosaic.tiles import TileSet


def solid_tile(value: int, block_size: int = 10) -> np.ndarray:
    return np.full((block_size, block_size, 3), value, dtype=np.uint8)


@pytest.fixture(autouse=True)
def _close_run_log():
    yield
    LogManager.cleanup()


@pytest.fixture
def bw_tiles() -> TileSet:
    """Solid black/white 10x10 tiles."""
    return TileSet(black=solid_tile(0), white=solid_tile(255))


@pytest.fixture
def marked_tiles() -> TileSet:
    """Tiles that are never zero, so uncovered borders can be told apart."""
    return TileSet(black=solid_tile(10), white=solid_tile(240))


@pytest.fixture
def sample_rgb_video() -> VideoData:
    """Three 20x30 RGB frames: dark, mid, bright."""
    frames = np.stack([np.full((20, 30, 3), value, dtype=np.uint8) for value in (30, 120, 220)])
    return VideoData(
        frames=frames,
        frame_rate=24.0,
        resolution=(30, 20),
        color_mode="RGB",
        metadata={},
    )
