import numpy as np
import pytest

from tilemosaic.config import MosaicConfig, DitherMode
from tilemosaic.cpu.dither import BAYER_4X4
from tilemosaic.errors import FrameDecodeError
from tilemosaic.frame_pipeline import FramePipeline


def test_solid_gray_frame_becomes_all_white(bw_tiles):
    config = MosaicConfig(block_size=10, threshold=128, dither_mode=DitherMode.NONE)
    frame = np.full((20, 20, 3), 200, dtype=np.uint8)

    output = FramePipeline(config, bw_tiles).process_frame(frame)

    assert output.shape == (20, 20, 3)
    assert np.all(output == 255)


def test_ordered_dither_pattern_reaches_tiles(bw_tiles):
    config = MosaicConfig(block_size=10, threshold=128, dither_mode=DitherMode.ORDERED)
    frame = np.full((40, 40, 3), 120, dtype=np.uint8)

    output = FramePipeline(config, bw_tiles).process_frame(frame)

    block_colors = output[::10, ::10, 0]
    expected = np.where(BAYER_4X4 <= 7, 255, 0)
    assert np.array_equal(block_colors, expected)


def test_error_diffusion_output_uses_only_tiles(marked_tiles):
    config = MosaicConfig(block_size=10, threshold=128, dither_mode=DitherMode.ERROR_DIFFUSION)
    frame = np.full((60, 80, 3), 90, dtype=np.uint8)

    output = FramePipeline(config, marked_tiles).process_frame(frame)

    assert set(np.unique(output).tolist()) == {10, 240}


def test_unknown_dither_mode_passes_grid_through(bw_tiles):
    config = MosaicConfig(block_size=10, threshold=128, dither_mode=42)
    frame = np.full((40, 40, 3), 100, dtype=np.uint8)

    output = FramePipeline(config, bw_tiles).process_frame(frame)

    assert not output.any()


def test_gray_frame_produces_rgb_output(bw_tiles):
    config = MosaicConfig(block_size=10, threshold=50)
    frame = np.full((25, 30), 60, dtype=np.uint8)

    output = FramePipeline(config, bw_tiles).process_frame(frame)

    assert output.shape == (25, 30, 3)
    assert np.all(output[:20] == 255)
    assert not output[20:].any()


def test_frame_is_not_mutated(bw_tiles):
    config = MosaicConfig(block_size=10, dither_mode=DitherMode.ERROR_DIFFUSION)
    frame = np.full((20, 20, 3), 77, dtype=np.uint8)
    original = frame.copy()

    FramePipeline(config, bw_tiles).process_frame(frame)

    assert np.array_equal(frame, original)


@pytest.mark.parametrize("bad_frame", [
    np.zeros((2, 20, 20, 3), dtype=np.uint8),
    np.zeros((20, 20, 2), dtype=np.uint8),
    [[0, 0], [0, 0]],
])
def test_malformed_frame_is_rejected(bw_tiles, bad_frame):
    pipeline = FramePipeline(MosaicConfig(block_size=10), bw_tiles)

    with pytest.raises(FrameDecodeError):
        pipeline.process_frame(bad_frame)
