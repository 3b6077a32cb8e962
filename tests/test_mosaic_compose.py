import numpy as np
import pytest

from tilemosaic.cpu.mosaic_compose import compose_mosaic_cpu
from tilemosaic.errors import AssetLoadError, ProcessingError


def _checkerboard(rows, cols):
    return ((np.indices((rows, cols)).sum(axis=0) % 2) * 255).astype(np.uint8)


def test_compose_covers_exact_multiple(marked_tiles):
    grid = _checkerboard(10, 10)

    output = compose_mosaic_cpu(grid, 128, marked_tiles.black, marked_tiles.white, 10, (100, 100))

    assert output.shape == (100, 100, 3)
    assert np.all(output != 0)
    # 100 tiles, alternating
    assert np.all(output[:10, :10] == 10)
    assert np.all(output[:10, 10:20] == 240)
    assert np.all(output[90:, 90:] == 10)


def test_compose_leaves_partial_border_unfilled(marked_tiles):
    grid = np.full((10, 10), 255, dtype=np.uint8)

    output = compose_mosaic_cpu(grid, 128, marked_tiles.black, marked_tiles.white, 10, (105, 105))

    assert output.shape == (105, 105, 3)
    assert np.all(output[:100, :100] == 240)
    assert np.all(output[100:, :] == 0)
    assert np.all(output[:, 100:] == 0)


def test_compose_threshold_tie_selects_white(marked_tiles):
    grid = np.array([[128, 127]], dtype=np.uint8)

    output = compose_mosaic_cpu(grid, 128, marked_tiles.black, marked_tiles.white, 10, (20, 10))

    assert np.all(output[:, :10] == 240)
    assert np.all(output[:, 10:] == 10)


def test_compose_stamps_tile_pixels_verbatim():
    block = 4
    black = np.arange(block * block * 3, dtype=np.uint8).reshape(block, block, 3)
    white = black[::-1].copy()
    grid = np.array([[0, 255]], dtype=np.uint8)

    output = compose_mosaic_cpu(grid, 128, black, white, block, (8, 4))

    assert np.array_equal(output[:, :4], black)
    assert np.array_equal(output[:, 4:], white)


def test_compose_rejects_mismatched_tile(bw_tiles):
    grid = np.zeros((2, 2), dtype=np.uint8)

    with pytest.raises(AssetLoadError):
        compose_mosaic_cpu(grid, 128, bw_tiles.black, bw_tiles.white, 8, (16, 16))


def test_compose_empty_grid_gives_blank_frame(bw_tiles):
    grid = np.zeros((0, 0), dtype=np.uint8)

    output = compose_mosaic_cpu(grid, 128, bw_tiles.black, bw_tiles.white, 10, (7, 5))

    assert output.shape == (5, 7, 3)
    assert not output.any()


def test_compose_rejects_grid_larger_than_frame(bw_tiles):
    grid = np.zeros((3, 3), dtype=np.uint8)

    with pytest.raises(ProcessingError) as excinfo:
        compose_mosaic_cpu(grid, 128, bw_tiles.black, bw_tiles.white, 10, (25, 25))
    assert excinfo.value.component == "MosaicComposer"
