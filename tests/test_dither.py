import numpy as np

from tilemosaic.config import DitherMode
from tilemosaic.cpu.dither import (
    BAYER_4X4,
    DIFFUSION_WEIGHTS,
    apply_dither_cpu,
    error_diffusion_dither_cpu,
    ordered_dither_cpu,
    ordered_dither_scale,
)


def test_bayer_matrix_thresholds():
    assert sorted(BAYER_4X4.ravel().tolist()) == list(range(16))
    assert ordered_dither_scale(BAYER_4X4) == 15


def test_ordered_dither_uniform_grid():
    grid = np.full((4, 4), 120, dtype=np.uint8)

    result = ordered_dither_cpu(grid)

    # 120 > m * 15 only for m <= 7
    expected = np.where(BAYER_4X4 <= 7, 255, 0).astype(np.uint8)
    assert result is grid
    assert np.array_equal(result, expected)


def test_ordered_dither_is_deterministic_and_periodic():
    rng = np.random.default_rng(7)
    tile = rng.integers(0, 256, size=(4, 4), dtype=np.uint8)
    grid = np.tile(tile, (3, 2))

    first = ordered_dither_cpu(grid.copy())
    second = ordered_dither_cpu(grid.copy())

    assert np.array_equal(first, second)
    assert np.array_equal(first[:4, :4], first[8:12, 4:8])


def test_ordered_dither_value_equal_to_threshold_is_black():
    grid = np.array([[0, 120]], dtype=np.uint8)  # thresholds 0 and 8 * 15

    assert ordered_dither_cpu(grid).tolist() == [[0, 0]]


def test_error_diffusion_weights_sum_to_one():
    assert DIFFUSION_WEIGHTS.tolist() == [7 / 16, 3 / 16, 5 / 16, 1 / 16]
    assert DIFFUSION_WEIGHTS.sum() == 1.0


def test_error_diffusion_small_grid():
    grid = np.full((2, 2), 64, dtype=np.uint8)

    result = error_diffusion_dither_cpu(grid)

    # (1, 1) collects 4 + 28.75 + 44.296875 on top of 64
    assert result is grid
    assert result.tolist() == [[0, 0], [0, 255]]


def test_error_diffusion_uses_fixed_midpoint():
    assert error_diffusion_dither_cpu(np.array([[127]], dtype=np.uint8)).tolist() == [[0]]
    assert error_diffusion_dither_cpu(np.array([[128]], dtype=np.uint8)).tolist() == [[255]]


def test_error_diffusion_carries_error_to_the_right():
    # 100 -> 0 pushes 43.75 right: 100 + 43.75 > 127
    grid = np.array([[100, 100]], dtype=np.uint8)

    assert error_diffusion_dither_cpu(grid).tolist() == [[0, 255]]


def test_error_diffusion_preserves_average_tone():
    grid = np.full((16, 16), 64, dtype=np.uint8)

    result = error_diffusion_dither_cpu(grid)

    assert set(np.unique(result).tolist()) <= {0, 255}
    white_fraction = np.count_nonzero(result) / result.size
    assert 0.15 < white_fraction < 0.35


def test_dithering_binary_grid_is_idempotent():
    rng = np.random.default_rng(3)
    binary = (rng.integers(0, 2, size=(9, 11)) * 255).astype(np.uint8)

    assert np.array_equal(ordered_dither_cpu(binary.copy()), binary)
    assert np.array_equal(error_diffusion_dither_cpu(binary.copy()), binary)


def test_apply_dither_unknown_mode_passes_through():
    grid = np.arange(16, dtype=np.uint8).reshape(4, 4) * 10
    original = grid.copy()

    assert np.array_equal(apply_dither_cpu(grid, 5), original)
    assert np.array_equal(apply_dither_cpu(grid, DitherMode.NONE), original)


def test_apply_dither_dispatches_by_mode():
    grid = np.full((4, 4), 120, dtype=np.uint8)

    ordered = apply_dither_cpu(grid.copy(), DitherMode.ORDERED)
    diffused = apply_dither_cpu(grid.copy(), 2)

    assert np.array_equal(ordered, ordered_dither_cpu(grid.copy()))
    assert np.array_equal(diffused, error_diffusion_dither_cpu(grid.copy()))
