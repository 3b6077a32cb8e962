import pytest

from tilemosaic.config import MosaicConfig, DitherMode
from tilemosaic.errors import ConfigError, ProcessingError


@pytest.mark.parametrize("block_size", [0, -3])
def test_config_rejects_non_positive_block_size(block_size):
    with pytest.raises(ConfigError):
        MosaicConfig(block_size=block_size)


@pytest.mark.parametrize("threshold", [-1, 256])
def test_config_rejects_out_of_range_threshold(threshold):
    with pytest.raises(ConfigError):
        MosaicConfig(block_size=8, threshold=threshold)


def test_config_errors_are_processing_errors():
    with pytest.raises(ProcessingError) as excinfo:
        MosaicConfig(block_size=0)
    assert excinfo.value.component == "MosaicConfig"


def test_config_accepts_unknown_dither_mode():
    config = MosaicConfig(block_size=4, threshold=100, dither_mode=9)

    assert config.dither_mode == 9
    assert not config.dither_known
    assert MosaicConfig(block_size=4, dither_mode=DitherMode.ORDERED).dither_known


def test_config_grid_shape_drops_remainder():
    config = MosaicConfig(block_size=10)

    assert config.grid_shape(width=105, height=47) == (4, 10)


@pytest.mark.parametrize("threshold", [True, 127.5, "128"])
def test_config_rejects_non_integer_threshold(threshold):
    with pytest.raises(ConfigError):
        MosaicConfig(block_size=8, threshold=threshold)


@pytest.mark.parametrize("threshold", [0, 255])
def test_config_accepts_threshold_bounds(threshold):
    assert MosaicConfig(block_size=8, threshold=threshold).threshold == threshold
