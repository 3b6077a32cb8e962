"""
Run configuration for the tile mosaic encoder.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple

from .errors import ConfigError


class DitherMode(IntEnum):
    """Dithering applied to the grid before tiles are chosen."""
    NONE = 0
    ORDERED = 1
    ERROR_DIFFUSION = 2

    @classmethod
    def is_known(cls, value: int) -> bool:
        return value in cls._value2member_map_


@dataclass(frozen=True)
class MosaicConfig:
    """Immutable per-run settings shared by every frame."""
    block_size: int
    threshold: int = 128
    dither_mode: int = DitherMode.NONE

    def __post_init__(self):
        """Validate configuration after initialization."""
        if isinstance(self.block_size, bool) or not isinstance(self.block_size, int):
            raise ConfigError(f"Block size must be an integer, got {self.block_size!r}", component="MosaicConfig")

        if self.block_size < 1:
            raise ConfigError(f"Block size must be at least 1, got {self.block_size}", component="MosaicConfig")

        if isinstance(self.threshold, bool) or not isinstance(self.threshold, int):
            raise ConfigError(f"Threshold must be an integer, got {self.threshold!r}", component="MosaicConfig")

        if not 0 <= self.threshold <= 255:
            raise ConfigError(f"Threshold must be between 0 and 255, got {self.threshold}", component="MosaicConfig")

    @property
    def dither_known(self) -> bool:
        """False when dither_mode falls outside DitherMode (treated as no dithering)."""
        return DitherMode.is_known(self.dither_mode)

    def grid_shape(self, width: int, height: int) -> Tuple[int, int]:
        """Grid (rows, cols) for a frame of the given size."""
        return height // self.block_size, width // self.block_size
