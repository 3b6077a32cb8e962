"""
Tile image loading using Pillow.

The black and white tiles are decoded once, converted to RGB and resized to
block_size x block_size so every later stamp is a straight pixel copy.
"""

import logging
import numpy as np
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

from .errors import AssetLoadError


logger = logging.getLogger("tilemosaic.tiles")


@dataclass(frozen=True)
class TileSet:
    """The two read-only tile images used for one run."""
    black: np.ndarray  # (block_size, block_size, 3) uint8 RGB
    white: np.ndarray

    @property
    def block_size(self) -> int:
        return self.black.shape[0]


def tile_from_array(array: np.ndarray, block_size: int) -> np.ndarray:
    """Convert an in-memory image to a read-only RGB tile of the given size."""
    if not (array.ndim == 2 or (array.ndim == 3 and array.shape[2] in (3, 4))):
        raise AssetLoadError(f"Unsupported tile array shape: {array.shape}", component="TileLoader")
    return _image_to_tile(Image.fromarray(array.astype(np.uint8)), block_size)


def _image_to_tile(image: Image.Image, block_size: int) -> np.ndarray:
    image = image.convert('RGB')
    if image.size != (block_size, block_size):
        logger.debug(f"Resizing tile from {image.size[0]}x{image.size[1]} to {block_size}x{block_size}")
        image = image.resize((block_size, block_size), Image.LANCZOS)

    tile = np.array(image, dtype=np.uint8)
    tile.setflags(write=False)
    return tile


def load_tile(path: Union[str, Path], block_size: int) -> np.ndarray:
    """
    Load a tile image from disk.

    Args:
        path: Image file path (any format Pillow can decode)
        block_size: Edge length the tile is resized to

    Returns:
        Read-only uint8 array (block_size, block_size, 3)

    Raises:
        AssetLoadError: If the file is missing or cannot be decoded
    """
    path = Path(path)

    if not path.is_file():
        raise AssetLoadError(f"Tile image not found: {path}", component="TileLoader",
                             details={'path': str(path)})

    try:
        with Image.open(path) as image:
            image.load()
            return _image_to_tile(image, block_size)
    except (UnidentifiedImageError, OSError) as e:
        raise AssetLoadError(f"Failed to load tile image {path}: {e}", component="TileLoader",
                             details={'path': str(path)})


def load_tiles(black_path: Union[str, Path], white_path: Union[str, Path], block_size: int) -> TileSet:
    """Load both tiles for a run."""
    tiles = TileSet(black=load_tile(black_path, block_size), white=load_tile(white_path, block_size))
    logger.info(f"Loaded tiles: black={black_path}, white={white_path}, {block_size}x{block_size}")
    return tiles
