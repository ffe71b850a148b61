"""
Tile grid geometry for the photo mosaic package.

The source image is covered by equal square tiles. The tile side is derived
from the shorter image side and the requested density; the longer side gets
as many whole tiles as fit. Pixels on the right and bottom margins that do
not form a complete tile are left out of the mosaic.

Classes:
    Region: Rectangular pixel region of an image
    TileGrid: Tile side and grid dimensions for a source image

Functions:
    compute_grid: Plan the tile grid for a source size and density
"""

from dataclasses import dataclass
from typing import Iterator

from .config import validate_min_tiles_per_side
from .exceptions import ConfigurationError, InvalidRegionError


@dataclass(frozen=True)
class Region:
    """
    Rectangular region of an image in pixel coordinates.

    Attributes:
        x: Left column
        y: Top row
        width: Number of columns (> 0)
        height: Number of rows (> 0)
    """
    x: int
    y: int
    width: int
    height: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise InvalidRegionError(
                f"Region must have a positive size, got {self.width}x{self.height}"
            )
        if self.x < 0 or self.y < 0:
            raise InvalidRegionError(
                f"Region origin must be non-negative, got ({self.x}, {self.y})"
            )

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def fits_within(self, width: int, height: int) -> bool:
        """Return True if the region lies inside a width x height image."""
        return self.right <= width and self.bottom <= height


@dataclass(frozen=True)
class TileGrid:
    """
    Geometry of the mosaic tile grid.

    Attributes:
        tile_side: Side length of every square tile in pixels
        tiles_wide: Number of tile columns
        tiles_high: Number of tile rows
    """
    tile_side: int
    tiles_wide: int
    tiles_high: int

    @property
    def total_tiles(self) -> int:
        return self.tiles_wide * self.tiles_high

    @property
    def mosaic_width(self) -> int:
        return self.tiles_wide * self.tile_side

    @property
    def mosaic_height(self) -> int:
        return self.tiles_high * self.tile_side

    def iter_regions(self) -> Iterator[Region]:
        """
        Yield every tile region in processing order.

        Tiles are visited column by column: the outer loop walks x from left
        to right and the inner loop walks y from top to bottom.

        Example:
            >>> grid = TileGrid(tile_side=5, tiles_wide=2, tiles_high=2)
            >>> [(r.x, r.y) for r in grid.iter_regions()]
            [(0, 0), (0, 5), (5, 0), (5, 5)]
        """
        side = self.tile_side
        for column in range(self.tiles_wide):
            for row in range(self.tiles_high):
                yield Region(column * side, row * side, side, side)


def compute_grid(src_width: int, src_height: int, min_tiles_per_side: int) -> TileGrid:
    """
    Plan the tile grid for a source image.

    The shorter side is divided into min_tiles_per_side tiles (rounded down
    to whole pixels); the longer side receives as many tiles of the same
    size as fit completely.

    Args:
        src_width: Source image width in pixels
        src_height: Source image height in pixels
        min_tiles_per_side: Number of tiles along the shorter side

    Returns:
        TileGrid: Tile side and grid dimensions

    Raises:
        ConfigurationError: If the image is too small for the requested
            density (tile side would be below one pixel)

    Example:
        >>> grid = compute_grid(100, 50, 10)
        >>> grid.tile_side, grid.tiles_wide, grid.tiles_high, grid.total_tiles
        (5, 20, 10, 200)
    """
    validate_min_tiles_per_side(min_tiles_per_side)

    if src_width <= 0 or src_height <= 0:
        raise ConfigurationError(
            f"Source image must have a positive size, got {src_width}x{src_height}"
        )

    tile_side = min(src_width, src_height) // min_tiles_per_side

    if tile_side < 1:
        raise ConfigurationError(
            f"Source image ({src_width}x{src_height}) is too small for "
            f"{min_tiles_per_side} tiles per side: tile side would be {tile_side} px"
        )

    return TileGrid(
        tile_side=tile_side,
        tiles_wide=src_width // tile_side,
        tiles_high=src_height // tile_side,
    )
