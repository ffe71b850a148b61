"""
Mosaic builder module - tile assignment and mosaic construction.

This module ties the package together: it plans the tile grid, matches every
tile of the source image to the closest unused library image, and paints the
matched images into the output mosaic.

Matching is greedy and single-pass. Tiles are processed column by column and
each one takes the closest image still in the pool; an assignment is final
as soon as it is made.

Classes:
    TileAssignment: One tile region and the library entry chosen for it
    MosaicResult: Grid, assignments and composited image of a run
    MosaicBuilder: Builds mosaics from a long-lived TileLibrary

Functions:
    assign_tiles: Lazily match tiles to pool entries
    create_mosaic: Match all tiles and return the assignments
    compose_mosaic: Paint assignments into an image
    generate_mosaic: File-to-file pipeline
"""

import numpy as np
import pandas as pd
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Union

from .color_space import rgb255_to_lab
from .config import (
    DEFAULT_MIN_TILES_PER_SIDE,
    DEFAULT_REFERENCE_WHITE,
    validate_min_tiles_per_side,
    validate_output_extension,
    validate_reference_white,
)
from .exceptions import InsufficientPoolError
from .grid import Region, TileGrid, compute_grid
from .image_processor import average_color, crop_square, load_image, resize_image, save_image
from .metrics import evaluate_mosaic_quality
from .tile_manager import LibraryEntry, TileLibrary, TilePool
from .utils import validate_file_path, validate_image, logger


@dataclass(frozen=True)
class TileAssignment:
    """
    A tile of the source image and the library entry chosen for it.

    Attributes:
        region: Tile region in source image coordinates
        entry: Library entry assigned to the tile
        tile_lab: Average colour of the tile in Lab
        delta_e: CIEDE2000 difference between tile and entry colours
    """
    region: Region
    entry: LibraryEntry
    tile_lab: np.ndarray = field(repr=False, compare=False)
    delta_e: float = 0.0


@dataclass
class MosaicResult:
    """
    Outcome of a mosaic run.

    Attributes:
        grid: Tile grid used for the source image
        assignments: Tile assignments in processing order
        image: Composited mosaic (mosaic_height, mosaic_width, 3) uint8
        source: Source image the mosaic was built from
    """
    grid: TileGrid
    assignments: List[TileAssignment]
    image: np.ndarray = field(repr=False)
    source: Optional[np.ndarray] = field(default=None, repr=False)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per tile: position, chosen image and colour difference."""
        return assignments_to_dataframe(self.assignments)

    def evaluate(self, metrics: Sequence[str] = ("ssim", "mse", "psnr")) -> dict:
        """Score the mosaic against the covered area of its source image."""
        if self.source is None:
            raise ValueError("MosaicResult has no source image to compare with")
        return evaluate_mosaic_quality(self.source, self.image, metrics)


def assign_tiles(source: np.ndarray,
                 min_tiles_per_side: int,
                 reference_white: Sequence[float],
                 pool: TilePool) -> Iterator[TileAssignment]:
    """
    Match every tile of the source image to a pool entry, one at a time.

    The grid is planned and the pool size checked before the first
    assignment is produced, so an undersized pool fails without consuming
    anything. Each yielded entry has already been removed from the pool.

    Tile and pool colours are compared under the same reference white: if
    the pool was built for another illuminant, its Lab colours are
    recomputed for reference_white first.

    Args:
        source: Source image (H, W, 3)
        min_tiles_per_side: Number of tiles along the shorter side
        reference_white: Illuminant used for the Lab conversion
        pool: Pool to draw entries from; it is consumed

    Yields:
        TileAssignment: Assignments in column-major tile order

    Raises:
        ConfigurationError: If the grid cannot be planned or the white is invalid
        InsufficientPoolError: If the pool has fewer entries than tiles
    """
    validate_image(source)
    white = validate_reference_white(reference_white)

    grid = compute_grid(source.shape[1], source.shape[0], min_tiles_per_side)
    _check_pool(grid, pool)
    pool.use_reference_white(white)
    return _iter_assignments(source, grid, white, pool)


def _check_pool(grid: TileGrid, pool: TilePool) -> None:
    if pool.size() < grid.total_tiles:
        raise InsufficientPoolError(required=grid.total_tiles, available=pool.size())


def _iter_assignments(source: np.ndarray,
                      grid: TileGrid,
                      reference_white: Sequence[float],
                      pool: TilePool) -> Iterator[TileAssignment]:
    for region in grid.iter_regions():
        tile_lab = rgb255_to_lab(average_color(source, region), reference_white)
        entry, distance = pool.claim(tile_lab)

        logger.debug(
            f"Tile ({region.x}, {region.y}) -> {entry.name} (dE00 {distance:.3f})"
        )
        yield TileAssignment(region=region, entry=entry, tile_lab=tile_lab, delta_e=distance)


def create_mosaic(source: np.ndarray,
                  min_tiles_per_side: int,
                  reference_white: Sequence[float],
                  pool: TilePool) -> List[TileAssignment]:
    """
    Match all tiles of the source image and return the assignments.

    Args:
        source: Source image (H, W, 3)
        min_tiles_per_side: Number of tiles along the shorter side
        reference_white: Illuminant used for the Lab conversion
        pool: Pool to draw entries from; it is consumed

    Returns:
        List[TileAssignment]: One assignment per tile, column-major order

    Example:
        >>> library = TileLibrary.from_directory("library/")
        >>> assignments = create_mosaic(image, 20, DEFAULT_REFERENCE_WHITE,
        ...                             library.snapshot())
    """
    return list(assign_tiles(source, min_tiles_per_side, reference_white, pool))


def compose_mosaic(assignments: Iterable[TileAssignment], grid: TileGrid) -> np.ndarray:
    """
    Paint assigned library images into a new mosaic image.

    Each library image is cropped to a square of its shorter side starting
    at its top-left corner and resized to exactly fill its tile.

    Args:
        assignments: Tile assignments (any order, may be a generator)
        grid: Grid the assignments were made for

    Returns:
        np.ndarray: Mosaic image (mosaic_height, mosaic_width, 3) uint8
    """
    side = grid.tile_side
    canvas = np.zeros((grid.mosaic_height, grid.mosaic_width, 3), dtype=np.uint8)

    for assignment in assignments:
        region = assignment.region
        tile = resize_image(crop_square(assignment.entry.image), (side, side))
        canvas[region.y:region.bottom, region.x:region.right] = tile

    return canvas


def assignments_to_dataframe(assignments: Sequence[TileAssignment]) -> pd.DataFrame:
    """
    Tabulate tile assignments.

    Returns:
        pd.DataFrame: Columns x, y, size, entry, filename, delta_e
    """
    return pd.DataFrame(
        [
            {
                "x": a.region.x,
                "y": a.region.y,
                "size": a.region.width,
                "entry": a.entry.index,
                "filename": a.entry.name,
                "delta_e": a.delta_e,
            }
            for a in assignments
        ],
        columns=["x", "y", "size", "entry", "filename", "delta_e"],
    )


class MosaicBuilder:
    """
    Main class for creating photo mosaics from an image library.

    The MosaicBuilder coordinates the mosaic generation process:
    1. Plans a square tile grid for the source image
    2. Computes the average Lab colour of each tile
    3. Claims the closest unused library image for each tile
    4. Paints the claimed images into the output mosaic

    Every call works on a fresh snapshot of the library, so the same builder
    can be used for any number of mosaics.

    Attributes:
        library: TileLibrary the tiles are drawn from
        min_tiles_per_side: Default number of tiles along the shorter side

    Example:
        >>> from photo_mosaic import TileLibrary, MosaicBuilder, load_image
        >>>
        >>> library = TileLibrary.from_directory("library/")
        >>> builder = MosaicBuilder(library, min_tiles_per_side=20)
        >>> result = builder.create_mosaic(load_image("input.jpg"))
        >>> print(result.grid.total_tiles, result.image.shape)
    """

    def __init__(self,
                 library: TileLibrary,
                 min_tiles_per_side: int = DEFAULT_MIN_TILES_PER_SIDE):
        """
        Initialize MosaicBuilder.

        Args:
            library: TileLibrary with loaded images
            min_tiles_per_side: Default grid density

        Raises:
            TypeError: If library is not a TileLibrary instance
                or min_tiles_per_side is not an integer
            ConfigurationError: If min_tiles_per_side is less than 1
        """
        if not isinstance(library, TileLibrary):
            raise TypeError(
                f"library must be a TileLibrary instance, "
                f"got {type(library).__name__}"
            )

        validate_min_tiles_per_side(min_tiles_per_side)

        self.library = library
        self.min_tiles_per_side = min_tiles_per_side

        logger.info(
            f"Initialized MosaicBuilder with {len(library)} library images, "
            f"{min_tiles_per_side} tiles per side"
        )

    @property
    def reference_white(self):
        return self.library.reference_white

    def plan(self, source: np.ndarray, min_tiles_per_side: Optional[int] = None) -> TileGrid:
        """Return the tile grid a source image would be split into."""
        validate_image(source)
        n = min_tiles_per_side if min_tiles_per_side is not None else self.min_tiles_per_side
        return compute_grid(source.shape[1], source.shape[0], n)

    def assign(self,
               source: np.ndarray,
               min_tiles_per_side: Optional[int] = None) -> List[TileAssignment]:
        """
        Match the tiles of a source image without compositing.

        Args:
            source: Source image (H, W, 3)
            min_tiles_per_side: Grid density (overrides default)

        Returns:
            List[TileAssignment]: One assignment per tile
        """
        n = min_tiles_per_side if min_tiles_per_side is not None else self.min_tiles_per_side
        return create_mosaic(source, n, self.reference_white, self.library.snapshot())

    def create_mosaic(self,
                      source: np.ndarray,
                      min_tiles_per_side: Optional[int] = None) -> MosaicResult:
        """
        Create a mosaic from a source image.

        Args:
            source: Source image (H, W, 3)
            min_tiles_per_side: Grid density (overrides default)

        Returns:
            MosaicResult: Grid, assignments and composited mosaic

        Raises:
            ConfigurationError: If the image is too small for the density
            InsufficientPoolError: If the library has fewer images than tiles
        """
        grid = self.plan(source, min_tiles_per_side)

        logger.info(
            f"Creating {grid.tiles_wide}x{grid.tiles_high} mosaic "
            f"({grid.total_tiles} tiles of {grid.tile_side}px) "
            f"from {len(self.library)} library images"
        )

        start_time = time.time()
        assignments = self.assign(source, min_tiles_per_side)
        image = compose_mosaic(assignments, grid)
        elapsed = time.time() - start_time

        logger.info(f"Mosaic created in {elapsed:.3f}s")
        return MosaicResult(grid=grid, assignments=assignments, image=image, source=source)

    def compute_similarity(self,
                           original: np.ndarray,
                           mosaic: np.ndarray,
                           metric: str = "ms_ssim") -> float:
        """
        Compute one similarity score between a source image and its mosaic.

        The source is cropped to the area covered by the mosaic first.

        Args:
            original: Source image
            mosaic: Generated mosaic
            metric: Similarity metric ('ms_ssim', 'ssim', 'mse', 'psnr')

        Returns:
            float: Similarity score

        Raises:
            ValueError: If the metric is unknown
        """
        return evaluate_mosaic_quality(original, mosaic, (metric,))[metric]


def generate_mosaic(source_path: Union[str, Path],
                    library_dir: Union[str, Path],
                    output_path: Union[str, Path],
                    min_tiles_per_side: int = DEFAULT_MIN_TILES_PER_SIDE,
                    reference_white: Sequence[float] = DEFAULT_REFERENCE_WHITE) -> MosaicResult:
    """
    Build a mosaic from files on disk and write it to output_path.

    The output extension is checked before any image is read. An existing
    output file is overwritten.

    Args:
        source_path: Source image file
        library_dir: Directory with library images (searched recursively)
        output_path: Destination file; its extension selects the format
        min_tiles_per_side: Number of tiles along the shorter side
        reference_white: Illuminant used for the Lab conversion

    Returns:
        MosaicResult: The finished mosaic

    Raises:
        UnsupportedOutputFormatError: If the output extension is missing or unsupported
        FileNotFoundError: If the source image or library directory is missing
    """
    validate_output_extension(output_path)
    source_path = validate_file_path(source_path, must_exist=True, check_extension=False)

    library = TileLibrary.from_directory(library_dir, reference_white)
    source = load_image(source_path)

    result = MosaicBuilder(library, min_tiles_per_side).create_mosaic(source)
    save_image(result.image, output_path)
    return result
