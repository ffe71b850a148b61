"""
Photo Mosaic Package

Rebuild a source image out of a library of photographs. The source image is
divided into a grid of square tiles and every tile is replaced by the library
image whose average colour is perceptually closest (CIEDE2000 in CIE L*a*b*).
Each library image is used at most once per mosaic.

Main Components:
    - TileLibrary: Loads library images and precomputes their colours
    - TilePool: Per-mosaic consumable view of a library with nearest-match lookup
    - MosaicBuilder: Plans the grid, assigns tiles and composites the mosaic
    - Colour conversion (sRGB -> XYZ -> Lab) and the CIEDE2000 difference
    - Similarity metrics (MSE, PSNR, SSIM, MS-SSIM) for quality evaluation

Example:
    >>> from photo_mosaic import TileLibrary, MosaicBuilder, load_image, save_image
    >>>
    >>> library = TileLibrary.from_directory('library/')
    >>> builder = MosaicBuilder(library, min_tiles_per_side=20)
    >>>
    >>> result = builder.create_mosaic(load_image('input.jpg'))
    >>> save_image(result.image, 'mosaic.png')
"""

from .exceptions import (
    MosaicError,
    ConfigurationError,
    InsufficientPoolError,
    InvalidRegionError,
    UnsupportedOutputFormatError,
    InternalInvariantError,
)
from .color_space import rgb_to_xyz, xyz_to_lab, rgb_to_lab, rgb255_to_lab
from .color_difference import delta_e2000
from .grid import Region, TileGrid, compute_grid
from .image_processor import load_image, save_image, average_color, crop_square
from .tile_manager import LibraryEntry, TileLibrary, TilePool
from .mosaic_builder import (
    TileAssignment,
    MosaicResult,
    MosaicBuilder,
    assign_tiles,
    create_mosaic,
    compose_mosaic,
    generate_mosaic,
)
from .metrics import compute_mse, compute_psnr, compute_ssim, compute_ms_ssim, compute_mean_delta_e
from .config import (
    DEFAULT_MIN_TILES_PER_SIDE,
    DEFAULT_REFERENCE_WHITE,
    SUPPORTED_IMAGE_FORMATS,
    SUPPORTED_OUTPUT_FORMATS,
)

__version__ = "1.0.0"

__all__ = [
    # Main classes
    "TileLibrary",
    "TilePool",
    "LibraryEntry",
    "MosaicBuilder",
    "MosaicResult",
    "TileAssignment",

    # Assignment engine
    "assign_tiles",
    "create_mosaic",
    "compose_mosaic",
    "generate_mosaic",

    # Geometry
    "Region",
    "TileGrid",
    "compute_grid",

    # Colour
    "rgb_to_xyz",
    "xyz_to_lab",
    "rgb_to_lab",
    "rgb255_to_lab",
    "delta_e2000",

    # Image processing functions
    "load_image",
    "save_image",
    "average_color",
    "crop_square",

    # Metrics
    "compute_mse",
    "compute_psnr",
    "compute_ssim",
    "compute_ms_ssim",
    "compute_mean_delta_e",

    # Errors
    "MosaicError",
    "ConfigurationError",
    "InsufficientPoolError",
    "InvalidRegionError",
    "UnsupportedOutputFormatError",
    "InternalInvariantError",

    # Configuration constants
    "DEFAULT_MIN_TILES_PER_SIDE",
    "DEFAULT_REFERENCE_WHITE",
    "SUPPORTED_IMAGE_FORMATS",
    "SUPPORTED_OUTPUT_FORMATS",
]
