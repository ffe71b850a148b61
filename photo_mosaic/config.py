"""
Configuration constants for the photo mosaic package.

This module contains the configurable parameters and constants used throughout
the mosaic generation process: grid density defaults, the reference white used
for CIE L*a*b* conversion, colour conversion constants, and the image formats
accepted for reading and writing.

Constants:
    DEFAULT_MIN_TILES_PER_SIDE: Default number of tiles along the shorter side
    DEFAULT_REFERENCE_WHITE: D65 daylight reference white (XYZ)
    SUPPORTED_IMAGE_FORMATS: File extensions read from the image library
    SUPPORTED_OUTPUT_FORMATS: File extensions a mosaic can be written to
    LOG_LEVEL: Default logging level of the package logger

Colour Conversion:
    SRGB_LINEAR_THRESHOLD: Gamma-decoding breakpoint of sRGB
    SRGB_TO_XYZ_MATRIX: Linear sRGB to XYZ matrix (D65 primaries)
    LAB_EPSILON: Breakpoint of the Lab companding function
"""

from typing import Sequence, Tuple, Union
from pathlib import Path

from .exceptions import ConfigurationError, UnsupportedOutputFormatError

# ========== Grid Settings ==========
DEFAULT_MIN_TILES_PER_SIDE: int = 20
"""Number of tiles the shorter side of the source image is divided into"""

# ========== Colour Settings ==========
DEFAULT_REFERENCE_WHITE: Tuple[float, float, float] = (94.811, 100.000, 107.304)
"""Standard daylight (D65) reference white used for XYZ -> Lab conversion"""

SRGB_LINEAR_THRESHOLD: float = 0.04045
"""Channel values at or below this are decoded linearly (v / 12.92)"""

SRGB_TO_XYZ_MATRIX: Tuple[Tuple[float, float, float], ...] = (
    (0.4124, 0.3576, 0.1805),
    (0.2126, 0.7152, 0.0722),
    (0.0193, 0.1192, 0.9505),
)
"""Rows produce X, Y and Z from linear R, G, B scaled to 0-100"""

LAB_EPSILON: float = 0.008856
"""Normalised XYZ values above this use the cube root, else the linear segment"""

LAB_KAPPA_SLOPE: float = 7.787
"""Slope of the linear segment of the Lab companding function"""

# ========== File Settings ==========
SUPPORTED_IMAGE_FORMATS: Tuple[str, ...] = (
    ".jpg", ".jpeg", ".png", ".bmp", ".gif", ".tif", ".tiff", ".webp"
)
"""Image file extensions considered when scanning a library directory"""

SUPPORTED_OUTPUT_FORMATS: Tuple[str, ...] = (
    ".jpg", ".jpeg", ".png", ".bmp", ".gif", ".tif", ".tiff", ".webp"
)
"""Extensions a finished mosaic may be saved as (format inferred by Pillow)"""

# ========== Logging Settings ==========
LOG_LEVEL: str = "INFO"
"""Logging level: 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'"""


def validate_min_tiles_per_side(min_tiles_per_side: int) -> None:
    """
    Validate the grid density parameter.

    Args:
        min_tiles_per_side: Number of tiles along the shorter source side

    Raises:
        TypeError: If min_tiles_per_side is not an integer
        ConfigurationError: If min_tiles_per_side is not positive

    Example:
        >>> validate_min_tiles_per_side(20)  # Valid
        >>> validate_min_tiles_per_side(0)  # Raises ConfigurationError
    """
    if isinstance(min_tiles_per_side, bool) or not isinstance(min_tiles_per_side, int):
        raise TypeError(
            f"min_tiles_per_side must be an integer, "
            f"got {type(min_tiles_per_side).__name__}"
        )

    if min_tiles_per_side < 1:
        raise ConfigurationError(
            f"min_tiles_per_side must be at least 1, got {min_tiles_per_side}"
        )


def validate_reference_white(reference_white: Sequence[float]) -> Tuple[float, float, float]:
    """
    Validate a reference white and return it as a tuple of floats.

    Args:
        reference_white: XYZ triple of the illuminant

    Returns:
        Tuple[float, float, float]: The validated reference white

    Raises:
        ConfigurationError: If it is not three positive numbers

    Example:
        >>> validate_reference_white((95.047, 100.0, 108.883))
        (95.047, 100.0, 108.883)
    """
    try:
        values = tuple(float(v) for v in reference_white)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Reference white must be three numbers, got {reference_white!r}"
        )

    if len(values) != 3:
        raise ConfigurationError(
            f"Reference white must have exactly 3 components, got {len(values)}"
        )

    if any(not v > 0 for v in values):
        raise ConfigurationError(
            f"Reference white components must be positive, got {values}"
        )

    return values


def validate_output_extension(path: Union[str, Path]) -> str:
    """
    Check that a mosaic can be written to the given path.

    Args:
        path: Destination file path

    Returns:
        str: Lower-cased extension including the dot (e.g. '.png')

    Raises:
        UnsupportedOutputFormatError: If the extension is missing or unsupported

    Example:
        >>> validate_output_extension("out/mosaic.PNG")
        '.png'
    """
    ext = Path(path).suffix.lower()

    if not ext:
        raise UnsupportedOutputFormatError(
            f"Output file name must contain an extension: {path}"
        )

    if ext not in SUPPORTED_OUTPUT_FORMATS:
        raise UnsupportedOutputFormatError(
            f"Unsupported output format: {ext}. "
            f"Supported formats: {', '.join(SUPPORTED_OUTPUT_FORMATS)}"
        )

    return ext
