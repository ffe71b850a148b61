"""
Exception types raised by the photo mosaic package.

Every error is terminal for the mosaic being built; nothing in the package
retries. All of them derive from MosaicError so callers can catch the whole
family at once, and the validation errors also derive from ValueError.

Classes:
    MosaicError: Base class
    ConfigurationError: Invalid grid density or reference white
    InsufficientPoolError: Not enough library images for the tile grid
    InvalidRegionError: Sampling region empty or outside the image
    UnsupportedOutputFormatError: Destination extension missing or unsupported
    InternalInvariantError: Internal consistency check failed
"""


class MosaicError(Exception):
    """Base class for all photo mosaic errors."""


class ConfigurationError(MosaicError, ValueError):
    """Raised when mosaic parameters cannot produce a valid tile grid."""


class InsufficientPoolError(MosaicError):
    """
    Raised when the library pool holds fewer images than the grid has tiles.

    Attributes:
        required: Number of tiles in the grid
        available: Number of entries left in the pool
    """

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"Not enough images in the image library to create the mosaic: "
            f"{required} images required, but only {available} available"
        )


class InvalidRegionError(MosaicError, ValueError):
    """Raised when a sampling region is empty or lies outside the image."""


class UnsupportedOutputFormatError(MosaicError, ValueError):
    """Raised when the output path has no extension or an unsupported one."""


class InternalInvariantError(MosaicError, RuntimeError):
    """Raised when an internal consistency check fails (e.g. empty pool lookup)."""
