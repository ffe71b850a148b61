"""
Colour space conversion: sRGB -> XYZ -> CIE L*a*b*.

All functions accept either a single colour triple or an array of shape
(..., 3) and return float64 arrays of the same shape, so a whole batch of
tile colours can be converted in one call.

Functions:
    rgb_to_xyz: sRGB in [0, 1] to XYZ (Y scaled to 0-100)
    xyz_to_lab: XYZ to CIE L*a*b* relative to a reference white
    rgb_to_lab: Composition of the two above
    rgb255_to_lab: Same as rgb_to_lab for 0-255 channel values
"""

import numpy as np
from typing import Sequence, Union

from .config import (
    DEFAULT_REFERENCE_WHITE,
    LAB_EPSILON,
    LAB_KAPPA_SLOPE,
    SRGB_LINEAR_THRESHOLD,
    SRGB_TO_XYZ_MATRIX,
    validate_reference_white,
)

ArrayLike = Union[Sequence[float], np.ndarray]

_SRGB_TO_XYZ = np.asarray(SRGB_TO_XYZ_MATRIX, dtype=np.float64)


def _as_triples(values: ArrayLike, name: str) -> np.ndarray:
    arr = np.asarray(values, dtype=np.float64)
    if arr.ndim == 0 or arr.shape[-1] != 3:
        raise ValueError(f"{name} must have a trailing dimension of 3, got shape {arr.shape}")
    return arr


def srgb_to_linear(rgb: ArrayLike) -> np.ndarray:
    """
    Undo the sRGB transfer curve.

    Args:
        rgb: Channel values in [0, 1]

    Returns:
        np.ndarray: Linear-light channel values in [0, 1]
    """
    v = np.asarray(rgb, dtype=np.float64)
    return np.where(
        v > SRGB_LINEAR_THRESHOLD,
        ((v + 0.055) / 1.055) ** 2.4,
        v / 12.92,
    )


def rgb_to_xyz(rgb: ArrayLike) -> np.ndarray:
    """
    Convert sRGB colours to CIE XYZ.

    Args:
        rgb: RGB triple(s) with channels in [0, 1], shape (..., 3)

    Returns:
        np.ndarray: XYZ triple(s), shape (..., 3), with Y of white = 100

    Example:
        >>> rgb_to_xyz([1.0, 1.0, 1.0]).round(2)
        array([ 95.05, 100.  , 108.9 ])
    """
    linear = srgb_to_linear(_as_triples(rgb, "rgb")) * 100.0
    return linear @ _SRGB_TO_XYZ.T


def _lab_f(t: np.ndarray) -> np.ndarray:
    # np.cbrt keeps the unused branch of np.where free of warnings
    return np.where(t > LAB_EPSILON, np.cbrt(t), LAB_KAPPA_SLOPE * t + 16.0 / 116.0)


def xyz_to_lab(xyz: ArrayLike,
               reference_white: Sequence[float] = DEFAULT_REFERENCE_WHITE) -> np.ndarray:
    """
    Convert CIE XYZ colours to CIE L*a*b*.

    Args:
        xyz: XYZ triple(s), shape (..., 3)
        reference_white: XYZ of the illuminant, three positive numbers

    Returns:
        np.ndarray: Lab triple(s), shape (..., 3)

    Raises:
        ConfigurationError: If the reference white is invalid

    Example:
        >>> xyz_to_lab([94.811, 100.0, 107.304]).round(6)
        array([100.,   0.,   0.])
    """
    white = np.asarray(validate_reference_white(reference_white), dtype=np.float64)
    f = _lab_f(_as_triples(xyz, "xyz") / white)
    fx, fy, fz = f[..., 0], f[..., 1], f[..., 2]

    L = 116.0 * fy - 16.0
    a = 500.0 * (fx - fy)
    b = 200.0 * (fy - fz)
    return np.stack([L, a, b], axis=-1)


def rgb_to_lab(rgb: ArrayLike,
               reference_white: Sequence[float] = DEFAULT_REFERENCE_WHITE) -> np.ndarray:
    """
    Convert sRGB colours in [0, 1] to CIE L*a*b*.

    Args:
        rgb: RGB triple(s) with channels in [0, 1]
        reference_white: XYZ of the illuminant

    Returns:
        np.ndarray: Lab triple(s)
    """
    return xyz_to_lab(rgb_to_xyz(rgb), reference_white)


def rgb255_to_lab(rgb: ArrayLike,
                  reference_white: Sequence[float] = DEFAULT_REFERENCE_WHITE) -> np.ndarray:
    """Convert 0-255 RGB colours (e.g. pixel averages) to CIE L*a*b*."""
    return rgb_to_lab(np.asarray(rgb, dtype=np.float64) / 255.0, reference_white)
