"""
CIEDE2000 colour difference between CIE L*a*b* colours.

The implementation follows the CIE 2000 formula with unit weighting factors
(kL = kC = kH = 1) and works on broadcastable arrays: comparing one Lab
colour of shape (3,) with a library of shape (N, 3) returns N distances.
Angles are handled in radians throughout.

The result is used as a distance for nearest-neighbour search; it is not
guaranteed to satisfy the triangle inequality.
"""

import numpy as np
from typing import Sequence, Union

ArrayLike = Union[Sequence[float], np.ndarray]

_POW25_7 = 25.0 ** 7


def _split(lab: ArrayLike):
    arr = np.asarray(lab, dtype=np.float64)
    if arr.ndim == 0 or arr.shape[-1] != 3:
        raise ValueError(f"Lab colours must have a trailing dimension of 3, got shape {arr.shape}")
    return arr[..., 0], arr[..., 1], arr[..., 2]


def _hue_angle(b: np.ndarray, a_prime: np.ndarray) -> np.ndarray:
    h = np.arctan2(b, a_prime)
    return np.where(h < 0, h + 2 * np.pi, h)


def delta_e2000(lab1: ArrayLike, lab2: ArrayLike) -> Union[float, np.ndarray]:
    """
    Compute the CIEDE2000 difference between Lab colours.

    Args:
        lab1: First Lab colour(s), shape (..., 3)
        lab2: Second Lab colour(s), broadcastable against lab1

    Returns:
        Union[float, np.ndarray]: Non-negative difference; a float when both
        inputs are single colours, otherwise an array of the broadcast shape

    Example:
        >>> delta_e2000([50.0, 2.6772, -79.7751], [50.0, 0.0, -82.7485])
        2.0425...
        >>> delta_e2000([50.0, 10.0, 10.0], [[50.0, 10.0, 10.0], [60.0, 0.0, 0.0]]).shape
        (2,)
    """
    L1, a1, b1 = _split(lab1)
    L2, a2, b2 = _split(lab2)

    L_mean = (L1 + L2) / 2.0
    C1 = np.sqrt(a1 * a1 + b1 * b1)
    C2 = np.sqrt(a2 * a2 + b2 * b2)
    C_mean = (C1 + C2) / 2.0

    C_mean7 = C_mean ** 7
    G = 0.5 * (1.0 - np.sqrt(C_mean7 / (C_mean7 + _POW25_7)))
    a1_prime = a1 * (1.0 + G)
    a2_prime = a2 * (1.0 + G)

    C1_prime = np.sqrt(a1_prime * a1_prime + b1 * b1)
    C2_prime = np.sqrt(a2_prime * a2_prime + b2 * b2)
    C_mean_prime = (C1_prime + C2_prime) / 2.0

    h1_prime = _hue_angle(b1, a1_prime)
    h2_prime = _hue_angle(b2, a2_prime)
    hue_gap = np.abs(h1_prime - h2_prime)

    H_mean_prime = np.where(
        hue_gap > np.pi,
        (h1_prime + h2_prime + 2 * np.pi) / 2.0,
        (h1_prime + h2_prime) / 2.0,
    )

    T = (1.0
         - 0.17 * np.cos(H_mean_prime - np.pi / 6.0)
         + 0.24 * np.cos(2.0 * H_mean_prime)
         + 0.32 * np.cos(3.0 * H_mean_prime + np.pi / 30.0)
         - 0.20 * np.cos(4.0 * H_mean_prime - 21.0 * np.pi / 60.0))

    delta_h_prime = np.where(
        hue_gap <= np.pi,
        h2_prime - h1_prime,
        np.where(h2_prime <= h1_prime,
                 h2_prime - h1_prime + 2 * np.pi,
                 h2_prime - h1_prime - 2 * np.pi),
    )

    delta_L_prime = L2 - L1
    delta_C_prime = C2_prime - C1_prime
    delta_H_prime = 2.0 * np.sqrt(C1_prime * C2_prime) * np.sin(delta_h_prime / 2.0)

    L_offset2 = (L_mean - 50.0) ** 2
    SL = 1.0 + (0.015 * L_offset2) / np.sqrt(20.0 + L_offset2)
    SC = 1.0 + 0.045 * C_mean_prime
    SH = 1.0 + 0.015 * C_mean_prime * T

    delta_theta = np.radians(30.0) * np.exp(
        -((np.degrees(H_mean_prime) - 275.0) / 25.0) ** 2
    )
    C_mean_prime7 = C_mean_prime ** 7
    RC = 2.0 * np.sqrt(C_mean_prime7 / (C_mean_prime7 + _POW25_7))
    RT = -RC * np.sin(2.0 * delta_theta)

    dL = delta_L_prime / SL
    dC = delta_C_prime / SC
    dH = delta_H_prime / SH

    # rounding can push the radicand a hair below zero for identical colours
    result = np.sqrt(np.maximum(dL * dL + dC * dC + dH * dH + RT * dC * dH, 0.0))

    if result.ndim == 0:
        return float(result)
    return result
