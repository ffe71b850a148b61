"""
Quality metrics for finished mosaics.

Two kinds of score are available. Image metrics compare the mosaic with the
part of the source image it covers (the mosaic is the source's top-left
tiles_wide x tiles_high block). The colour score averages the CIEDE2000
difference recorded for every tile assignment.

Functions:
    compute_mse: Mean Squared Error
    compute_psnr: Peak Signal-to-Noise Ratio
    compute_ssim: Structural Similarity Index
    compute_ms_ssim: Multi-Scale Structural Similarity Index
    compute_mean_delta_e: Average CIEDE2000 difference of tile assignments
    evaluate_mosaic_quality: Selected image metrics for a source/mosaic pair
"""

import numpy as np
from typing import Callable, Dict, Iterable, Sequence, Tuple
from pytorch_msssim import ms_ssim, ssim

from .utils import numpy_to_tensor, match_dimensions, logger


def _covered_area(source: np.ndarray, mosaic: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Crop both images to the top-left area they have in common."""
    if source.shape == mosaic.shape:
        return source, mosaic

    shape = (min(source.shape[0], mosaic.shape[0]), min(source.shape[1], mosaic.shape[1]))
    return match_dimensions(source, shape), match_dimensions(mosaic, shape)


def compute_mse(image1: np.ndarray, image2: np.ndarray,
                match_size: bool = True) -> float:
    """
    Compute Mean Squared Error between two images.

    Args:
        image1: First image as NumPy array
        image2: Second image as NumPy array
        match_size: If True, crops both images to their common top-left area

    Returns:
        float: MSE value (lower is better, 0 = identical)

    Raises:
        ValueError: If image shapes don't match and match_size=False
    """
    if match_size:
        image1, image2 = _covered_area(image1, image2)

    if image1.shape != image2.shape:
        raise ValueError(
            f"Image shapes must match: {image1.shape} vs {image2.shape}"
        )

    diff = image1.astype(np.float64) - image2.astype(np.float64)
    return float(np.mean(diff * diff))


def compute_psnr(image1: np.ndarray, image2: np.ndarray,
                 match_size: bool = True) -> float:
    """Peak Signal-to-Noise Ratio in dB for 8-bit images; inf when identical."""
    mse = compute_mse(image1, image2, match_size=match_size)
    if mse == 0:
        return float('inf')
    return float(10 * np.log10(255.0 ** 2 / mse))


def compute_ssim(image1: np.ndarray,
                 image2: np.ndarray,
                 data_range: int = 255,
                 match_size: bool = True) -> float:
    """
    Compute Structural Similarity Index (SSIM) between two RGB images.

    Returns:
        float: SSIM value (higher is better, 1 = identical)
    """
    if match_size:
        image1, image2 = _covered_area(image1, image2)

    value = ssim(numpy_to_tensor(image1), numpy_to_tensor(image2),
                 data_range=data_range, size_average=True)
    return float(value.item())


def compute_ms_ssim(image1: np.ndarray,
                    image2: np.ndarray,
                    data_range: int = 255,
                    match_size: bool = True) -> float:
    """
    Compute Multi-Scale Structural Similarity Index (MS-SSIM).

    With the default window, pytorch_msssim needs both sides of the compared
    area to exceed 160 pixels.

    Returns:
        float: MS-SSIM value (higher is better, 1 = identical)

    Raises:
        ValueError: If the images are too small for five scales
    """
    if match_size:
        image1, image2 = _covered_area(image1, image2)

    try:
        value = ms_ssim(numpy_to_tensor(image1), numpy_to_tensor(image2),
                        data_range=data_range, size_average=True)
    except AssertionError as e:
        raise ValueError(
            f"MS-SSIM needs images larger than 160px per side, "
            f"got {image1.shape[1]}x{image1.shape[0]}: {e}"
        )
    return float(value.item())


SIMILARITY_METRICS: Dict[str, Callable[[np.ndarray, np.ndarray], float]] = {
    "mse": compute_mse,
    "psnr": compute_psnr,
    "ssim": compute_ssim,
    "ms_ssim": compute_ms_ssim,
}
"""Image metrics by name, as accepted by evaluate_mosaic_quality."""


def compute_mean_delta_e(assignments: Iterable) -> float:
    """
    Average CIEDE2000 difference between tiles and their library images.

    Args:
        assignments: TileAssignment objects

    Returns:
        float: Mean difference (0 if there are no assignments)
    """
    values = [assignment.delta_e for assignment in assignments]
    if not values:
        return 0.0
    return float(np.mean(values))


def evaluate_mosaic_quality(source: np.ndarray,
                            mosaic: np.ndarray,
                            metrics: Sequence[str] = ("ssim", "mse", "psnr")) -> Dict[str, float]:
    """
    Score a mosaic against the source image it was built from.

    The source is cropped to the area the mosaic covers before comparing.

    Args:
        source: Source image (H, W, 3)
        mosaic: Generated mosaic
        metrics: Names from SIMILARITY_METRICS, evaluated in the given order

    Returns:
        Dict[str, float]: Metric name to value

    Raises:
        ValueError: If a metric name is unknown (checked before any metric
            is computed) or MS-SSIM is requested for a small mosaic

    Example:
        >>> scores = evaluate_mosaic_quality(source, result.image, ("ssim", "psnr"))
        >>> print(f"SSIM {scores['ssim']:.3f}, PSNR {scores['psnr']:.1f} dB")
    """
    unknown = [name for name in metrics if name not in SIMILARITY_METRICS]
    if unknown:
        raise ValueError(
            f"Unknown metric(s) {unknown}, must be one of {list(SIMILARITY_METRICS)}"
        )

    source, mosaic = _covered_area(source, mosaic)
    results = {name: SIMILARITY_METRICS[name](source, mosaic) for name in metrics}

    logger.info(
        "Quality: " + ", ".join(f"{name}={value:.4f}" for name, value in results.items())
    )
    return results
