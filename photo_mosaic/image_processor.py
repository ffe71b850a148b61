"""
Image processing module for the photo mosaic package.

This module provides functions for image loading and saving, region
sampling, square cropping and resizing, and for collecting the image files
of a library directory.

Functions:
    load_image: Load image from file path as an RGB array
    save_image: Write an RGB array, format chosen from the extension
    average_color: Mean colour of an image region
    crop_square: Square crop of the shorter side from the image origin
    resize_image: Resize image to target dimensions
    find_image_files: Recursively list image files below a directory
"""

import numpy as np
import cv2
from PIL import Image
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .config import SUPPORTED_IMAGE_FORMATS, validate_output_extension
from .exceptions import InvalidRegionError
from .grid import Region
from .utils import validate_image, validate_file_path, logger


def load_image(path: Union[str, Path]) -> np.ndarray:
    """
    Load an image from a file path.

    Any format Pillow can decode is accepted; palette, greyscale and alpha
    images are converted to plain RGB.

    Args:
        path: Path to the image file

    Returns:
        np.ndarray: Image as (H, W, 3) uint8 array

    Raises:
        FileNotFoundError: If image file doesn't exist
        ValueError: If the file cannot be decoded as an image

    Example:
        >>> image = load_image("photo.jpg")
        >>> print(image.shape, image.dtype)
        (1024, 768, 3) uint8
    """
    path = validate_file_path(path, must_exist=True, check_extension=False)

    try:
        with Image.open(path) as pil_image:
            image = np.array(pil_image.convert("RGB"))
    except (OSError, Image.DecompressionBombError) as e:
        raise ValueError(f"Failed to load image from {path}: {str(e)}")

    logger.debug(f"Loaded image from {path} with shape {image.shape}")
    return image


def save_image(image: np.ndarray, path: Union[str, Path]) -> Path:
    """
    Save an RGB image; the file format is inferred from the extension.

    Args:
        image: (H, W, 3) uint8 array
        path: Destination path, parent directories are created

    Returns:
        Path: The written path

    Raises:
        UnsupportedOutputFormatError: If the extension is missing or unsupported
    """
    validate_output_extension(path)
    validate_image(image)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(image.astype(np.uint8)).save(path)

    logger.info(f"Saved image of size {image.shape[1]}x{image.shape[0]} to {path}")
    return path


def average_color(image: np.ndarray, region: Optional[Region] = None) -> np.ndarray:
    """
    Compute the average colour of a region of an image.

    Channel sums are accumulated in float64, so arbitrarily large regions
    cannot overflow.

    Args:
        image: Image as (H, W, 3) array
        region: Region to sample; the whole image if None

    Returns:
        np.ndarray: Mean (R, G, B) as float64 in the image's value range

    Raises:
        InvalidRegionError: If the region extends beyond the image

    Example:
        >>> image = np.zeros((10, 10, 3), dtype=np.uint8)
        >>> image[:, 5:] = 255
        >>> average_color(image, Region(0, 0, 10, 10))
        array([127.5, 127.5, 127.5])
    """
    validate_image(image)
    h, w = image.shape[:2]

    if region is None:
        region = Region(0, 0, w, h)
    elif not region.fits_within(w, h):
        raise InvalidRegionError(
            f"Region {region} lies outside the image bounds ({w}x{h})"
        )

    pixels = image[region.y:region.bottom, region.x:region.right]
    return pixels.reshape(-1, 3).mean(axis=0, dtype=np.float64)


def crop_square(image: np.ndarray) -> np.ndarray:
    """
    Crop an image to a square of its shorter side, anchored at the top-left.

    Args:
        image: Image as (H, W, C) array

    Returns:
        np.ndarray: Square view of the image

    Example:
        >>> crop_square(np.zeros((30, 50, 3), dtype=np.uint8)).shape
        (30, 30, 3)
    """
    side = min(image.shape[:2])
    return image[:side, :side]


def resize_image(image: np.ndarray,
                 size: Tuple[int, int],
                 interpolation: str = "area") -> np.ndarray:
    """
    Resize an image to target dimensions.

    Args:
        image: Input image as NumPy array
        size: Target size as (width, height)
        interpolation: Interpolation method ('area', 'lanczos', 'bilinear', 'nearest', 'cubic')

    Returns:
        np.ndarray: Resized image

    Raises:
        ValueError: If interpolation method is invalid

    Example:
        >>> image = np.zeros((1024, 768, 3), dtype=np.uint8)
        >>> resize_image(image, (32, 32)).shape
        (32, 32, 3)
    """
    validate_image(image)

    interp_map = {
        "nearest": cv2.INTER_NEAREST,
        "bilinear": cv2.INTER_LINEAR,
        "cubic": cv2.INTER_CUBIC,
        "lanczos": cv2.INTER_LANCZOS4,
        "area": cv2.INTER_AREA,
    }

    if interpolation.lower() not in interp_map:
        raise ValueError(
            f"Invalid interpolation method: {interpolation}. "
            f"Must be one of {list(interp_map.keys())}"
        )

    if image.shape[1] == size[0] and image.shape[0] == size[1]:
        return image

    # OpenCV expects (width, height)
    resized = cv2.resize(
        np.ascontiguousarray(image), size, interpolation=interp_map[interpolation.lower()]
    )

    logger.debug(f"Resized image from {image.shape[:2]} to {resized.shape[:2]}")
    return resized


def find_image_files(directory: Union[str, Path]) -> List[Path]:
    """
    Recursively collect the image files below a directory.

    Files are matched by extension only; whether they actually decode is
    decided when the library is loaded. The result is sorted so that the
    library order, and with it tie-breaking, is reproducible.

    Args:
        directory: Root of the image library (may contain sub-directories)

    Returns:
        List[Path]: Sorted image file paths

    Raises:
        FileNotFoundError: If the directory does not exist
    """
    directory = Path(directory)

    if not directory.is_dir():
        raise FileNotFoundError(f"Image library directory not found: {directory}")

    files = sorted(
        p for p in directory.rglob("*")
        if p.is_file() and p.suffix.lower() in SUPPORTED_IMAGE_FORMATS
    )

    logger.debug(f"Found {len(files)} candidate image files in {directory}")
    return files
