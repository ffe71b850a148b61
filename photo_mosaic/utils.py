"""
Utility functions for the photo mosaic package.

This module provides helper functions used across the package, including
logging setup, image and path validation, and conversions between NumPy
images and PyTorch tensors.

Functions:
    setup_logging: Configure logging for the package
    numpy_to_tensor: Convert a NumPy image to a (1, C, H, W) PyTorch tensor
    validate_image: Validate image format and dimensions
    validate_file_path: Validate an input file path
    match_dimensions: Crop image to match target dimensions
"""

import numpy as np
import torch
from torch import Tensor
from typing import Union, Tuple, Optional
import logging
from pathlib import Path

from .config import LOG_LEVEL, SUPPORTED_IMAGE_FORMATS


def setup_logging(level: str = LOG_LEVEL, name: str = "photo_mosaic") -> logging.Logger:
    """
    Configure and return a logger for the package.

    Args:
        level: Logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
        name: Logger name

    Returns:
        logging.Logger: Configured logger instance

    Example:
        >>> logger = setup_logging("DEBUG")
        >>> logger.info("Loading image library")
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


# Initialize package logger
logger = setup_logging()


def numpy_to_tensor(image: np.ndarray,
                    device: Optional[torch.device] = None) -> Tensor:
    """
    Convert an (H, W, C) NumPy image to a float (1, C, H, W) tensor.

    Pixel values are kept in their original range (0-255 for uint8), which
    is what the SSIM functions expect together with data_range=255.

    Args:
        image: Input image as NumPy array (H, W, C) or (H, W)
        device: Target device for the tensor (default: CPU)

    Returns:
        Tensor: Batched image tensor (1, C, H, W)

    Raises:
        TypeError: If input is not a NumPy array

    Example:
        >>> image = np.zeros((64, 64, 3), dtype=np.uint8)
        >>> numpy_to_tensor(image).shape
        torch.Size([1, 3, 64, 64])
    """
    if not isinstance(image, np.ndarray):
        raise TypeError(f"Expected NumPy array, got {type(image).__name__}")

    tensor = torch.from_numpy(np.ascontiguousarray(image, dtype=np.float32))

    if tensor.dim() == 2:
        tensor = tensor.unsqueeze(0)
    else:
        tensor = tensor.permute(2, 0, 1)

    tensor = tensor.unsqueeze(0)

    if device is not None:
        tensor = tensor.to(device)

    return tensor


def validate_image(image: np.ndarray,
                   min_size: Optional[Tuple[int, int]] = None) -> None:
    """
    Validate that an image is an RGB pixel array.

    Args:
        image: Image to validate, shape (H, W, 3)
        min_size: Minimum (height, width), optional

    Raises:
        TypeError: If image is not a NumPy array
        ValueError: If image dimensions are invalid

    Example:
        >>> image = np.zeros((256, 256, 3), dtype=np.uint8)
        >>> validate_image(image, min_size=(64, 64))
        >>> validate_image(image, min_size=(512, 512))  # Raises ValueError
    """
    if not isinstance(image, np.ndarray):
        raise TypeError(f"Image must be a NumPy array, got {type(image).__name__}")

    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Image must have shape (H, W, 3), got {image.shape}")

    h, w = image.shape[:2]

    if h == 0 or w == 0:
        raise ValueError(f"Image must not be empty, got {h}x{w}")

    if min_size is not None:
        min_h, min_w = min_size
        if h < min_h or w < min_w:
            raise ValueError(
                f"Image size ({h}x{w}) is smaller than minimum required ({min_h}x{min_w})"
            )


def match_dimensions(image: np.ndarray, target_shape: Tuple[int, int]) -> np.ndarray:
    """
    Crop image to match target dimensions by removing excess from right/bottom.

    Args:
        image: Input image array
        target_shape: Desired (height, width)

    Returns:
        np.ndarray: Cropped image

    Raises:
        ValueError: If image is smaller than target shape

    Example:
        >>> image = np.ones((300, 400, 3), dtype=np.uint8)
        >>> match_dimensions(image, (256, 256)).shape
        (256, 256, 3)
    """
    h, w = image.shape[:2]
    target_h, target_w = target_shape

    if h < target_h or w < target_w:
        raise ValueError(
            f"Image size ({h}x{w}) is smaller than target shape ({target_h}x{target_w})"
        )

    if (h, w) == tuple(target_shape):
        return image

    # Crop from top-left
    return image[:target_h, :target_w]


def validate_file_path(path: Union[str, Path],
                       must_exist: bool = True,
                       check_extension: bool = True) -> Path:
    """
    Validate and normalize a file path.

    Args:
        path: File path to validate
        must_exist: If True, raises error if file doesn't exist
        check_extension: If True, validates file extension

    Returns:
        Path: Validated Path object

    Raises:
        FileNotFoundError: If must_exist=True and file doesn't exist
        ValueError: If check_extension=True and extension not supported

    Example:
        >>> path = validate_file_path("image.jpg", must_exist=False)
        >>> print(type(path))
        <class 'pathlib.PosixPath'>
    """
    path = Path(path)

    if must_exist and not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")

    if check_extension:
        ext = path.suffix.lower()
        if ext not in SUPPORTED_IMAGE_FORMATS:
            raise ValueError(
                f"Unsupported file format: {ext}. "
                f"Supported formats: {', '.join(SUPPORTED_IMAGE_FORMATS)}"
            )

    return path
