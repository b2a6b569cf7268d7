"""Input image helpers: synthetic image generation, decoding and validation.

Functions document the exceptions they raise so the CLI can turn them into a
single-line diagnostic.
"""
from typing import Optional
import logging
import os

import numpy as np
import cv2

from errors import ConfigurationError

logger = logging.getLogger(__name__)


def safe_decode_image(image_bytes: bytes) -> Optional[np.ndarray]:
    """Safely decode image bytes to an OpenCV numpy array.

    Returns None on decode failure instead of raising.
    """
    if not image_bytes:
        return None
    try:
        arr = np.frombuffer(image_bytes, dtype=np.uint8)
        return cv2.imdecode(arr, cv2.IMREAD_COLOR)
    except cv2.error:
        return None


def validate_image_array(image_array: np.ndarray, min_size: int = 10, max_size: int = 20000) -> None:
    """Validate a decoded image and raise descriptive exceptions on failure.

    Raises ValueError or TypeError with clear messages for callers to present to users.
    """
    if image_array is None:
        raise ValueError('image_array is None')
    if not hasattr(image_array, 'shape'):
        raise TypeError('image_array must be a numpy array-like with .shape')

    dims = image_array.shape
    if len(dims) not in (2, 3):
        raise ValueError(f'Invalid image dimensions: expected 2 or 3, got {len(dims)}')

    h, w = int(dims[0]), int(dims[1])
    if h < min_size or w < min_size:
        raise ValueError(f'Image too small: minimum dimension is {min_size}px')
    if h > max_size or w > max_size:
        raise ValueError(f'Image too large: maximum dimension is {max_size}px')

    if not np.issubdtype(image_array.dtype, np.integer) and not np.issubdtype(image_array.dtype, np.floating):
        raise TypeError(f'Image dtype must be numeric, got {image_array.dtype}')


def create_synthetic_test_image(width: int, height: int, complexity: str = 'moderate', seed: int = 0) -> np.ndarray:
    """BGR test image. 'complex' adds noise and many lines so it compresses poorly,
    like a photograph."""
    img = np.full((height, width, 3), 255, dtype=np.uint8)
    cv2.rectangle(img, (10, 10), (width - 10, height - 10), (0, 0, 0), 2)
    if complexity == 'simple':
        return img
    cv2.circle(img, (width // 2, height // 2), min(width, height) // 6, (40, 90, 200), -1)
    if complexity == 'complex':
        rng = np.random.default_rng(seed)
        for _ in range(200):
            x1, x2 = rng.integers(0, width, size=2)
            y1, y2 = rng.integers(0, height, size=2)
            color = tuple(int(c) for c in rng.integers(0, 256, size=3))
            cv2.line(img, (int(x1), int(y1)), (int(x2), int(y2)), color, 2)
        noise = rng.integers(0, 32, size=img.shape, dtype=np.uint8)
        img = cv2.add(img, noise)
    return img


def write_image(path: str, image: np.ndarray) -> str:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    if not cv2.imwrite(path, image):
        raise OSError(f'could not write image to {path}')
    return path


def ensure_input_image(path: str, generate: bool = False, width: int = 4000, height: int = 3000) -> str:
    """Check the benchmark input exists and decodes, generating it first when asked.

    Raises ConfigurationError when the image is missing or not a valid image.
    """
    if not os.path.exists(path):
        if not generate:
            raise ConfigurationError(f'Input image not found: {path} (use --generate-input to create one)')
        logger.info('generating %dx%d synthetic input at %s', width, height, path)
        write_image(path, create_synthetic_test_image(width, height, complexity='complex'))

    with open(path, 'rb') as f:
        decoded = safe_decode_image(f.read())
    try:
        validate_image_array(decoded)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f'Input image {path} is not usable: {e}') from e
    return path
