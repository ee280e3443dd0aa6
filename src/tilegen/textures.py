"""Texture arrays for the display collaborator."""

import numpy as np
from numpy.typing import NDArray

_BLACK = np.array([0.0, 0.0, 0.0, 1.0], dtype=np.float32)
_WHITE = np.array([1.0, 1.0, 1.0, 1.0], dtype=np.float32)


def texture_from_height_map(height_map: NDArray[np.float32]) -> NDArray[np.float32]:
    """Grayscale texture lerped from black (0) to white (1).

    Returns:
        Float32 RGBA array of shape (height, width, 4).
    """
    t = np.clip(np.asarray(height_map, dtype=np.float32), 0.0, 1.0)[..., np.newaxis]
    return (_BLACK + (_WHITE - _BLACK) * t).astype(np.float32)


def texture_from_color_map(
    color_map: NDArray[np.float32],
    width: int,
    height: int,
) -> NDArray[np.float32]:
    """Arrange a flat or gridded RGBA color list into a texture.

    Args:
        color_map: RGBA colors, either (width * height, 4) in row-major
            order or already (height, width, 4).
        width: Texture width.
        height: Texture height.

    Returns:
        Float32 RGBA array of shape (height, width, 4).

    Raises:
        ValueError: If the color count doesn't match width * height.
    """
    colors = np.asarray(color_map, dtype=np.float32)
    if colors.size != width * height * 4:
        raise ValueError(
            f"Color map has {colors.size // 4} colors, expected {width * height}"
        )
    return colors.reshape(height, width, 4)
