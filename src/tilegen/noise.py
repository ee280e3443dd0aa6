"""Layered gradient noise for tile height fields.

Provides a vectorized 2D gradient (Perlin) noise sampler and the octave
summation that turns it into a normalized height field.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .config import MIN_NOISE_SCALE, NoiseParameters

# Per-octave offsets are drawn from [-OFFSET_RANGE, OFFSET_RANGE); larger
# coordinates start to lose precision in the gradient sampler.
OFFSET_RANGE = 100_000

# Ken Perlin's reference permutation, repeated so lookups never wrap.
_PERMUTATION = np.array(
    [
        151, 160, 137, 91, 90, 15, 131, 13, 201, 95, 96, 53, 194, 233, 7, 225,
        140, 36, 103, 30, 69, 142, 8, 99, 37, 240, 21, 10, 23, 190, 6, 148,
        247, 120, 234, 75, 0, 26, 197, 62, 94, 252, 219, 203, 117, 35, 11, 32,
        57, 177, 33, 88, 237, 149, 56, 87, 174, 20, 125, 136, 171, 168, 68, 175,
        74, 165, 71, 134, 139, 48, 27, 166, 77, 146, 158, 231, 83, 111, 229, 122,
        60, 211, 133, 230, 220, 105, 92, 41, 55, 46, 245, 40, 244, 102, 143, 54,
        65, 25, 63, 161, 1, 216, 80, 73, 209, 76, 132, 187, 208, 89, 18, 169,
        200, 196, 135, 130, 116, 188, 159, 86, 164, 100, 109, 198, 173, 186, 3, 64,
        52, 217, 226, 250, 124, 123, 5, 202, 38, 147, 118, 126, 255, 82, 85, 212,
        207, 206, 59, 227, 47, 16, 58, 17, 182, 189, 28, 42, 223, 183, 170, 213,
        119, 248, 152, 2, 44, 154, 163, 70, 221, 153, 101, 155, 167, 43, 172, 9,
        129, 22, 39, 253, 19, 98, 108, 110, 79, 113, 224, 232, 178, 185, 112, 104,
        218, 246, 97, 228, 251, 34, 242, 193, 238, 210, 144, 12, 191, 179, 162, 241,
        81, 51, 145, 235, 249, 14, 239, 107, 49, 192, 214, 31, 181, 199, 106, 157,
        184, 84, 204, 176, 115, 121, 50, 45, 127, 4, 150, 254, 138, 236, 205, 93,
        222, 114, 67, 29, 24, 72, 243, 141, 128, 195, 78, 66, 215, 61, 156, 180,
    ],
    dtype=np.int64,
)
_P = np.concatenate([_PERMUTATION, _PERMUTATION])


def _fade(t: NDArray[np.float64]) -> NDArray[np.float64]:
    """6t^5 - 15t^4 + 10t^3"""
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def _lerp(a: NDArray[np.float64], b: NDArray[np.float64], t: NDArray[np.float64]) -> NDArray[np.float64]:
    return a + t * (b - a)


def _grad(
    hashed: NDArray[np.int64], x: NDArray[np.float64], y: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Dot product of a diagonal gradient picked by ``hashed`` with (x, y)."""
    return np.where(hashed & 1, -x, x) + np.where(hashed & 2, -y, y)


def perlin_noise(x: ArrayLike, y: ArrayLike) -> NDArray[np.float64]:
    """Sample 2D gradient noise.

    The permutation table is fixed, so the output depends only on the
    coordinates. Values are 0.5 on integer lattice points.

    Args:
        x: X coordinates (broadcast against ``y``).
        y: Y coordinates.

    Returns:
        Noise values in [0, 1].
    """
    x, y = np.broadcast_arrays(
        np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64)
    )

    x_floor = np.floor(x)
    y_floor = np.floor(y)
    xf = x - x_floor
    yf = y - y_floor
    xi = x_floor.astype(np.int64) & 255
    yi = y_floor.astype(np.int64) & 255

    u = _fade(xf)
    v = _fade(yf)

    aa = _P[_P[xi] + yi]
    ab = _P[_P[xi] + yi + 1]
    ba = _P[_P[xi + 1] + yi]
    bb = _P[_P[xi + 1] + yi + 1]

    x1 = _lerp(_grad(aa, xf, yf), _grad(ba, xf - 1.0, yf), u)
    x2 = _lerp(_grad(ab, xf, yf - 1.0), _grad(bb, xf - 1.0, yf - 1.0), u)
    value = _lerp(x1, x2, v)

    return np.clip((value + 1.0) * 0.5, 0.0, 1.0)


def octave_offsets(
    seed: int, octaves: int, offset: tuple[float, float] = (0.0, 0.0)
) -> NDArray[np.float64]:
    """Derive one sample offset per octave from the seed.

    Args:
        seed: Random seed.
        octaves: Number of octaves.
        offset: Global offset added to every octave.

    Returns:
        Array of shape (octaves, 2) holding (x, y) offsets.
    """
    rng = np.random.default_rng(seed)
    draws = rng.integers(-OFFSET_RANGE, OFFSET_RANGE, size=(max(octaves, 0), 2))
    return draws.astype(np.float64) + np.asarray(offset, dtype=np.float64)


def normalize_heights(noise_height: NDArray[np.float64]) -> NDArray[np.float32]:
    """Inverse-lerp a signed height grid into [0, 1].

    The minimum maps to 0 and the maximum to 1. A flat grid has no range
    to map, so every cell becomes 0.

    Args:
        noise_height: Accumulated signed heights.

    Returns:
        Read-only float32 array in [0, 1].
    """
    min_height = float(np.min(noise_height)) if noise_height.size else 0.0
    max_height = float(np.max(noise_height)) if noise_height.size else 0.0

    if max_height == min_height:
        normalized = np.zeros(noise_height.shape, dtype=np.float32)
    else:
        normalized = (noise_height - min_height) / (max_height - min_height)
        normalized = np.clip(normalized, 0.0, 1.0).astype(np.float32)

    normalized.flags.writeable = False
    return normalized


def generate_noise_map(
    width: int,
    height: int,
    params: NoiseParameters,
) -> NDArray[np.float32]:
    """Generate a normalized fractal height field.

    Sums octaves of gradient noise, each at ``lacunarity`` times the previous
    frequency and ``persistence`` times the previous amplitude. Samples are
    centered on the middle of the grid so changing the scale zooms around
    the center instead of a corner.

    Args:
        width: Grid width in cells.
        height: Grid height in cells.
        params: Noise parameters.

    Returns:
        Read-only float32 array of shape (height, width), indexed [y, x],
        with values in [0, 1].
    """
    offsets = octave_offsets(params.seed, params.octaves, params.offset)
    if not params.sample_different_places_per_octave and params.octaves > 0:
        offsets[:] = offsets[0]

    scale = params.scale if params.scale > 0 else MIN_NOISE_SCALE
    lacunarity = max(params.lacunarity, 1.0)

    xs = (np.arange(width, dtype=np.float64) - width / 2.0) / scale
    ys = (np.arange(height, dtype=np.float64) - height / 2.0) / scale

    noise_height = np.zeros((height, width), dtype=np.float64)
    amplitude = 1.0
    frequency = 1.0

    for i in range(params.octaves):
        if not params.show_one_octave or i == params.octave_to_show:
            sample_x = xs[np.newaxis, :] * frequency + offsets[i, 0]
            sample_y = ys[:, np.newaxis] * frequency + offsets[i, 1]
            # Shift to [-1, 1] so octaves can also carve down
            perlin_value = perlin_noise(sample_x, sample_y) * 2.0 - 1.0
            noise_height += perlin_value * amplitude

        amplitude *= params.persistence
        frequency *= lacunarity

    return normalize_heights(noise_height)
