"""Region classification: map normalized heights onto a color table."""

import numpy as np
from numpy.typing import NDArray

from .config import RegionTable

# Index for cells above every region threshold.
UNSET_REGION = -1

DEFAULT_COLOR = (0.0, 0.0, 0.0, 0.0)


def classify_regions(
    height_map: NDArray[np.float32],
    regions: RegionTable,
) -> NDArray[np.int16]:
    """Classify each cell by the first region whose threshold covers it.

    Regions are checked in table order, not sorted; a cell takes the first
    region with ``height <= threshold``.

    Args:
        height_map: Normalized height field.
        regions: Region table.

    Returns:
        Array of region indices with the height map's shape, UNSET_REGION
        where no region qualifies.
    """
    # Thresholds take the height map's precision; a height equal to its
    # threshold qualifies
    dtype = height_map.dtype if np.issubdtype(height_map.dtype, np.floating) else np.float64
    thresholds = regions.thresholds.astype(dtype)
    indices = np.full(height_map.shape, UNSET_REGION, dtype=np.int16)
    if len(thresholds) == 0:
        return indices

    matches = height_map[..., np.newaxis] <= thresholds
    first = np.argmax(matches, axis=-1)
    qualified = np.any(matches, axis=-1)
    indices[qualified] = first[qualified]
    return indices


def color_map_from_indices(
    indices: NDArray[np.int16],
    regions: RegionTable,
    default_color: tuple[float, float, float, float] = DEFAULT_COLOR,
) -> NDArray[np.float32]:
    """Look up RGBA colors for a region index grid.

    Args:
        indices: Output of :func:`classify_regions`.
        regions: Region table the indices refer to.
        default_color: Color for UNSET_REGION cells.

    Returns:
        Float32 array of shape indices.shape + (4,).
    """
    palette = np.vstack(
        [regions.colors, np.asarray(default_color, dtype=np.float32)]
    )
    # UNSET_REGION (-1) picks the trailing default color
    return palette[indices].astype(np.float32)


def region_coverage(
    indices: NDArray[np.int16],
    regions: RegionTable,
) -> dict[str, float]:
    """Fraction of cells assigned to each region name (plus ``unset``)."""
    total = indices.size or 1
    coverage: dict[str, float] = {}
    for i, region in enumerate(regions.regions):
        share = float(np.sum(indices == i)) / total
        coverage[region.name] = coverage.get(region.name, 0.0) + share
    coverage["unset"] = float(np.sum(indices == UNSET_REGION)) / total
    return coverage
