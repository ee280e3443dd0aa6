"""Tile generation orchestration: map data and the editor preview path."""

from dataclasses import dataclass
from typing import Protocol

import numpy as np
import structlog
from numpy.typing import NDArray

from .config import DrawMode, MapGeneratorSettings, NoiseParameters, RegionTable
from .mesh import MAP_CHUNK_SIZE, MeshData, generate_terrain_mesh
from .noise import generate_noise_map
from .regions import classify_regions, color_map_from_indices, region_coverage
from .textures import texture_from_color_map, texture_from_height_map

logger = structlog.get_logger()


@dataclass(frozen=True)
class MapData:
    """Height field plus its region classification for one tile."""

    height_map: NDArray[np.float32]
    region_indices: NDArray[np.int16]
    color_map: NDArray[np.float32]
    params: NoiseParameters

    @property
    def size(self) -> tuple[int, int]:
        """(width, height) of the tile."""
        height, width = self.height_map.shape
        return width, height


class MapDisplay(Protocol):
    """Display collaborator that receives finished textures and meshes."""

    def draw_texture(self, texture: NDArray[np.float32]) -> None: ...

    def draw_mesh(self, mesh: MeshData, texture: NDArray[np.float32]) -> None: ...


def generate_map_data(
    params: NoiseParameters,
    regions: RegionTable,
    size: int = MAP_CHUNK_SIZE,
) -> MapData:
    """Generate the height field and color classification for a tile.

    Args:
        params: Noise parameters.
        regions: Region table for coloring.
        size: Tile resolution along each axis.

    Returns:
        MapData with read-only arrays.
    """
    height_map = generate_noise_map(size, size, params)
    region_indices = classify_regions(height_map, regions)
    color_map = color_map_from_indices(region_indices, regions)
    region_indices.flags.writeable = False
    color_map.flags.writeable = False

    logger.debug(
        "map_data_generated",
        seed=params.seed,
        size=size,
        regions=len(regions.regions),
    )

    return MapData(
        height_map=height_map,
        region_indices=region_indices,
        color_map=color_map,
        params=params,
    )


def draw_map(settings: MapGeneratorSettings, display: MapDisplay) -> MapData:
    """Generate a tile synchronously and hand it to the display.

    What is drawn depends on ``settings.draw_mode``: the grayscale noise,
    the region colors, or the mesh textured with the region colors.

    Args:
        settings: Generator settings.
        display: Display collaborator.

    Returns:
        The generated MapData.
    """
    if not settings.regions.is_ordered:
        logger.warning("region_thresholds_unordered", regions=settings.regions.names)

    map_data = generate_map_data(settings.noise, settings.regions)
    width, height = map_data.size

    if settings.draw_mode == DrawMode.NOISE_MAP:
        display.draw_texture(texture_from_height_map(map_data.height_map))
    elif settings.draw_mode == DrawMode.COLOR_MAP:
        display.draw_texture(texture_from_color_map(map_data.color_map, width, height))
    elif settings.draw_mode == DrawMode.MESH:
        mesh = generate_terrain_mesh(
            map_data.height_map,
            settings.mesh_height_multiplier,
            settings.height_curve.to_curve(),
            settings.level_of_detail,
        )
        display.draw_mesh(mesh, texture_from_color_map(map_data.color_map, width, height))

    _log_region_stats(map_data, settings.regions)
    return map_data


def _log_region_stats(map_data: MapData, regions: RegionTable) -> None:
    """Log how much of the tile each region covers."""
    coverage = region_coverage(map_data.region_indices, regions)
    logger.info(
        "region_coverage",
        seed=map_data.params.seed,
        coverage={name: round(share, 4) for name, share in coverage.items()},
    )
