"""Procedural terrain tile generation.

Generates a fractal-noise height field, a region color classification and
a level-of-detail triangle mesh for one tile, optionally off the consumer
thread through a result-queue pipeline.
"""

from .config import (
    DrawMode,
    HeightCurveConfig,
    MapGeneratorSettings,
    NoiseParameters,
    PipelineConfig,
    RegionTable,
    TerrainType,
    default_regions,
    find_config,
    load_config,
)
from .curves import CurveSnapshot, HeightCurve
from .exceptions import (
    GenerationError,
    PipelineBusyError,
    PipelineClosedError,
    PipelineError,
    RegionOrderError,
    TilegenError,
)
from .generator import MapData, MapDisplay, draw_map, generate_map_data
from .mesh import (
    MAP_CHUNK_SIZE,
    MeshData,
    clamp_level_of_detail,
    generate_terrain_mesh,
    simplification_increment,
)
from .noise import generate_noise_map, perlin_noise
from .pipeline import ResultChannel, TerrainPipeline, ThreadInfo
from .regions import UNSET_REGION, classify_regions, color_map_from_indices
from .textures import texture_from_color_map, texture_from_height_map

__all__ = [
    # Config
    "DrawMode",
    "HeightCurveConfig",
    "MapGeneratorSettings",
    "NoiseParameters",
    "PipelineConfig",
    "RegionTable",
    "TerrainType",
    "default_regions",
    "find_config",
    "load_config",
    # Curves
    "CurveSnapshot",
    "HeightCurve",
    # Noise
    "generate_noise_map",
    "perlin_noise",
    # Mesh
    "MAP_CHUNK_SIZE",
    "MeshData",
    "clamp_level_of_detail",
    "generate_terrain_mesh",
    "simplification_increment",
    # Regions
    "UNSET_REGION",
    "classify_regions",
    "color_map_from_indices",
    # Textures
    "texture_from_color_map",
    "texture_from_height_map",
    # Generator
    "MapData",
    "MapDisplay",
    "draw_map",
    "generate_map_data",
    # Pipeline
    "ResultChannel",
    "TerrainPipeline",
    "ThreadInfo",
    # Exceptions
    "TilegenError",
    "RegionOrderError",
    "PipelineError",
    "PipelineBusyError",
    "PipelineClosedError",
    "GenerationError",
]
