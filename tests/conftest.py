"""Shared test fixtures for tile generation tests."""

import tempfile
from pathlib import Path

import numpy as np
import pytest
import structlog

from tilegen.config import (
    HeightCurveConfig,
    MapGeneratorSettings,
    NoiseParameters,
    RegionTable,
    TerrainType,
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def small_params() -> NoiseParameters:
    """Cheap but non-degenerate noise parameters."""
    return NoiseParameters(seed=42, scale=20.0, octaves=3, persistence=0.5, lacunarity=2.0)


@pytest.fixture
def rgb_regions() -> RegionTable:
    """Three-band table: red up to 0.2, green up to 0.5, blue up to 1.0."""
    return RegionTable(
        regions=(
            TerrainType(name="red", height=0.2, color=(1.0, 0.0, 0.0, 1.0)),
            TerrainType(name="green", height=0.5, color=(0.0, 1.0, 0.0, 1.0)),
            TerrainType(name="blue", height=1.0, color=(0.0, 0.0, 1.0, 1.0)),
        )
    )


@pytest.fixture
def ramp_height_map() -> np.ndarray:
    """9x9 height field rising left to right from 0 to 1."""
    row = np.linspace(0.0, 1.0, 9, dtype=np.float32)
    return np.tile(row, (9, 1))


@pytest.fixture
def linear_settings() -> MapGeneratorSettings:
    """Settings with an identity height curve and a x10 multiplier."""
    return MapGeneratorSettings(
        noise=NoiseParameters(seed=3, scale=25.0, octaves=2),
        height_curve=HeightCurveConfig(keys=[(0.0, 0.0), (1.0, 1.0)]),
        mesh_height_multiplier=10.0,
    )


@pytest.fixture
def reset_structlog():
    """Restore structlog defaults after a test that configures it."""
    yield
    structlog.reset_defaults()
