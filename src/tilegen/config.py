"""Tile generation configuration models and TOML loading.

Invalid numeric values are clamped to the nearest valid value instead of
being rejected, so an edited configuration always produces a tile.
"""

import tomllib
from enum import Enum
from pathlib import Path
from typing import Any

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field, ValidationInfo, field_validator

from .curves import HeightCurve
from .exceptions import RegionOrderError
from .mesh import clamp_level_of_detail

# Smallest usable noise scale; non-positive scales are clamped to this.
MIN_NOISE_SCALE = 0.0001


class DrawMode(str, Enum):
    """What the editor preview hands to the display."""

    NOISE_MAP = "noise_map"
    COLOR_MAP = "color_map"
    MESH = "mesh"


class NoiseParameters(BaseModel, frozen=True):
    """Fractal noise parameters for a single height field."""

    seed: int = Field(default=0, description="Seed for per-octave sample offsets")
    scale: float = Field(default=50.0, description="Zoom; larger samples a wider area")
    octaves: int = Field(default=4, description="Number of noise layers")
    persistence: float = Field(default=0.5, description="Amplitude multiplier per octave")
    lacunarity: float = Field(default=2.0, description="Frequency multiplier per octave")
    offset: tuple[float, float] = Field(
        default=(0.0, 0.0), description="Global sample offset (x, y)"
    )

    # Debug options
    show_one_octave: bool = Field(
        default=False, description="Only let octave_to_show contribute"
    )
    octave_to_show: int = Field(default=0, description="Octave used by show_one_octave")
    sample_different_places_per_octave: bool = Field(
        default=True, description="Give each octave its own seed-derived offset"
    )

    @field_validator("scale")
    @classmethod
    def _clamp_scale(cls, value: float) -> float:
        return value if value > 0 else MIN_NOISE_SCALE

    @field_validator("octaves")
    @classmethod
    def _clamp_octaves(cls, value: int) -> int:
        return max(value, 0)

    @field_validator("lacunarity")
    @classmethod
    def _clamp_lacunarity(cls, value: float) -> float:
        return max(value, 1.0)

    @field_validator("octave_to_show")
    @classmethod
    def _clamp_octave_to_show(cls, value: int, info: ValidationInfo) -> int:
        octaves = info.data.get("octaves", 0)
        return min(max(value, 0), max(octaves - 1, 0))

    def with_changes(self, **changes: Any) -> "NoiseParameters":
        """Return a copy with fields replaced, re-running clamping."""
        return NoiseParameters.model_validate({**self.model_dump(), **changes})


class TerrainType(BaseModel, frozen=True):
    """A named height band and the color painted on it."""

    name: str
    height: float = Field(description="Upper height threshold (inclusive)")
    color: tuple[float, float, float, float] = Field(
        default=(0.0, 0.0, 0.0, 1.0), description="RGBA color in [0, 1]"
    )

    @field_validator("color", mode="before")
    @classmethod
    def _parse_color(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _hex_to_rgba(value)
        if isinstance(value, (list, tuple)) and len(value) == 3:
            return (*value, 1.0)
        return value


def _hex_to_rgba(value: str) -> tuple[float, float, float, float]:
    """Parse ``#rrggbb`` or ``#rrggbbaa`` into floats in [0, 1]."""
    digits = value.lstrip("#")
    if len(digits) == 6:
        digits += "ff"
    if len(digits) != 8:
        raise ValueError(f"Invalid hex color: {value!r}")
    r, g, b, a = (int(digits[i : i + 2], 16) / 255.0 for i in range(0, 8, 2))
    return (r, g, b, a)


class RegionTable(BaseModel, frozen=True):
    """Ordered region table used for color classification.

    Thresholds are expected to be non-decreasing but this constructor does
    not enforce it; the first entry whose threshold is at or above a cell's
    height wins. Use :meth:`validated` to reject out-of-order tables.
    """

    regions: tuple[TerrainType, ...] = Field(default_factory=tuple)

    @classmethod
    def validated(cls, regions: list[TerrainType] | tuple[TerrainType, ...]) -> "RegionTable":
        """Build a table, raising RegionOrderError if thresholds decrease."""
        table = cls(regions=tuple(regions))
        if not table.is_ordered:
            names = [region.name for region in table.regions]
            raise RegionOrderError(f"Region thresholds must not decrease: {names}")
        return table

    @property
    def is_ordered(self) -> bool:
        """Whether thresholds are monotonically non-decreasing."""
        thresholds = self.thresholds
        return bool(np.all(np.diff(thresholds) >= 0))

    @property
    def thresholds(self) -> NDArray[np.float64]:
        return np.array([region.height for region in self.regions], dtype=np.float64)

    @property
    def colors(self) -> NDArray[np.float32]:
        """RGBA colors as an (n, 4) array."""
        return np.array(
            [region.color for region in self.regions], dtype=np.float32
        ).reshape(-1, 4)

    @property
    def names(self) -> list[str]:
        return [region.name for region in self.regions]


def default_regions() -> RegionTable:
    """Standard island palette from deep water up to snow."""
    return RegionTable(
        regions=(
            TerrainType(name="water_deep", height=0.3, color="#3263c3"),
            TerrainType(name="water_shallow", height=0.4, color="#3667c6"),
            TerrainType(name="sand", height=0.45, color="#d2d07d"),
            TerrainType(name="grass", height=0.55, color="#569817"),
            TerrainType(name="grass_2", height=0.6, color="#3e6b12"),
            TerrainType(name="rock", height=0.7, color="#5a453c"),
            TerrainType(name="rock_2", height=0.9, color="#4b3c35"),
            TerrainType(name="snow", height=1.0, color="#ffffff"),
        )
    )


class HeightCurveConfig(BaseModel):
    """Keyframes of the height remap curve as (time, value) pairs."""

    keys: list[tuple[float, float]] = Field(
        default_factory=lambda: [(0.0, 0.0), (0.4, 0.0), (1.0, 1.0)],
        description="Curve keyframes; flat below the water line by default",
    )

    def to_curve(self) -> HeightCurve:
        return HeightCurve(self.keys)


class PipelineConfig(BaseModel):
    """Worker pool and backpressure settings for the production pipeline."""

    max_workers: int = Field(default=4, ge=1, description="Worker threads")
    max_pending: int = Field(
        default=64, ge=1, description="Max requests in flight before rejecting"
    )


class MapGeneratorSettings(BaseModel, validate_assignment=True):
    """Complete tile generation configuration."""

    noise: NoiseParameters = Field(default_factory=NoiseParameters)
    regions: RegionTable = Field(default_factory=default_regions)
    mesh_height_multiplier: float = Field(
        default=25.0, description="Vertical scale applied after the height curve"
    )
    height_curve: HeightCurveConfig = Field(default_factory=HeightCurveConfig)
    level_of_detail: int = Field(default=0, description="Mesh simplification, 0-6")
    draw_mode: DrawMode = Field(default=DrawMode.NOISE_MAP)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    @field_validator("level_of_detail")
    @classmethod
    def _clamp_level_of_detail(cls, value: int) -> int:
        return clamp_level_of_detail(value)


def load_config(config_path: Path) -> MapGeneratorSettings:
    """Load settings from a TOML file.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed MapGeneratorSettings.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return MapGeneratorSettings.model_validate(data)


def find_config(name: str, configs_dir: Path | None = None) -> Path:
    """Resolve a settings name or path to a TOML file.

    Anything that looks like a path (has a separator or a ``.toml`` suffix)
    must exist as given. Bare names are looked up as ``{name}.toml`` in the
    search directory.

    Args:
        name: Settings name such as ``"preview"``, or a path.
        configs_dir: Directory searched for bare names; defaults to the
            bundled ``configs/`` directory.

    Raises:
        FileNotFoundError: If nothing matches.
    """
    candidate = Path(name)
    if candidate.suffix == ".toml" or len(candidate.parts) > 1:
        if candidate.is_file():
            return candidate
        raise FileNotFoundError(f"Settings file not found: {name}")

    search_dir = configs_dir if configs_dir is not None else bundled_configs_dir()
    config_path = search_dir / f"{name}.toml"
    if config_path.is_file():
        return config_path

    raise FileNotFoundError(
        f"No settings named {name!r} in {search_dir} "
        f"(available: {', '.join(list_configs(search_dir)) or 'none'})"
    )


def list_configs(configs_dir: Path | None = None) -> list[str]:
    """Names of the settings files in ``configs_dir``, sorted."""
    search_dir = configs_dir if configs_dir is not None else bundled_configs_dir()
    return sorted(path.stem for path in search_dir.glob("*.toml"))


def bundled_configs_dir() -> Path:
    """The ``configs/`` directory shipped next to the source tree."""
    return Path(__file__).resolve().parents[2] / "configs"
