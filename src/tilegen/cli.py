"""Command-line interface for tile generation."""

import argparse
import time
from pathlib import Path

import numpy as np
import structlog


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: generate one tile through the production pipeline."""
    parser = argparse.ArgumentParser(
        description="Generate a procedural terrain tile and its LOD mesh"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path or name of a TOML settings file (default: built-in settings)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Noise seed")
    parser.add_argument("--scale", type=float, default=None, help="Noise scale")
    parser.add_argument("--octaves", type=int, default=None, help="Noise octaves")
    parser.add_argument(
        "--lod", type=int, default=None, help="Mesh level of detail, 0-6"
    )
    parser.add_argument(
        "--tick-ms",
        type=float,
        default=16.0,
        help="Consumer tick interval in milliseconds (default: 16)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )

    args = parser.parse_args(argv)

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(10 if args.verbose else 20),
    )
    logger = structlog.get_logger()

    # Import here to avoid slow startup for --help
    from .config import MapGeneratorSettings, find_config, load_config
    from .generator import MapData
    from .mesh import MeshData
    from .pipeline import TerrainPipeline
    from .regions import region_coverage

    if args.config:
        try:
            config_path = find_config(args.config)
        except FileNotFoundError:
            logger.error("config_not_found", path=args.config)
            raise SystemExit(1)
        settings = load_config(Path(config_path))
        logger.info("config_loaded", path=str(config_path))
    else:
        settings = MapGeneratorSettings()
        logger.info("using_default_config")

    # Apply CLI overrides
    overrides = {
        key: value
        for key, value in (
            ("seed", args.seed),
            ("scale", args.scale),
            ("octaves", args.octaves),
        )
        if value is not None
    }
    if overrides:
        settings.noise = settings.noise.with_changes(**overrides)
    if args.lod is not None:
        settings.level_of_detail = args.lod

    results: dict[str, MapData | MeshData] = {}

    with TerrainPipeline(settings) as pipeline:

        def on_mesh_data(mesh: MeshData) -> None:
            results["mesh"] = mesh

        def on_height_data(map_data: MapData) -> None:
            results["map"] = map_data
            pipeline.request_mesh_data(map_data, on_mesh_data)

        start_time = time.time()
        pipeline.request_height_data(on_height_data)

        ticks = 0
        while "mesh" not in results:
            pipeline.drain()
            ticks += 1
            time.sleep(args.tick_ms / 1000.0)

        gen_time = time.time() - start_time

    map_data = results["map"]
    mesh = results["mesh"]
    assert isinstance(map_data, MapData) and isinstance(mesh, MeshData)
    width, height = map_data.size

    print()
    print(f"Generated {width}x{height} tile with seed {settings.noise.seed}")
    print(f"  Completed in {gen_time:.2f}s over {ticks} ticks")
    print(
        f"  Height range: {np.min(map_data.height_map):.3f}"
        f" - {np.max(map_data.height_map):.3f}"
    )
    print(
        f"  Mesh LOD {settings.level_of_detail}: {mesh.vertex_count:,} vertices, "
        f"{mesh.triangle_count:,} triangles"
    )
    print("  Region coverage:")
    for name, share in region_coverage(map_data.region_indices, settings.regions).items():
        print(f"    {name}: {share * 100:.1f}%")


if __name__ == "__main__":
    main()
