#!/usr/bin/env python3
"""
Demo script: generate a terrain and write the three preview images.

Environment variables (TERRAIN_SEED, TERRAIN_PRESET, TERRAIN_OUTPUT_DIR,
TERRAIN_LOG_LEVEL, ...) override the defaults; see py_terrain.config.
"""

import sys

import numpy as np
from py_terrain.config import get_pipeline_config, settings
from py_terrain.core import generate_terrain
from py_terrain.export import PngExporter
from py_terrain.utils import configure_logging, create_rng


def main():
    """Generate terrain with the configured preset and export it."""
    configure_logging(settings.log_level, settings.log_format)

    print("Py-Terrain Generation Demo")
    print("=" * 40)

    config = get_pipeline_config(settings.preset)
    print(f"\nPreset '{settings.preset}': {config.width}x{config.height}, "
          f"{config.volcanoes.count} volcanoes, {config.cycles} cycles")

    rng = create_rng(settings.seed)
    result = generate_terrain(config, rng)
    state = result.state
    stats = result.stats

    altitude = state.interior_altitude()
    water = state.interior_water_depth()
    print(f"\nAltitude range: {altitude.min()} .. {altitude.max()}")
    print(f"Land above 1000: {np.mean(altitude > 1000) * 100:.1f}%")
    print(f"Wet cells: {np.count_nonzero(water)}")
    print(f"Rivers carved: {stats.rivers} of {stats.river_attempts} attempts")
    for end, count in sorted(stats.river_ends.items()):
        print(f"  {end}: {count}")
    print(f"Elapsed: {stats.elapsed_seconds:.1f}s")

    exporter = PngExporter(settings.output_dir, settings.image_prefix)
    export = exporter.export_all(state)
    if not export.success:
        print(f"\nExport failed: {export.error}")
        return 1

    for kind, path in export.paths.items():
        print(f"Saved {kind} image to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
