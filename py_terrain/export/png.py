"""
Palette PNG export for generated terrain.

Three images are derived from the final TerrainState, one palette index
per cell:
- ``colour``: altitude brightness, darkened where water stands
- ``map``: ocean / land banding with contour lines every 1000 units
- ``slope``: gray hill shading from the slope field

The exporter only reads the terrain. Each file is written to a temporary
name in the target directory and moved into place, so a failed export
never leaves a truncated image behind.
"""

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import structlog
from PIL import Image

from ..core.relief import trunc_div
from ..core.terrain import TerrainState

logger = structlog.get_logger()

PALETTE_SIZE = 256

OCEAN_LIGHT = 0x3D526D
OCEAN_DARK = 0x374B63
CONTOUR = 0xA18762
SAND_DARK = 0xB19772
SAND_LIGHT = 0xCFB78B
GRASS = 0x60B030

# Palette indices used by the map image
MAP_OCEAN = 0
MAP_WATER = 1
MAP_CONTOUR = 2
MAP_LAND_FIRST = 10
MAP_LAND_LAST = 19

LAND_ALTITUDE = 1000
LAND_BAND = 1500
CONTOUR_LEVELS = range(3000, 16000, 1000)


def hexcolor(rgb: int) -> Tuple[int, int, int]:
    return (rgb >> 16, (rgb >> 8) & 0xFF, rgb & 0xFF)


def interpolate_color(
    a: Tuple[int, int, int], b: Tuple[int, int, int], frac: float
) -> Tuple[int, int, int]:
    return tuple(int(ca * (1.0 - frac) + cb * frac) for ca, cb in zip(a, b))


def gray_palette() -> List[Tuple[int, int, int]]:
    return [(i, i, i) for i in range(PALETTE_SIZE)]


def colour_palette() -> List[Tuple[int, int, int]]:
    """Ocean blues below 10, a dark green coast at 10, greens above."""
    palette = []
    for i in range(PALETTE_SIZE):
        if i < 10:
            color = (i * 6, 32 + i * 6, 64 + i * 6)
        elif i == 10:
            color = (32, 100, 80)
        else:
            color = (i, 128 + i // 2, 64 - i // 4)
            if i % 16 == 1:
                color = tuple(c // 2 for c in color)
        palette.append(color)
    return palette


def map_palette() -> List[Tuple[int, int, int]]:
    """Ocean, water and contour entries plus a sand ramp for land bands."""
    palette = [(0, 0, 0)] * PALETTE_SIZE
    palette[MAP_OCEAN] = hexcolor(OCEAN_LIGHT)
    palette[MAP_WATER] = hexcolor(OCEAN_DARK)
    palette[MAP_CONTOUR] = hexcolor(CONTOUR)
    for i in range(MAP_LAND_FIRST, MAP_LAND_LAST + 1):
        palette[i] = interpolate_color(
            hexcolor(SAND_DARK), hexcolor(SAND_LIGHT), (i - MAP_LAND_FIRST) / 9.0
        )
    palette[15] = hexcolor(GRASS)
    return palette


def render_colour(state: TerrainState) -> np.ndarray:
    """Brightness from altitude, lowered where water stands."""
    altitude = state.interior_altitude()
    water = state.interior_water_depth()

    b = trunc_div(altitude, 64)
    wet = water > 0
    b = np.where(wet, np.minimum(b, 10 - trunc_div(water, 30)), b)
    return np.clip(b, 0, 255).astype(np.uint8)


def render_map(state: TerrainState) -> np.ndarray:
    """Land bands, contour lines from forward differences, and water."""
    a = state.interior_altitude()
    a2 = state.altitude.shifted(1, 0)
    a3 = state.altitude.shifted(0, 1)
    water = state.interior_water_depth()

    b = np.zeros(a.shape, dtype=np.int32)
    land = a > LAND_ALTITUDE
    b[land] = np.minimum(
        MAP_LAND_FIRST + (a[land] - LAND_ALTITUDE) // LAND_BAND, MAP_LAND_LAST
    )

    for level in CONTOUR_LEVELS:
        rising = (a < level) & ((a2 >= level) | (a3 >= level))
        falling = (a >= level) & ((a2 < level) | (a3 < level))
        b[rising | falling] = MAP_CONTOUR

    b[water > 0] = MAP_WATER
    return b.astype(np.uint8)


def render_slope(state: TerrainState) -> np.ndarray:
    """Gray shading lit from the +x / +y direction; needs a fresh slope field."""
    slope = state.interior_slope().astype(np.float64)
    light = slope[..., 0] * 2 + slope[..., 1] * 1.3
    b = np.trunc(130 + light * 0.1)
    return np.clip(b, 0, 255).astype(np.uint8)


def _flatten_palette(palette: Sequence[Tuple[int, int, int]]) -> List[int]:
    return [channel for color in palette for channel in color]


def write_palette_png(
    path: Union[str, Path],
    indices: np.ndarray,
    palette: Sequence[Tuple[int, int, int]],
) -> Path:
    """
    Write an indexed PNG atomically.

    Args:
        path: Destination file
        indices: (width, height) palette indices indexed [x, y]
        palette: 256 RGB entries

    Returns:
        The written path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    # PNG rows run along x
    image = Image.fromarray(np.ascontiguousarray(indices.T, dtype=np.uint8))
    image.putpalette(_flatten_palette(palette))

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            image.save(fh, format="PNG")
        os.replace(tmp_name, path)
    except Exception:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    return path


@dataclass
class ExportResult:
    """Outcome of writing the terrain images."""

    success: bool
    paths: Dict[str, Path] = field(default_factory=dict)
    error: Optional[str] = None


class PngExporter:
    """Renders a finished TerrainState to palette PNG images."""

    IMAGES = {
        "colour": (render_colour, colour_palette),
        "map": (render_map, map_palette),
        "slope": (render_slope, gray_palette),
    }

    def __init__(self, output_dir: Union[str, Path] = ".", prefix: str = "output"):
        self.output_dir = Path(output_dir)
        self.prefix = prefix

    def path_for(self, kind: str) -> Path:
        suffix = "" if kind == "colour" else f"-{kind}"
        return self.output_dir / f"{self.prefix}{suffix}.png"

    def export(self, state: TerrainState, kind: str) -> Path:
        """Render and write one image kind; raises on failure."""
        if kind not in self.IMAGES:
            raise ValueError(f"Unknown image kind: {kind}")
        render, palette = self.IMAGES[kind]
        return write_palette_png(self.path_for(kind), render(state), palette())

    def export_all(self, state: TerrainState) -> ExportResult:
        """Write every image kind, reporting success or the first failure."""
        result = ExportResult(success=True)
        for kind in self.IMAGES:
            try:
                result.paths[kind] = self.export(state, kind)
            except OSError as e:
                logger.error("Image export failed", kind=kind, error=str(e))
                result.success = False
                result.error = f"{kind}: {e}"
                return result

        logger.info("Images exported", paths={k: str(p) for k, p in result.paths.items()})
        return result
