"""
Relief passes over a TerrainState.

This module implements:
- Volcanic cone placement
- Random relief noise
- Central-difference slope field
- Diffusion erosion (5-point average into a scratch grid)
- Consolidation of standing water into land

Every pass works on the border-padded grids with numpy slices, so the
stencils read neighbours through the border instead of branching at the
edge of the domain.
"""

import numpy as np
import structlog

from .layout import Grid
from .terrain import TerrainState

logger = structlog.get_logger()


def trunc_div(values: np.ndarray, divisor: int) -> np.ndarray:
    """Integer division rounding toward zero."""
    return np.sign(values) * (np.abs(values) // divisor)


def place_volcano(
    state: TerrainState,
    cx: int,
    cy: int,
    height: float,
    cap: float,
    slope: float,
) -> int:
    """
    Add a volcanic cone centred on (cx, cy).

    Each cell within ``height / slope`` of the centre gains
    ``min(height - slope * r, cap)`` (truncated) when that is positive.
    Cells outside the domain are skipped. Repeated calls accumulate.

    Args:
        state: Terrain to modify
        cx, cy: Cone centre
        height: Peak height before capping
        cap: Maximum contribution of this cone
        slope: Height lost per unit of radial distance

    Returns:
        Number of cells raised
    """
    if height <= 0 or slope <= 0:
        return 0

    max_radius = int(height / slope)
    x0 = max(0, cx - max_radius)
    x1 = min(state.width - 1, cx + max_radius)
    y0 = max(0, cy - max_radius)
    y1 = min(state.height - 1, cy + max_radius)
    if x0 > x1 or y0 > y1:
        return 0

    dx = np.arange(x0, x1 + 1, dtype=np.float64)[:, None] - cx
    dy = np.arange(y0, y1 + 1, dtype=np.float64)[None, :] - cy
    r = np.sqrt(dx * dx + dy * dy)
    h = np.minimum(height - slope * r, cap)
    raised = h > 0

    window = state.altitude.interior[x0 : x1 + 1, y0 : y1 + 1]
    window += np.where(raised, h, 0.0).astype(np.int32)
    state.invalidate_slope()

    return int(np.count_nonzero(raised))


def add_relief_noise(
    state: TerrainState, rng: np.random.Generator, low: int = 0, high: int = 9
) -> None:
    """Add an independent random integer in [low, high] to every cell."""
    noise = rng.integers(low, high, size=(state.width, state.height), endpoint=True)
    state.altitude.interior[...] += noise.astype(np.int32)
    state.invalidate_slope()


def calculate_slope(state: TerrainState) -> None:
    """
    Recompute the slope field from altitude + water.

    ``slope.x = s[x+1, y] - s[x-1, y]`` and ``slope.y = s[x, y+1] - s[x, y-1]``
    where s is altitude + water. The vector points uphill and is twice the
    local gradient. Reads reach one cell into the border.
    """
    b = state.layout.border
    w, h = state.width, state.height
    surface = state.surface()

    slope = state.slope_dir.interior
    slope[..., 0] = surface[b + 1 : b + 1 + w, b : b + h] - surface[b - 1 : b - 1 + w, b : b + h]
    slope[..., 1] = surface[b : b + w, b + 1 : b + 1 + h] - surface[b : b + w, b - 1 : b - 1 + h]

    state.slope_valid = True


def soil_erosion(state: TerrainState) -> None:
    """
    Smooth altitude with one 5-point diffusion step.

    The average is written into a scratch grid whose border holds the
    state's base altitude, then the scratch grid becomes the altitude grid.
    All five inputs of every output cell come from the same snapshot.
    """
    a = state.altitude
    scratch = Grid(state.layout, state.base_altitude, dtype=a.dtype)

    total = (
        a.interior.astype(np.int64)
        + a.shifted(-1, 0)
        + a.shifted(0, -1)
        + a.shifted(1, 0)
        + a.shifted(0, 1)
    )
    scratch.interior[...] = trunc_div(total, 5)

    a.swap(scratch)
    state.invalidate_slope()

    logger.debug("Erosion pass completed", mean_altitude=float(a.interior.mean()))


def water_to_land(state: TerrainState) -> None:
    """Settle all standing water into the altitude and clear it."""
    state.altitude.interior[...] += state.water_depth.interior
    state.water_depth.interior[...] = 0
    state.invalidate_slope()
