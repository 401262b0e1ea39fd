"""
Water-driven mass transport for terrain simulation.

This module implements:
- Global water redistribution: every land cell sends part of its altitude
  along the slope vector, accumulated in a delta grid
- Particle river carving: a single droplet meanders downhill, depositing
  water and cutting a channel until it leaves the map, reaches the ocean
  or stalls

Both passes bound the per-step displacement by the layout's border width.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np
import structlog

from .layout import Grid
from .relief import trunc_div
from .terrain import TerrainState

logger = structlog.get_logger()


@dataclass
class FlowOptions:
    """Global water redistribution parameters."""

    ocean_altitude: int = 6 * 64  # Cells at or below this are sinks
    max_step: float = 2.0  # Displacement of the dominant axis, in cells
    max_change: int = 100  # Cap on altitude moved out of one cell per pass
    change_divisor: int = 10  # Fraction of altitude moved is 1/change_divisor


@dataclass
class RiverOptions:
    """Particle river parameters."""

    max_steps: int = 1000  # Hard cap on droplet iterations
    alpha: float = 0.2  # Velocity smoothing factor
    ocean_range: Tuple[int, int] = (4 * 64, 24 * 64)  # Half-open, drawn per river
    jitter_range: Tuple[int, int] = (-50, 50)  # Half-open lateral jitter
    max_step: float = 1.0  # Displacement of the dominant axis, in cells

    # Seed selection for batches of rivers
    seed_min_altitude: int = 1000
    seed_min_slope_sum: float = -10.0


class RiverEnd(str, Enum):
    """Why a droplet stopped."""

    EDGE = "edge"
    OCEAN = "ocean"
    STUCK = "stuck"
    STEP_LIMIT = "step_limit"


@dataclass
class River:
    """Path traced by one droplet."""

    source: Tuple[int, int]
    ocean_altitude: int
    cells: List[Tuple[int, int]] = field(default_factory=list)
    end: RiverEnd = RiverEnd.STEP_LIMIT

    @property
    def steps(self) -> int:
        return len(self.cells)

    @property
    def carved(self) -> int:
        """Cells whose altitude was lowered (the last cell of a stuck river is not)."""
        if self.end == RiverEnd.STUCK:
            return len(self.cells) - 1
        return len(self.cells)


def compute_flow_deltas(
    state: TerrainState, options: Optional[FlowOptions] = None
) -> Grid:
    """
    Compute one global water redistribution pass without applying it.

    Every interior cell above the ocean altitude loses
    ``min(altitude // 10, max_change)`` and the same amount lands
    ``max_step`` cells away along the slope vector (dominant axis
    normalised). All transfers are computed from the current snapshot.

    Args:
        state: Terrain with a fresh slope field
        options: Flow parameters

    Returns:
        Border-inclusive delta grid; its total is zero
    """
    options = options or FlowOptions()
    state.layout.check_displacement(options.max_step)
    state.require_slope()

    b = state.layout.border
    deltas = Grid(state.layout, 0, dtype=np.int32)

    altitude = state.altitude.interior
    xs, ys = np.nonzero(altitude > options.ocean_altitude)
    if xs.size == 0:
        return deltas

    change = np.minimum(
        trunc_div(altitude[xs, ys], options.change_divisor), options.max_change
    ).astype(np.int32)

    slope = state.slope_dir.interior[xs, ys].astype(np.float64)
    d = np.maximum(1.0, np.abs(slope).max(axis=1))
    x2 = np.trunc(xs + options.max_step * slope[:, 0] / d).astype(np.intp)
    y2 = np.trunc(ys + options.max_step * slope[:, 1] / d).astype(np.intp)

    full = deltas.array
    np.add.at(full, (xs + b, ys + b), -change)
    np.add.at(full, (x2 + b, y2 + b), change)

    return deltas


def water_flow_everywhere(
    state: TerrainState, options: Optional[FlowOptions] = None
) -> Grid:
    """
    Redistribute altitude along the slope field everywhere at once.

    Deltas are accumulated for the whole pass and applied afterwards, so a
    cell's outgoing transfer never sees another cell's update. Deltas that
    land in the border leave the map.

    Returns:
        The applied delta grid
    """
    deltas = compute_flow_deltas(state, options)

    state.altitude.interior[...] += deltas.interior
    state.invalidate_slope()

    lost = int(deltas.total() - deltas.interior.sum(dtype=np.int64))
    logger.debug(
        "Global water redistribution applied",
        moved=int(np.abs(deltas.interior).sum(dtype=np.int64)) // 2,
        left_map=lost,
    )

    return deltas


def carve_river(
    state: TerrainState,
    cx: int,
    cy: int,
    rng: np.random.Generator,
    options: Optional[RiverOptions] = None,
) -> River:
    """
    Trace one droplet from (cx, cy) and carve its channel.

    The droplet's velocity is an exponential moving average of the slope
    plus random lateral jitter; it moves against the slope (downhill) with
    the dominant axis capped at ``max_step`` cells per iteration. Each
    iteration deposits water on the cell it leaves and lowers that cell's
    altitude by the same amount, unless the droplet did not leave the cell.

    The slope field is read as a snapshot: rivers carved in the same batch
    share the slope computed before the batch (see ``carve_rivers``).

    Args:
        state: Terrain with a fresh slope field
        cx, cy: Starting cell
        rng: Random source for the ocean threshold and jitter
        options: River parameters

    Returns:
        The traced river
    """
    options = options or RiverOptions()
    layout = state.layout
    layout.check_displacement(options.max_step)
    state.require_slope()

    altitude = state.altitude.flat
    water = state.water_depth.flat
    slope = state.slope_dir.flat
    alpha = options.alpha
    jitter_lo, jitter_hi = options.jitter_range

    river = River(
        source=(cx, cy),
        ocean_altitude=int(rng.integers(*options.ocean_range)),
    )

    x, y = float(cx), float(cy)
    dx = dy = 0.0

    for _ in range(options.max_steps):
        ix = int(x)
        iy = int(y)
        if not layout.in_bounds(ix, iy):
            river.end = RiverEnd.EDGE
            break

        p = layout.position(ix, iy)
        if altitude[p] < river.ocean_altitude:
            river.end = RiverEnd.OCEAN
            break

        jx, jy = rng.integers(jitter_lo, jitter_hi, size=2)
        dx = dx * (1 - alpha) + alpha * (float(slope[p, 0]) + jx)
        dy = dy * (1 - alpha) + alpha * (float(slope[p, 1]) + jy)

        step = max(1.0, abs(dx), abs(dy))
        x -= options.max_step * dx / step
        y -= options.max_step * dy / step

        river.cells.append((ix, iy))
        water[p] += int(step)
        if int(x) == ix and int(y) == iy:
            river.end = RiverEnd.STUCK
            break
        altitude[p] -= int(step)

    return river


def carve_rivers(
    state: TerrainState,
    rng: np.random.Generator,
    attempts: int,
    options: Optional[RiverOptions] = None,
) -> List[River]:
    """
    Try ``attempts`` random river sources and carve the qualifying ones.

    A source qualifies when its altitude exceeds ``seed_min_altitude`` and
    ``slope.x + slope.y`` exceeds ``seed_min_slope_sum``. All rivers of the
    batch use the slope field computed before the batch; it is invalidated
    once the batch is done.
    """
    options = options or RiverOptions()
    state.require_slope()

    rivers = []
    for _ in range(attempts):
        x = int(rng.integers(state.width))
        y = int(rng.integers(state.height))
        sx, sy = state.slope_dir[x, y]
        if state.altitude[x, y] > options.seed_min_altitude and (
            sx + sy
        ) > options.seed_min_slope_sum:
            rivers.append(carve_river(state, x, y, rng, options))

    if rivers:
        state.invalidate_slope()

    logger.debug(
        "River batch carved",
        attempts=attempts,
        rivers=len(rivers),
        mean_length=float(np.mean([r.steps for r in rivers])) if rivers else 0.0,
    )

    return rivers
