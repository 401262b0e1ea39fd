"""
Terrain state: the three co-located grids a simulation run mutates.
"""

from typing import Optional

import numpy as np
import structlog

from .errors import StaleSlopeError
from .layout import Grid, Layout

logger = structlog.get_logger()

# Initial altitude of every cell; also the border sentinel for erosion.
DEFAULT_BASE_ALTITUDE = 100


class TerrainState:
    """
    Altitude, slope direction and water depth over one shared Layout.

    ``slope_dir`` is derived from altitude + water. It is only valid right
    after ``calculate_slope``; every pass that changes altitude or water
    calls ``invalidate_slope`` and every consumer calls ``require_slope``.
    """

    def __init__(self, layout: Layout, base_altitude: int = DEFAULT_BASE_ALTITUDE):
        """
        Allocate all grids up front.

        Args:
            layout: Map dimensions and border width
            base_altitude: Initial altitude everywhere, border included
        """
        self.layout = layout
        self.base_altitude = base_altitude

        self.altitude = Grid(layout, base_altitude, dtype=np.int32)
        self.slope_dir = Grid(layout, (0.0, 0.0), dtype=np.float32, components=2)
        self.water_depth = Grid(layout, 0, dtype=np.int32)

        self.slope_valid = False

        logger.debug(
            "Terrain state allocated",
            width=layout.width,
            height=layout.height,
            border=layout.border,
            cells=layout.size(),
        )

    @classmethod
    def create(
        cls, width: int, height: int, border: int, base_altitude: Optional[int] = None
    ) -> "TerrainState":
        layout = Layout(width, height, border)
        if base_altitude is None:
            base_altitude = DEFAULT_BASE_ALTITUDE
        return cls(layout, base_altitude)

    @property
    def width(self) -> int:
        return self.layout.width

    @property
    def height(self) -> int:
        return self.layout.height

    def invalidate_slope(self) -> None:
        self.slope_valid = False

    def require_slope(self) -> None:
        if not self.slope_valid:
            raise StaleSlopeError(
                "slope_dir is stale; call calculate_slope() after changing the terrain"
            )

    def surface(self) -> np.ndarray:
        """Altitude plus water over the whole buffer, border included."""
        return self.altitude.array + self.water_depth.array

    def interior_altitude(self) -> np.ndarray:
        """Read-only (width, height) altitude array indexed [x, y]."""
        view = self.altitude.interior.view()
        view.flags.writeable = False
        return view

    def interior_water_depth(self) -> np.ndarray:
        """Read-only (width, height) water depth array indexed [x, y]."""
        view = self.water_depth.interior.view()
        view.flags.writeable = False
        return view

    def interior_slope(self) -> np.ndarray:
        """Read-only (width, height, 2) slope array; requires a fresh slope field."""
        self.require_slope()
        view = self.slope_dir.interior.view()
        view.flags.writeable = False
        return view

    def summary(self) -> dict:
        """Basic statistics over the simulated domain."""
        alt = self.altitude.interior
        water = self.water_depth.interior
        return {
            "min_altitude": int(alt.min()),
            "max_altitude": int(alt.max()),
            "mean_altitude": float(alt.mean()),
            "wet_cells": int(np.count_nonzero(water > 0)),
            "total_water": int(water.sum(dtype=np.int64)),
        }
