"""
Terrain generation pipeline.

Runs the fixed generation schedule:
1. Volcanic uplift scattered around the map centre
2. Warm-up: noise, slope and global water redistribution, repeated
3. One erosion pass
4. Cycles of slope, river carving, water consolidation and erosion
5. A final erosion pass and slope recomputation

The shape of the schedule (smoothing before carving, consolidation on all
but the last few cycles) is fixed; every count, range and threshold comes
from a PipelineConfig.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, Optional

import numpy as np
import structlog

from ..config.pipeline_settings import PipelineConfig
from ..utils.random import create_rng
from .hydrology import FlowOptions, RiverOptions, carve_rivers, water_flow_everywhere
from .layout import Layout
from .relief import (
    add_relief_noise,
    calculate_slope,
    place_volcano,
    soil_erosion,
    water_to_land,
)
from .terrain import TerrainState

logger = structlog.get_logger()


@dataclass
class PipelineStats:
    """Counters collected during one run."""

    volcanoes: int = 0
    river_attempts: int = 0
    rivers: int = 0
    river_steps: int = 0
    river_ends: Dict[str, int] = field(default_factory=dict)
    erosion_passes: int = 0
    elapsed_seconds: float = 0.0


@dataclass
class PipelineResult:
    """Final terrain and statistics of a run."""

    state: TerrainState
    stats: PipelineStats


class TerrainPipeline:
    """Drives the generation passes over one TerrainState."""

    def __init__(
        self,
        config: PipelineConfig,
        rng: np.random.Generator,
        state: Optional[TerrainState] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Validated schedule configuration
            rng: Random source consumed by every step
            state: Optional pre-built terrain; must match the configured layout
        """
        self.config = config
        self.rng = rng

        layout = Layout(config.width, config.height, config.border)
        if state is None:
            state = TerrainState(layout, config.base_altitude)
        elif state.layout != layout:
            raise ValueError(
                f"Terrain layout {state.layout} does not match configuration {layout}"
            )
        self.state = state

        self.flow_options = FlowOptions(
            ocean_altitude=config.flow.ocean_altitude,
            max_step=config.flow.max_step,
            max_change=config.flow.max_change,
        )
        self.river_options = RiverOptions(
            max_steps=config.rivers.max_steps,
            alpha=config.rivers.alpha,
            ocean_range=config.rivers.ocean_range,
            jitter_range=config.rivers.jitter_range,
            max_step=config.rivers.max_step,
            seed_min_altitude=config.rivers.min_altitude,
            seed_min_slope_sum=config.rivers.min_slope_sum,
        )
        self.stats = PipelineStats()

    def place_volcanoes(self) -> None:
        """Scatter the configured number of cones around the map centre."""
        cfg = self.config.volcanoes
        width, height = self.config.width, self.config.height
        slope = self.config.volcano_slope

        for _ in range(cfg.count):
            dx = int(self.rng.integers(width)) - int(self.rng.integers(width))
            dy = int(self.rng.integers(height)) - int(self.rng.integers(height))
            x = width // 2 + int(dx * cfg.spread)
            y = height // 2 + int(dy * cfg.spread)
            peak = int(self.rng.integers(*cfg.height_range))
            place_volcano(self.state, x, y, peak, cfg.cap, slope)

        self.stats.volcanoes += cfg.count
        logger.info("Volcanoes placed", count=cfg.count, **self.state.summary())

    def warm_up(self) -> None:
        """Noise, slope and global redistribution, repeated."""
        noise = self.config.noise
        for _ in range(noise.iterations):
            add_relief_noise(self.state, self.rng, noise.low, noise.high)
            calculate_slope(self.state)
            water_flow_everywhere(self.state, self.flow_options)

        self.erode()
        logger.info("Warm-up completed", iterations=noise.iterations, **self.state.summary())

    def erode(self) -> None:
        soil_erosion(self.state)
        self.stats.erosion_passes += 1

    def run_cycle(self, index: int) -> None:
        """One slope / rivers / consolidation / erosion cycle."""
        calculate_slope(self.state)

        attempts = self.config.rivers.attempts_per_cycle
        rivers = carve_rivers(self.state, self.rng, attempts, self.river_options)

        self.stats.river_attempts += attempts
        self.stats.rivers += len(rivers)
        for river in rivers:
            self.stats.river_steps += river.steps
            key = river.end.value
            self.stats.river_ends[key] = self.stats.river_ends.get(key, 0) + 1

        if index < self.config.cycles - self.config.unconsolidated_cycles:
            water_to_land(self.state)
        self.erode()

    def finish(self) -> None:
        self.erode()
        calculate_slope(self.state)

    def run(self) -> PipelineResult:
        """Run the whole schedule and return the final terrain."""
        start = time.time()
        logger.info(
            "Starting terrain generation",
            width=self.config.width,
            height=self.config.height,
            border=self.config.border,
            cycles=self.config.cycles,
        )

        self.place_volcanoes()
        self.warm_up()

        for j in range(self.config.cycles):
            self.run_cycle(j)
            logger.debug("Cycle completed", cycle=j, rivers=self.stats.rivers)

        self.finish()

        self.stats.elapsed_seconds = time.time() - start
        logger.info(
            "Terrain generation completed",
            rivers=self.stats.rivers,
            river_ends=self.stats.river_ends,
            elapsed=round(self.stats.elapsed_seconds, 2),
            **self.state.summary(),
        )

        return PipelineResult(state=self.state, stats=self.stats)


def generate_terrain(
    config: Optional[PipelineConfig] = None, rng: Optional[np.random.Generator] = None
) -> PipelineResult:
    """Build a pipeline and run it; without a generator, OS entropy seeds one."""
    config = config or PipelineConfig()
    if rng is None:
        rng = create_rng()
    return TerrainPipeline(config, rng).run()
