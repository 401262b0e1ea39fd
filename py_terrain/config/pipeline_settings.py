"""
Configuration for the terrain generation pipeline.

This module defines every count, range and threshold of the generation
schedule, with validation rules that are checked once when the
configuration is built rather than during the run.
"""

from typing import Tuple

from pydantic import BaseModel, Field, model_validator


class VolcanoSettings(BaseModel):
    """Settings for the initial volcanic uplift."""

    count: int = Field(default=1000, ge=0, description="Number of volcanoes to place")
    height_range: Tuple[int, int] = Field(
        default=(300, 1300), description="Half-open range of peak heights"
    )
    cap: float = Field(default=1000.0, gt=0, description="Maximum contribution of one cone")
    slope_scale: float = Field(
        default=15000.0,
        gt=0,
        description="Height lost per cell of radius is slope_scale / width",
    )
    spread: float = Field(
        default=0.4,
        ge=0,
        le=0.5,
        description="Fraction of the map size the centre offset is scaled by",
    )

    @model_validator(mode="after")
    def _check_range(self):
        low, high = self.height_range
        if low <= 0 or high <= low:
            raise ValueError(f"height_range must satisfy 0 < low < high, got {self.height_range}")
        return self


class NoiseSettings(BaseModel):
    """Settings for the noise / redistribution warm-up."""

    iterations: int = Field(default=10, ge=0, description="Noise -> slope -> flow repetitions")
    low: int = Field(default=0, ge=0, description="Smallest noise increment")
    high: int = Field(default=9, ge=0, description="Largest noise increment (inclusive)")

    @model_validator(mode="after")
    def _check_range(self):
        if self.high < self.low:
            raise ValueError(f"noise high ({self.high}) is below low ({self.low})")
        return self


class FlowSettings(BaseModel):
    """Settings for global water redistribution."""

    ocean_altitude: int = Field(default=6 * 64, ge=0, description="Sink threshold (inclusive)")
    max_step: float = Field(default=2.0, gt=0, description="Maximum displacement per pass, in cells")
    max_change: int = Field(default=100, ge=0, description="Altitude moved out of one cell at most")


class RiverSettings(BaseModel):
    """Settings for particle river carving."""

    attempts_per_cycle: int = Field(default=300, ge=0, description="Random sources tried per cycle")
    min_altitude: int = Field(default=1000, description="Sources must be higher than this")
    min_slope_sum: float = Field(
        default=-10.0, description="Sources need slope.x + slope.y above this"
    )
    max_steps: int = Field(default=1000, gt=0, description="Iteration cap for one droplet")
    alpha: float = Field(default=0.2, gt=0, le=1, description="Velocity smoothing factor")
    ocean_range: Tuple[int, int] = Field(
        default=(4 * 64, 24 * 64), description="Half-open range of per-river ocean thresholds"
    )
    jitter_range: Tuple[int, int] = Field(
        default=(-50, 50), description="Half-open range of lateral jitter"
    )
    max_step: float = Field(default=1.0, gt=0, description="Maximum displacement per step, in cells")

    @model_validator(mode="after")
    def _check_ranges(self):
        for name in ("ocean_range", "jitter_range"):
            low, high = getattr(self, name)
            if high <= low:
                raise ValueError(f"{name} must satisfy low < high, got {(low, high)}")
        return self


class PipelineConfig(BaseModel):
    """Main pipeline configuration."""

    # Grid
    width: int = Field(default=1024, gt=0, description="Map width in cells")
    height: int = Field(default=1024, gt=0, description="Map height in cells")
    border: int = Field(default=2, ge=1, description="Border padding in cells")
    base_altitude: int = Field(default=100, description="Initial altitude and border sentinel")

    # Schedule
    cycles: int = Field(default=100, ge=0, description="Outer river / erosion cycles")
    unconsolidated_cycles: int = Field(
        default=3,
        ge=0,
        description="Final cycles that keep their water instead of settling it into land",
    )

    volcanoes: VolcanoSettings = Field(default_factory=VolcanoSettings)
    noise: NoiseSettings = Field(default_factory=NoiseSettings)
    flow: FlowSettings = Field(default_factory=FlowSettings)
    rivers: RiverSettings = Field(default_factory=RiverSettings)

    @model_validator(mode="after")
    def _check_displacement(self):
        if self.flow.max_step > self.border:
            raise ValueError(
                f"flow.max_step ({self.flow.max_step}) exceeds border ({self.border})"
            )
        if self.rivers.max_step > self.border:
            raise ValueError(
                f"rivers.max_step ({self.rivers.max_step}) exceeds border ({self.border})"
            )
        if self.unconsolidated_cycles > self.cycles:
            raise ValueError(
                f"unconsolidated_cycles ({self.unconsolidated_cycles}) exceeds cycles ({self.cycles})"
            )
        return self

    @property
    def volcano_slope(self) -> float:
        return self.volcanoes.slope_scale / self.width


def default_pipeline_config() -> PipelineConfig:
    """Full-size schedule: 1024x1024, 1000 volcanoes, 100 cycles."""
    return PipelineConfig()


def small_pipeline_config() -> PipelineConfig:
    """A quick 128x128 schedule with proportionally fewer features."""
    return PipelineConfig(
        width=128,
        height=128,
        cycles=12,
        volcanoes=VolcanoSettings(count=60),
        noise=NoiseSettings(iterations=4),
        rivers=RiverSettings(attempts_per_cycle=40, max_steps=300),
    )


PRESETS = {
    "default": default_pipeline_config,
    "small": small_pipeline_config,
}


def get_pipeline_config(name: str) -> PipelineConfig:
    """Look up a preset by name."""
    try:
        return PRESETS[name]()
    except KeyError:
        raise ValueError(f"Unknown pipeline preset: {name}") from None
