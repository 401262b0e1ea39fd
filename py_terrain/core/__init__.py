"""
Core terrain simulation functionality.
"""

from .layout import Layout, Grid
from .terrain import TerrainState
from .errors import TerrainError, StaleSlopeError
from .relief import place_volcano, add_relief_noise, calculate_slope, soil_erosion, water_to_land
from .hydrology import (FlowOptions, RiverOptions, River, RiverEnd, compute_flow_deltas,
                        water_flow_everywhere, carve_river, carve_rivers)
from .pipeline import TerrainPipeline, PipelineResult, PipelineStats, generate_terrain

__all__ = ['Layout', 'Grid', 'TerrainState', 'TerrainError', 'StaleSlopeError',
           'place_volcano', 'add_relief_noise', 'calculate_slope', 'soil_erosion', 'water_to_land',
           'FlowOptions', 'RiverOptions', 'River', 'RiverEnd', 'compute_flow_deltas',
           'water_flow_everywhere', 'carve_river', 'carve_rivers',
           'TerrainPipeline', 'PipelineResult', 'PipelineStats', 'generate_terrain']
