"""
Configuration modules for terrain generation.
"""

from .config import Settings, settings
from .pipeline_settings import (
    FlowSettings,
    NoiseSettings,
    PipelineConfig,
    RiverSettings,
    VolcanoSettings,
    default_pipeline_config,
    get_pipeline_config,
    small_pipeline_config,
)

__all__ = ['Settings', 'settings', 'PipelineConfig', 'VolcanoSettings', 'NoiseSettings',
           'FlowSettings', 'RiverSettings', 'default_pipeline_config', 'small_pipeline_config',
           'get_pipeline_config']
