"""
Shared utilities.
"""

from .logging_setup import configure_logging
from .random import create_rng

__all__ = ['configure_logging', 'create_rng']
