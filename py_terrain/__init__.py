"""
Volcanic terrain synthesis with diffusion erosion and water transport.
"""

__version__ = "0.1.0"
