"""
Random number generation utilities.

Every generation step draws from one explicit ``numpy.random.Generator``
that is created here and passed down, so a run can be reproduced from its
seed. There is no module-level generator.
"""

from typing import Optional

import numpy as np
import structlog

logger = structlog.get_logger()


def create_rng(seed: Optional[int] = None) -> np.random.Generator:
    """
    Create the generator for one run.

    With no seed, fresh entropy is drawn from the operating system. Any
    failure to obtain it propagates; there is no fallback to a fixed seed.

    Args:
        seed: Seed for a reproducible run

    Returns:
        A PCG64-backed Generator
    """
    if seed is None:
        sequence = np.random.SeedSequence()
        logger.info("Seeded random source from OS entropy", entropy=str(sequence.entropy))
    else:
        if seed < 0:
            raise ValueError(f"Seed must be non-negative, got {seed}")
        sequence = np.random.SeedSequence(seed)
        logger.info("Seeded random source", seed=seed)

    return np.random.Generator(np.random.PCG64(sequence))
