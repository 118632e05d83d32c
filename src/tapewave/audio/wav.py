"""
WAV file output for rendered pulse trains.
"""

from pathlib import Path
from typing import Union
import logging

import numpy as np
import soundfile as sf

logger = logging.getLogger(__name__)


def write_wav(path: Union[str, Path], samples: np.ndarray, sample_rate: int) -> int:
    """
    Write mono samples to a 16-bit PCM WAV file.

    Args:
        path: Output file path
        samples: float samples in [-1.0, 1.0]
        sample_rate: Sample rate in Hz

    Returns:
        Number of frames written
    """
    path = Path(path)
    sf.write(str(path), np.asarray(samples, dtype=np.float32), sample_rate,
             subtype="PCM_16", format="WAV")
    logger.debug(f"Wrote {len(samples)} frames at {sample_rate} Hz to {path}")
    return len(samples)
