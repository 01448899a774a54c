"""
Loader for headerless little-endian float32 volumes.

The whole file is read into memory; optional sign inversion and repeated
``ln(x + 1)`` compression are applied once at load time.
"""

import logging
import os
from typing import Callable, Optional, Tuple

import numpy as np

from config import SAMPLE_BYTES, SAMPLE_DTYPE, DEFAULT_INVERT, DEFAULT_LOG_REPEATS
from core import BaseLoader, VolumeData
from core.errors import ConfigurationError, FormatError

logger = logging.getLogger(__name__)


def decode_samples(raw: bytes) -> np.ndarray:
    """
    Decode raw bytes into a native float32 array.

    Raises:
        FormatError: if the byte count is not a multiple of the sample width.
    """
    if len(raw) % SAMPLE_BYTES != 0:
        raise FormatError(
            f"Input is {len(raw)} bytes, not a multiple of {SAMPLE_BYTES} "
            f"({len(raw) % SAMPLE_BYTES} trailing bytes)."
        )
    return np.frombuffer(raw, dtype=SAMPLE_DTYPE).astype(np.float32)


def apply_sample_transforms(samples: np.ndarray, invert: bool = False, log_repeats: int = 0) -> np.ndarray:
    """
    Negate (optional) then apply ``amplitude = ln(amplitude + 1)`` ``log_repeats`` times.

    The shift happens in float32 and the logarithm in float64, rounding back
    to float32 after every pass. Values <= -1 become -inf/NaN here and are
    rejected later by the range reducer.
    """
    if log_repeats < 0:
        raise ConfigurationError(f"Log repeat count must be >= 0, got {log_repeats}.")

    out = np.array(samples, dtype=np.float32, copy=True)
    if invert:
        np.negative(out, out=out)

    with np.errstate(divide="ignore", invalid="ignore"):
        for _ in range(log_repeats):
            shifted = (out + np.float32(1.0)).astype(np.float64)
            out = np.log(shifted).astype(np.float32)
    return out


class RawVolumeLoader(BaseLoader):
    """
    Raw float32 volume loader.

    Args:
        dimensions: Declared (width, height, depth); the file must hold
            exactly width*height*depth samples.
        invert: Multiply every sample by -1 before the log transform.
        log_repeats: Number of ``ln(x + 1)`` passes.
    """

    def __init__(
        self,
        dimensions: Tuple[int, int, int],
        invert: bool = DEFAULT_INVERT,
        log_repeats: int = DEFAULT_LOG_REPEATS,
    ):
        if len(dimensions) != 3 or any(int(v) <= 0 for v in dimensions):
            raise ConfigurationError(f"Dimensions must be three positive integers, got {dimensions!r}.")
        if int(log_repeats) < 0:
            raise ConfigurationError(f"Log repeat count must be >= 0, got {log_repeats}.")
        self.dimensions = tuple(int(v) for v in dimensions)
        self.invert = bool(invert)
        self.log_repeats = int(log_repeats)

    @property
    def expected_bytes(self) -> int:
        width, height, depth = self.dimensions
        return width * height * depth * SAMPLE_BYTES

    def load(self, source: str, callback: Optional[Callable[[int, str], None]] = None) -> VolumeData:
        logger.info("Loading data into memory: %s", source)
        if callback:
            callback(0, "Reading raw file...")

        with open(source, "rb") as fh:
            raw = fh.read()

        if callback:
            callback(40, "Decoding float32 samples...")
        samples = decode_samples(raw)

        if len(raw) != self.expected_bytes:
            width, height, depth = self.dimensions
            raise FormatError(
                f"{os.path.basename(source)} is {len(raw)} bytes but dimensions "
                f"{width}x{height}x{depth} need {self.expected_bytes} bytes."
            )

        if self.invert or self.log_repeats:
            if callback:
                callback(60, f"Transforming samples (invert={self.invert}, log={self.log_repeats})...")
            samples = apply_sample_transforms(samples, self.invert, self.log_repeats)

        if callback:
            callback(100, "Load complete.")
        logger.info("Loaded %d samples, dimensions %s", samples.size, self.dimensions)

        return VolumeData(
            raw_data=samples,
            dimensions=self.dimensions,
            metadata={
                "Source": os.path.abspath(source),
                "Type": "Raw float32 (little-endian)",
                "Inverted": self.invert,
                "LogRepeats": self.log_repeats,
            },
        )
