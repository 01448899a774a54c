"""Global intensity range and 8-bit normalization."""

import logging
from typing import NamedTuple

import numpy as np

from core.errors import EmptyVolumeError, NumericError

logger = logging.getLogger(__name__)

UINT8_MAX = 255


class GlobalRange(NamedTuple):
    """(minimum, maximum) over every sample of a volume."""
    minimum: float
    maximum: float

    @property
    def span(self) -> float:
        return self.maximum - self.minimum

    @property
    def is_degenerate(self) -> bool:
        return self.maximum == self.minimum


def compute_global_range(samples: np.ndarray) -> GlobalRange:
    """
    Reduce the samples to their (min, max) pair.

    Both bounds are actual sample values.

    Raises:
        EmptyVolumeError: no samples.
        NumericError: any sample is NaN or infinite.
    """
    arr = np.asarray(samples).ravel()
    if arr.size == 0:
        raise EmptyVolumeError("Cannot compute the intensity range of an empty volume.")

    finite = np.isfinite(arr)
    if not finite.all():
        bad = int(arr.size - np.count_nonzero(finite))
        raise NumericError(
            f"{bad} of {arr.size} samples are not finite (NaN or inf); "
            "check the invert/log settings against the data range."
        )

    result = GlobalRange(float(arr.min()), float(arr.max()))
    logger.info("Min: %s", result.minimum)
    logger.info("Max: %s", result.maximum)
    return result


def normalize_to_uint8(values: np.ndarray, global_range: GlobalRange) -> np.ndarray:
    """
    Map samples onto 0..255 with ``trunc((v - min) / (max - min) * 255)``.

    Arithmetic is float32 throughout, so bucket boundaries land where a
    float32 raw pipeline puts them. The fraction is truncated, not rounded,
    so only the maximum itself reaches 255. A degenerate range (max == min)
    maps every sample to 0. Values are expected to be finite and inside
    ``global_range``; anything outside is clipped.
    """
    arr = np.asarray(values)
    if global_range.is_degenerate:
        return np.zeros(arr.shape, dtype=np.uint8)

    lo = np.float32(global_range.minimum)
    span = np.float32(global_range.maximum) - lo
    with np.errstate(over="ignore", invalid="ignore"):
        scaled = (arr.astype(np.float32) - lo) / span * np.float32(UINT8_MAX)
    return np.clip(scaled, 0, UINT8_MAX).astype(np.uint8)
