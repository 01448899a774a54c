"""
Core data structures and abstract base classes.
"""

import numpy as np
from dataclasses import dataclass, field
from abc import ABC, abstractmethod
from typing import Tuple, Dict, Any, Optional, Callable

from core.errors import FormatError


@dataclass
class VolumeData:
    """
    Flat float32 sample sequence plus its declared (width, height, depth).

    Samples are stored with x fastest and depth slowest, so the canonical
    flat index of voxel (x, y, z) is ``z*width*height + y*width + x``.

    Attributes:
        raw_data (np.ndarray): 1D float32 sample array.
        dimensions (Tuple[int, int, int]): Declared (width, height, depth).
        metadata (Dict[str, Any]): Load parameters and source information.
    """
    raw_data: np.ndarray
    dimensions: Tuple[int, int, int]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        width, height, depth = (int(v) for v in self.dimensions)
        self.dimensions = (width, height, depth)
        expected = width * height * depth
        if self.raw_data.size != expected:
            raise FormatError(
                f"Volume holds {self.raw_data.size} samples but dimensions "
                f"{width}x{height}x{depth} require {expected}."
            )

    @property
    def sample_count(self) -> int:
        return int(self.raw_data.size)

    def as_array(self) -> np.ndarray:
        """Return a (depth, height, width) view of the samples without copying."""
        width, height, depth = self.dimensions
        return self.raw_data.reshape((depth, height, width))


class BaseLoader(ABC):
    """Abstract base class for data acquisition strategies."""

    @abstractmethod
    def load(self, source: str, callback: Optional[Callable[[int, str], None]] = None) -> VolumeData:
        """
        Load data from a source path.

        Args:
            source (str): Path to file.
            callback: Optional progress callback (percent, message).

        Returns:
            VolumeData: Loaded data object.
        """
        pass
