"""
Axis permutations used to cut a volume into slices.

Convention:
- Raw sample arrays use index order (z, y, x), i.e. shape (depth, height, width)
- Axis labels: 1 = x (width), 2 = y (height), 3 = z (depth)
- A permutation code lists the labels used as (column, row, slice), so
  312 renders z along image columns, x along image rows and steps through y
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Callable, Dict, Tuple

import numpy as np

from core.errors import InvalidPermutationError


Dimensions = Tuple[int, int, int]

# Label -> axis of a (depth, height, width) array
_LABEL_TO_ARRAY_AXIS = {1: 2, 2: 1, 3: 0}


class Permutation(IntEnum):
    """The six output axis orders, keyed by their three digit code."""

    XYZ = 123
    XZY = 132
    YXZ = 213
    YZX = 231
    ZXY = 312
    ZYX = 321

    @classmethod
    def from_code(cls, code: Any) -> "Permutation":
        """Resolve an int or digit string (e.g. ``"312"``) into a member."""
        if isinstance(code, cls):
            return code
        if isinstance(code, bool):
            raise InvalidPermutationError(code)
        try:
            return cls(int(str(code).strip()))
        except ValueError:
            raise InvalidPermutationError(code) from None

    @property
    def axes(self) -> Tuple[int, int, int]:
        """Axis labels playing the (column, row, slice) roles."""
        digits = str(int(self))
        return (int(digits[0]), int(digits[1]), int(digits[2]))

    @property
    def inverse(self) -> "Permutation":
        """
        Permutation that undoes this one.

        ``p.inverse.gather(p.gather(vol))`` returns ``vol``. 231 and 312 are
        each other's inverse; the remaining four codes are self-inverse.
        """
        axes = self.axes
        return Permutation(int("".join(str(axes.index(label) + 1) for label in (1, 2, 3))))

    def lengths(self, dimensions: Dimensions) -> Dimensions:
        """
        Map canonical (width, height, depth) to (length1, length2, length3).

        length1 x length2 is the raster size, length3 the number of slices.
        """
        by_label = dict(zip((1, 2, 3), (int(v) for v in dimensions)))
        col, row, slc = self.axes
        return (by_label[col], by_label[row], by_label[slc])

    def flat_index(self, x, y, d, dimensions: Dimensions):
        """
        Canonical flat sample index for raster pixel (x, y) of slice d.

        Works element-wise on numpy integer arrays as well as on ints.
        """
        width, height, _ = dimensions
        return _GATHER_FORMULAS[self](x, y, d, int(width), int(height))

    def gather(self, volume: np.ndarray) -> np.ndarray:
        """
        Reorder a (depth, height, width) array into (length3, length2, length1).

        Returns a view; ``gather(volume)[d]`` is slice d with rows along y and
        columns along x of the raster.
        """
        arr = np.asarray(volume)
        if arr.ndim != 3:
            raise ValueError(f"Expected 3D volume, got shape={arr.shape}")
        col, row, slc = self.axes
        return np.transpose(
            arr,
            (_LABEL_TO_ARRAY_AXIS[slc], _LABEL_TO_ARRAY_AXIS[row], _LABEL_TO_ARRAY_AXIS[col]),
        )


# (x, y, d, width, height) -> d_c*width*height + y_c*width + x_c
_GATHER_FORMULAS: Dict[Permutation, Callable[..., Any]] = {
    Permutation.XYZ: lambda x, y, d, w, h: d * w * h + y * w + x,
    Permutation.XZY: lambda x, y, d, w, h: y * w * h + d * w + x,
    Permutation.YXZ: lambda x, y, d, w, h: d * w * h + x * w + y,
    Permutation.YZX: lambda x, y, d, w, h: y * w * h + x * w + d,
    Permutation.ZXY: lambda x, y, d, w, h: x * w * h + d * w + y,
    Permutation.ZYX: lambda x, y, d, w, h: x * w * h + y * w + d,
}

VALID_PERMUTATION_CODES: Tuple[int, ...] = tuple(int(p) for p in Permutation)


__all__ = [
    "Dimensions",
    "Permutation",
    "VALID_PERMUTATION_CODES",
]
