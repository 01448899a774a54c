"""
PNG slice-stack exporter.

Cuts a volume along the slice axis of a permutation, normalizes every slice
to 8-bit grayscale with one global range and writes the PNGs as entries of a
zip archive, in ascending slice order.
"""

import concurrent.futures
import io
import logging
import os
import tempfile
import zipfile
from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Sequence, Tuple, Union

import numpy as np
from PIL import Image

from config import (
    ARCHIVE_COMPRESSION,
    ARCHIVE_TEMP_SUFFIX,
    DEFAULT_PERMUTATION,
    EXPORT_MAX_WORKERS,
    PNG_COMPRESS_LEVEL,
    SLICE_INDEX_MIN_WIDTH,
    SLICE_NAME_TEMPLATE,
)
from core import VolumeData
from core.errors import ConfigurationError
from core.permutation import Permutation
from processors.intensity import GlobalRange, compute_global_range, normalize_to_uint8

logger = logging.getLogger(__name__)

_ZIP_COMPRESSION = {
    "deflated": zipfile.ZIP_DEFLATED,
    "stored": zipfile.ZIP_STORED,
}


@dataclass(frozen=True)
class ExportResult:
    """Summary of a written archive."""
    path: str
    permutation: Permutation
    lengths: Tuple[int, int, int]    # (length1, length2, length3)
    entry_names: Tuple[str, ...]

    @property
    def slice_count(self) -> int:
        return len(self.entry_names)


def slice_entry_name(index: int, slice_count: int) -> str:
    """
    Archive entry name for slice ``index``, e.g. ``image.00007.png``.

    The index is zero padded to 5 digits, widened when ``slice_count`` needs more.
    """
    width = max(SLICE_INDEX_MIN_WIDTH, len(str(max(slice_count - 1, 0))))
    return SLICE_NAME_TEMPLATE.format(index=f"{index:0{width}d}")


def encode_png(raster: np.ndarray) -> bytes:
    """Encode a 2D uint8 array (rows, columns) as a single-channel PNG."""
    arr = np.ascontiguousarray(raster, dtype=np.uint8)
    if arr.ndim != 2:
        raise ValueError(f"Expected 2D raster, got shape={arr.shape}")
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format="PNG", compress_level=PNG_COMPRESS_LEVEL)
    return buf.getvalue()


def _remove_file(path: str) -> None:
    """Best-effort file removal with logging."""
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as exc:
        logger.warning("Failed to remove temporary archive %s: %s", path, exc)


class PngStackExporter:
    """
    Writes a VolumeData as a zip of grayscale PNG slices.

    Args:
        max_workers: Threads used to normalize and encode slices. Entries are
            always written in ascending slice order.
        compression: ``"deflated"`` or ``"stored"`` for the zip entries.
    """

    def __init__(self, max_workers: int = EXPORT_MAX_WORKERS, compression: str = ARCHIVE_COMPRESSION):
        if int(max_workers) < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {max_workers}.")
        if compression not in _ZIP_COMPRESSION:
            raise ConfigurationError(
                f"Unknown archive compression {compression!r}. Supported: {', '.join(_ZIP_COMPRESSION)}."
            )
        self.max_workers = int(max_workers)
        self.compression = compression

    @staticmethod
    def render_slice(view: np.ndarray, index: int, global_range: GlobalRange) -> np.ndarray:
        """Normalized uint8 raster of slice ``index`` from a gathered (l3, l2, l1) view."""
        return normalize_to_uint8(view[index], global_range)

    def _encode_slice(self, view: np.ndarray, index: int, global_range: GlobalRange) -> bytes:
        return encode_png(self.render_slice(view, index, global_range))

    def iter_encoded(
        self,
        view: np.ndarray,
        global_range: GlobalRange,
        names: Sequence[str],
    ) -> Iterator[Tuple[str, bytes]]:
        """
        Yield ``(entry_name, png_bytes)`` in ascending slice order.

        With several workers at most ``2 * max_workers`` slices are in flight.
        """
        if self.max_workers == 1:
            for index, name in enumerate(names):
                yield name, self._encode_slice(view, index, global_range)
            return

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            pending = deque()
            for index, name in enumerate(names):
                pending.append((name, executor.submit(self._encode_slice, view, index, global_range)))
                if len(pending) >= 2 * self.max_workers:
                    head_name, future = pending.popleft()
                    yield head_name, future.result()
            while pending:
                head_name, future = pending.popleft()
                yield head_name, future.result()

    def export(
        self,
        data: VolumeData,
        filepath: str,
        permutation: Union[int, Permutation] = DEFAULT_PERMUTATION,
        global_range: Optional[GlobalRange] = None,
        callback: Optional[Callable[[int, str], None]] = None,
    ) -> ExportResult:
        """
        Write every slice of ``data`` into a zip archive at ``filepath``.

        The archive is assembled in a temporary file beside the target and
        moved into place only once complete; on failure the target is left
        untouched and the temporary file removed.

        Args:
            data: Volume to slice.
            filepath: Destination archive path.
            permutation: Axis order code, see ``core.permutation``.
            global_range: Normalization range; computed from ``data`` if omitted.
            callback: Optional progress callback (percent, message).

        Returns:
            ExportResult: archive path, lengths and entry names in write order.
        """
        if data is None:
            raise ValueError("No data to export.")

        perm = Permutation.from_code(permutation)
        if global_range is None:
            global_range = compute_global_range(data.raw_data)
        if global_range.is_degenerate:
            logger.warning("Volume is constant (%s); every pixel is written as 0.", global_range.minimum)

        lengths = perm.lengths(data.dimensions)
        slice_count = lengths[2]
        names = tuple(slice_entry_name(d, slice_count) for d in range(slice_count))
        view = perm.gather(data.as_array())
        logger.info(
            "Processing %d slices of %dx%d (permutation %d)",
            slice_count, lengths[0], lengths[1], int(perm),
        )

        target = os.path.abspath(filepath)
        target_dir = os.path.dirname(target)
        os.makedirs(target_dir, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=target_dir, prefix=f".{os.path.basename(target)}.", suffix=ARCHIVE_TEMP_SUFFIX
        )
        os.close(fd)

        try:
            with zipfile.ZipFile(tmp_path, "w", compression=_ZIP_COMPRESSION[self.compression]) as zf:
                for written, (name, payload) in enumerate(self.iter_encoded(view, global_range, names), start=1):
                    zf.writestr(name, payload)
                    if callback:
                        callback(int(100 * written / slice_count), f"Wrote {name}")
            # mkstemp creates the file owner-only
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, target)
        except BaseException:
            _remove_file(tmp_path)
            raise

        logger.info("Archive saved to %s (%d entries)", target, slice_count)
        return ExportResult(path=target, permutation=perm, lengths=lengths, entry_names=names)
