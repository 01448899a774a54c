"""
Data Transfer Objects (DTOs) for the slicing pipeline.

Design rules
------------
* DTOs are immutable (frozen=True); the CLI builds a new DTO and *pushes* it
  to the pipeline.
* ``from_dict`` / ``from_yaml`` / ``from_json`` keep deserialisation in one
  place, ``validate`` is the single gate for configuration errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Dict, Any, Sequence, Union

from config import (
    DEFAULT_INVERT,
    DEFAULT_LOG_REPEATS,
    DEFAULT_PERMUTATION,
    EXPORT_MAX_WORKERS,
)
from core.errors import ConfigurationError
from core.permutation import Permutation


def parse_dimensions(value: Union[str, Sequence[Any]]) -> Tuple[int, int, int]:
    """
    Parse a ``"W,H,D"`` string (or a 3-item sequence) into three ints.

    Raises:
        ConfigurationError: if there are not exactly three integer components.
    """
    parts = value.split(",") if isinstance(value, str) else list(value)
    if len(parts) != 3:
        raise ConfigurationError(
            f"Dimensions must have exactly 3 numbers (got {value!r}). "
            "Do you have 2 commas and no spaces?"
        )
    dims = []
    for axis, part in enumerate(parts, start=1):
        try:
            dims.append(int(str(part).strip()))
        except ValueError:
            raise ConfigurationError(f"Error parsing dimension {axis}: {part!r}") from None
    return (dims[0], dims[1], dims[2])


def _flag(d: Dict[str, Any], key: str, default: bool) -> bool:
    value = d.get(key, default)
    if not isinstance(value, bool):
        raise ConfigurationError(f"{key} must be true or false, got {value!r}.")
    return value


def _count(d: Dict[str, Any], key: str, default: int) -> int:
    value = d.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{key} must be an integer, got {value!r}.")
    return value


# ---------------------------------------------------------------------------
# Slice export DTO
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SliceExportDTO:
    """
    Immutable configuration for one raw-volume-to-archive run.

    Used by the CLI and by unit tests that call the pipeline directly.
    """

    # Input
    input_path:   str                   = ""
    dimensions:   Tuple[int, int, int]  = (0, 0, 0)   # width, height, depth

    # Sample transforms
    invert:       bool                  = DEFAULT_INVERT
    log_repeats:  int                   = DEFAULT_LOG_REPEATS

    # Output
    output_path:  str                   = ""
    permutation:  int                   = DEFAULT_PERMUTATION
    max_workers:  int                   = EXPORT_MAX_WORKERS

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, require_input: bool = True, require_output: bool = True) -> "SliceExportDTO":
        """
        Check the fields a run needs; returns self so calls can be chained.

        ``require_input=False`` skips input path and dimensions (preloaded
        volume), ``require_output=False`` skips the output path.
        """
        if require_input:
            if not self.input_path:
                raise ConfigurationError("Input path is required.")
            if len(self.dimensions) != 3 or any(int(v) <= 0 for v in self.dimensions):
                raise ConfigurationError(
                    f"Dimensions must be three positive integers, got {self.dimensions!r}."
                )
        if require_output and not self.output_path:
            raise ConfigurationError("Output path is required.")
        if int(self.log_repeats) < 0:
            raise ConfigurationError(f"Log repeat count must be >= 0, got {self.log_repeats}.")
        if int(self.max_workers) < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {self.max_workers}.")
        Permutation.from_code(self.permutation)
        return self

    @property
    def permutation_enum(self) -> Permutation:
        return Permutation.from_code(self.permutation)

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "SliceExportDTO":
        if not isinstance(d, dict):
            raise ConfigurationError(f"Config must be a mapping, got {type(d).__name__}.")
        dims_raw = d.get("dimensions", (0, 0, 0))
        try:
            return SliceExportDTO(
                input_path   = str(d.get("input_path",  "") or ""),
                dimensions   = parse_dimensions(dims_raw),
                invert       = _flag(d, "invert", DEFAULT_INVERT),
                log_repeats  = _count(d, "log_repeats", DEFAULT_LOG_REPEATS),
                output_path  = str(d.get("output_path", "") or ""),
                permutation  = int(Permutation.from_code(d.get("permutation", DEFAULT_PERMUTATION))),
                max_workers  = _count(d, "max_workers", EXPORT_MAX_WORKERS),
            )
        except ConfigurationError:
            raise
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid configuration value: {exc}") from exc

    @staticmethod
    def from_yaml(path: str) -> "SliceExportDTO":
        """Load config from a YAML file."""
        import yaml
        with open(path, encoding="utf-8") as fh:
            try:
                d = yaml.safe_load(fh)
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Cannot parse config file {path}: {exc}") from exc
        return SliceExportDTO.from_dict(d or {})

    @staticmethod
    def from_json(path: str) -> "SliceExportDTO":
        """Load config from a JSON file."""
        import json
        with open(path, encoding="utf-8") as fh:
            try:
                d = json.load(fh)
            except json.JSONDecodeError as exc:
                raise ConfigurationError(f"Cannot parse config file {path}: {exc}") from exc
        return SliceExportDTO.from_dict(d or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_path":  self.input_path,
            "dimensions":  list(self.dimensions),
            "invert":      self.invert,
            "log_repeats": self.log_repeats,
            "output_path": self.output_path,
            "permutation": self.permutation,
            "max_workers": self.max_workers,
        }
