"""
Exception hierarchy for the slicing pipeline.

I/O failures are not wrapped: they surface as the builtin ``OSError`` family.
"""


class SliceStackError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(SliceStackError, ValueError):
    """Missing or invalid run configuration (CLI flags, config file values)."""


class InvalidPermutationError(ConfigurationError):
    """Permutation code is not one of 123, 132, 213, 231, 312, 321."""

    def __init__(self, code) -> None:
        self.code = code
        super().__init__(
            f"Invalid permutation {code!r}. Must be a three digit number containing 1, 2, and 3."
        )


class FormatError(SliceStackError, ValueError):
    """Input bytes are inconsistent with the float32 sample layout or declared dimensions."""


class NumericError(SliceStackError, ArithmeticError):
    """Sample values cannot be normalized (non-finite data)."""


class EmptyVolumeError(NumericError):
    """Range requested for a volume without samples."""


__all__ = [
    "SliceStackError",
    "ConfigurationError",
    "InvalidPermutationError",
    "FormatError",
    "NumericError",
    "EmptyVolumeError",
]
