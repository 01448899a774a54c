"""
Sample processors.

Modules:
- intensity: Global (min, max) reduction and 8-bit normalization
"""

from processors.intensity import GlobalRange, compute_global_range, normalize_to_uint8

__all__ = [
    'GlobalRange',
    'compute_global_range',
    'normalize_to_uint8',
]
