"""
Data loaders package.
"""

from loaders.raw import RawVolumeLoader, decode_samples, apply_sample_transforms

__all__ = [
    'RawVolumeLoader',
    'decode_samples',
    'apply_sample_transforms',
]
