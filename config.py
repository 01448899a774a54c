"""
Configuration constants for the Raw Volume Slicer.
All defaults and tunable parameters are centralized here.
"""

# ==========================================
# Input Settings
# ==========================================

# Raw samples are headerless little-endian IEEE-754 float32
SAMPLE_DTYPE = "<f4"
SAMPLE_BYTES = 4

DEFAULT_INVERT = False
DEFAULT_LOG_REPEATS = 0

# ==========================================
# Permutation Settings
# ==========================================

# Digits name the canonical axis used as (column, row, slice):
# 1 = x (width), 2 = y (height), 3 = z (depth)
DEFAULT_PERMUTATION = 123

# ==========================================
# Export Settings
# ==========================================

# Archive entry name; the index field is zero padded to at least this width
SLICE_NAME_TEMPLATE = "image.{index}.png"
SLICE_INDEX_MIN_WIDTH = 5

# Pillow PNG zlib level (0-9)
PNG_COMPRESS_LEVEL = 6

# zipfile compression for archive entries
ARCHIVE_COMPRESSION = "deflated"  # "deflated" | "stored"

# Temporary archive suffix used before atomic publish
ARCHIVE_TEMP_SUFFIX = ".partial"

# ==========================================
# Parallel Encoding
# ==========================================

# Threads used to encode slices (1 = sequential)
EXPORT_MAX_WORKERS = 1

# ==========================================
# Terminal Output
# ==========================================
PROGRESS_BAR_WIDTH = 30
LOG_FORMAT = "[%(name)s] %(levelname)s: %(message)s"
