"""
Core module containing base classes, data structures and the stage pipeline.
"""

from core.errors import (
    SliceStackError,
    ConfigurationError,
    InvalidPermutationError,
    FormatError,
    NumericError,
    EmptyVolumeError,
)
from core.base import VolumeData, BaseLoader
from core.permutation import Permutation, VALID_PERMUTATION_CODES
from core.dto import SliceExportDTO, parse_dimensions
from core.dag import DAGNode, SimpleDAGExecutor
from core.progress import (
    ProgressEvent,
    ProgressObserver,
    ProgressBus,
    StageProgressMapper,
    TerminalProgressObserver,
)
from core.pipeline import (
    PipelineStage,
    PIPELINE_STAGE_ORDER,
    resolve_pipeline_stages,
    build_slice_pipeline,
    run_slice_pipeline,
)

__all__ = [
    'SliceStackError', 'ConfigurationError', 'InvalidPermutationError',
    'FormatError', 'NumericError', 'EmptyVolumeError',
    'VolumeData', 'BaseLoader',
    'Permutation', 'VALID_PERMUTATION_CODES',
    'SliceExportDTO', 'parse_dimensions',
    'DAGNode', 'SimpleDAGExecutor',
    'ProgressEvent', 'ProgressObserver', 'ProgressBus', 'StageProgressMapper',
    'TerminalProgressObserver',
    'PipelineStage', 'PIPELINE_STAGE_ORDER', 'resolve_pipeline_stages',
    'build_slice_pipeline', 'run_slice_pipeline',
]
