"""
Stage pipeline shared by the CLI and tests.

load -> range -> slice
"""

from __future__ import annotations

from typing import Any, Callable, Literal, Optional

from core.base import VolumeData
from core.dag import DAGNode, SimpleDAGExecutor
from core.dto import SliceExportDTO
from core.progress import ProgressBus


PipelineStage = Literal["load", "range", "slice"]
PIPELINE_STAGE_ORDER: tuple[PipelineStage, ...] = ("load", "range", "slice")


def _noop_progress(_percent: int, _message: str) -> None:
    """Default no-op progress callback."""
    return


def resolve_pipeline_stages(target_stage: PipelineStage = "slice") -> tuple[PipelineStage, ...]:
    """
    Resolve the ordered list of stages required for a target stage.

    Example:
    - target_stage='range' -> ('load', 'range')
    - target_stage='slice' -> ('load', 'range', 'slice')
    """
    if target_stage not in PIPELINE_STAGE_ORDER:
        allowed = ", ".join(PIPELINE_STAGE_ORDER)
        raise ValueError(f"Unknown pipeline stage '{target_stage}'. Expected one of: {allowed}.")

    end_idx = PIPELINE_STAGE_ORDER.index(target_stage)
    return PIPELINE_STAGE_ORDER[: end_idx + 1]


def _stage_load(dto: SliceExportDTO, progress: Callable[[int, str], None]) -> VolumeData:
    """Read and transform the raw samples."""
    from loaders import RawVolumeLoader

    loader = RawVolumeLoader(dto.dimensions, invert=dto.invert, log_repeats=dto.log_repeats)
    return loader.load(dto.input_path, callback=progress)


def _stage_range(data: VolumeData, progress: Callable[[int, str], None]):
    """Compute the global (min, max) used for every slice."""
    from processors import compute_global_range

    progress(0, "Scanning intensity range...")
    global_range = compute_global_range(data.raw_data)
    progress(100, f"Range: [{global_range.minimum:.6g}, {global_range.maximum:.6g}]")
    return global_range


def _stage_slice(
    data: VolumeData,
    global_range: Any,
    dto: SliceExportDTO,
    progress: Callable[[int, str], None],
):
    """Slice, normalize, encode and archive."""
    from exporters import PngStackExporter

    exporter = PngStackExporter(max_workers=dto.max_workers)
    return exporter.export(
        data,
        dto.output_path,
        permutation=dto.permutation_enum,
        global_range=global_range,
        callback=progress,
    )


def build_slice_pipeline(
    dto: SliceExportDTO,
    *,
    input_data: Optional[VolumeData] = None,
    target_stage: PipelineStage = "slice",
    progress_bus: Optional[ProgressBus] = None,
    stage_progress_factory: Optional[Callable[[PipelineStage], Callable[[int, str], None]]] = None,
) -> SimpleDAGExecutor:
    """
    Build a DAG executor for the slicing pipeline.

    The configuration is validated here, so bad settings fail before any
    file is read or written.

    Args:
        dto: Run configuration.
        input_data: Optional preloaded volume. If provided, the load stage returns it.
        target_stage: Last stage to execute.
        progress_bus: Optional progress event bus.
        stage_progress_factory: Optional per-stage progress callback factory.
    """
    stages = resolve_pipeline_stages(target_stage=target_stage)
    dto.validate(require_input=input_data is None, require_output="slice" in stages)
    dag = SimpleDAGExecutor()

    def stage_progress(stage: PipelineStage) -> Callable[[int, str], None]:
        if stage_progress_factory is None:
            if progress_bus is None:
                return _noop_progress
            return progress_bus.stage_callback(stage)
        return stage_progress_factory(stage)

    dag.add(
        DAGNode(
            name="load",
            fn=lambda _deps: input_data if input_data is not None else _stage_load(dto, stage_progress("load")),
            depends_on=(),
        )
    )

    if "range" in stages:
        dag.add(
            DAGNode(
                name="range",
                fn=lambda deps: _stage_range(deps["load"], stage_progress("range")),
                depends_on=("load",),
            )
        )

    if "slice" in stages:
        dag.add(
            DAGNode(
                name="slice",
                fn=lambda deps: _stage_slice(deps["load"], deps["range"], dto, stage_progress("slice")),
                depends_on=("load", "range"),
            )
        )

    return dag


def run_slice_pipeline(
    dto: SliceExportDTO,
    *,
    input_data: Optional[VolumeData] = None,
    target_stage: PipelineStage = "slice",
    progress_bus: Optional[ProgressBus] = None,
    dag_progress: Optional[Callable[[int, str], None]] = None,
    stage_progress_factory: Optional[Callable[[PipelineStage], Callable[[int, str], None]]] = None,
) -> dict[str, Any]:
    """
    Execute the pipeline and return stage outputs keyed by stage name.
    """
    dag = build_slice_pipeline(
        dto=dto,
        input_data=input_data,
        target_stage=target_stage,
        progress_bus=progress_bus,
        stage_progress_factory=stage_progress_factory,
    )
    return dag.run(progress=dag_progress)


__all__ = [
    "PipelineStage",
    "PIPELINE_STAGE_ORDER",
    "resolve_pipeline_stages",
    "build_slice_pipeline",
    "run_slice_pipeline",
]
