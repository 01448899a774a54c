"""
Progress reporting for the load -> range -> slice pipeline.

Stages and the DAG executor report through plain ``(percent, message)``
callbacks. ``ProgressBus`` wraps each report in a ``ProgressEvent`` tagged
with its stage (or the ``"dag"`` channel) and fans it out to subscribers.
``StageProgressMapper`` folds a stage-local percent into a run-wide one so a
single bar can cover the whole run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Protocol, Sequence, TextIO, Tuple, Union
import sys
import time

from config import PROGRESS_BAR_WIDTH


ProgressCallback = Callable[[int, str], None]

STAGE_CHANNEL = "stage"
DAG_CHANNEL = "dag"


def _clamp_percent(percent: int) -> int:
    return max(0, min(100, int(percent)))


@dataclass(frozen=True)
class ProgressEvent:
    """One progress report from a stage or from the DAG executor."""

    percent: int
    message: str
    stage: Optional[str] = None
    channel: str = STAGE_CHANNEL
    timestamp: float = field(default_factory=time.time)

    @property
    def is_complete(self) -> bool:
        return self.percent >= 100


class ProgressObserver(Protocol):
    def on_progress(self, event: ProgressEvent) -> None:
        ...


ProgressListener = Union[Callable[[ProgressEvent], None], ProgressObserver]


class StageProgressMapper:
    """
    Map a stage-local percent onto the run-wide 0..100 scale.

    Stages get equal shares in pipeline order. Share bounds are rounded down
    except the last, which always ends at 100. Unknown stages pass through
    unchanged.
    """

    def __init__(self, stages: Sequence[str]) -> None:
        names = list(stages)
        count = max(len(names), 1)
        self._bounds: Dict[str, Tuple[int, int]] = {
            name: (100 * idx // count, 100 * (idx + 1) // count)
            for idx, name in enumerate(names)
        }

    @property
    def stages(self) -> Tuple[str, ...]:
        return tuple(self._bounds)

    def map(self, stage: Optional[str], local_percent: int) -> int:
        local = _clamp_percent(local_percent)
        if stage not in self._bounds:
            return local
        start, end = self._bounds[stage]
        return start + local * (end - start) // 100


class ProgressBus:
    """Fan progress events out to every subscribed listener, in subscription order."""

    def __init__(self) -> None:
        self._listeners: list[ProgressListener] = []

    def subscribe(self, listener: ProgressListener) -> "ProgressBus":
        self._listeners.append(listener)
        return self

    def unsubscribe(self, listener: ProgressListener) -> "ProgressBus":
        if listener in self._listeners:
            self._listeners.remove(listener)
        return self

    def emit(self, event: ProgressEvent) -> None:
        for listener in tuple(self._listeners):
            handler = getattr(listener, "on_progress", listener)
            handler(event)

    def _callback(self, stage: Optional[str], channel: str) -> ProgressCallback:
        def report(percent: int, message: str) -> None:
            self.emit(ProgressEvent(_clamp_percent(percent), message, stage=stage, channel=channel))

        return report

    def stage_callback(self, stage: str) -> ProgressCallback:
        return self._callback(stage, STAGE_CHANNEL)

    def dag_callback(self) -> ProgressCallback:
        return self._callback(None, DAG_CHANNEL)


class TerminalProgressObserver:
    """
    Single-line progress bar for the CLI.

    With a mapper the bar fills across the whole run and the stage-local
    percent is shown beside the stage name. DAG events are printed as plain
    lines.
    """

    def __init__(
        self,
        bar_width: int = PROGRESS_BAR_WIDTH,
        stream: Optional[TextIO] = None,
        mapper: Optional[StageProgressMapper] = None,
    ) -> None:
        self.bar_width = bar_width
        self.stream = stream or sys.stdout
        self.mapper = mapper

    def _write(self, text: str) -> None:
        self.stream.write(text)
        self.stream.flush()

    def _render_bar(self, percent: int) -> str:
        filled = self.bar_width * percent // 100
        return "#" * filled + "." * (self.bar_width - filled)

    def on_progress(self, event: ProgressEvent) -> None:
        if event.channel == DAG_CHANNEL:
            self._write(f"  [pipeline {event.percent:3d}%] {event.message}\n")
            return

        stage = event.stage or "task"
        if self.mapper is None:
            line = f"\r  [{stage:>5}] [{self._render_bar(event.percent)}] {event.percent:3d}%  {event.message:<40}"
        else:
            overall = self.mapper.map(event.stage, event.percent)
            line = (
                f"\r  [{self._render_bar(overall)}] {overall:3d}%  "
                f"{stage} {event.percent:3d}%: {event.message:<40}"
            )
        self._write(line + ("\n" if event.is_complete else ""))


__all__ = [
    "ProgressCallback",
    "ProgressEvent",
    "ProgressObserver",
    "ProgressBus",
    "StageProgressMapper",
    "TerminalProgressObserver",
]
