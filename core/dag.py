"""
Lightweight DAG executor for the stage pipeline (no external dependencies).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple


@dataclass
class DAGNode:
    """A single step in a processing pipeline."""
    name:        str
    fn:          Callable[[dict], Any]
    depends_on:  Tuple[str, ...] = field(default_factory=tuple)


class SimpleDAGExecutor:
    """
    Topologically-sorted pipeline runner.

    Usage::

        dag = SimpleDAGExecutor()
        dag.add(DAGNode("load",  load_fn,  depends_on=()))
        dag.add(DAGNode("range", range_fn, depends_on=("load",)))
        dag.add(DAGNode("slice", slice_fn, depends_on=("load", "range")))
        results = dag.run(progress_callback)

    Each ``fn`` receives a dict of ``{node_name: result}`` for the nodes it
    depends on. Its return value is stored under its own name.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, DAGNode] = {}

    @property
    def node_names(self) -> Tuple[str, ...]:
        return tuple(self._nodes)

    def add(self, node: DAGNode) -> "SimpleDAGExecutor":
        self._nodes[node.name] = node
        return self

    def _topo_sort(self) -> list[str]:
        done:     set[str]  = set()
        visiting: set[str]  = set()
        order:    list[str] = []

        def dfs(name: str) -> None:
            if name in done:
                return
            if name in visiting:
                raise ValueError(f"DAG has a dependency cycle through '{name}'")
            visiting.add(name)
            for dep in self._nodes[name].depends_on:
                if dep not in self._nodes:
                    raise KeyError(f"DAG node '{name}' depends on unknown node '{dep}'")
                dfs(dep)
            visiting.discard(name)
            done.add(name)
            order.append(name)

        for name in self._nodes:
            dfs(name)
        return order

    def run(self, progress: Optional[Callable[[int, str], None]] = None) -> dict:
        order   = self._topo_sort()
        results = {}
        total   = len(order)
        for i, name in enumerate(order):
            node   = self._nodes[name]
            inputs = {dep: results[dep] for dep in node.depends_on}
            if progress:
                progress(int(100 * i / total), f"Running: {name}")
            results[name] = node.fn(inputs)
        if progress:
            progress(100, "Pipeline complete")
        return results


__all__ = ["DAGNode", "SimpleDAGExecutor"]
