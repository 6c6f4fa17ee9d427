"""Metrics and graph analysis over an accumulated package graph."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping

from mainseq.graph import PackageDependencyGraph
from mainseq.model import PackageMetrics

logger = logging.getLogger(__name__)


def round4(value: float) -> float:
    """Round half away from zero to four decimals (inputs are non-negative)."""
    return math.floor(value * 10000.0 + 0.5) / 10000.0


class MetricsEngine:
    """Turn accumulated edges and counts into ``PackageMetrics`` records."""

    def __init__(self, graph: PackageDependencyGraph) -> None:
        self.graph = graph

    def compute(self, target_packages: Iterable[str]) -> dict[str, PackageMetrics]:
        """Return metrics for each target package, in the order given.

        Packages that never appeared in the graph come out with I = A = 0
        and therefore D = 1.
        """
        metrics: dict[str, PackageMetrics] = {}
        for pkg in target_packages:
            if pkg in metrics:
                continue
            metrics[pkg] = self._package_metrics(pkg)
        return metrics

    def _package_metrics(self, pkg: str) -> PackageMetrics:
        outgoing = self.graph.outgoing(pkg)
        incoming = self.graph.incoming(pkg)
        counts = self.graph.counts(pkg)

        ce = len(outgoing)
        ca = len(incoming)
        instability = 0.0 if ce + ca == 0 else ce / (ce + ca)
        if counts.total_classes == 0:
            abstractness = 0.0
        else:
            abstractness = counts.abstract_or_interface_classes / counts.total_classes
        distance = abs(abstractness + instability - 1.0)

        result = PackageMetrics(
            package_name=pkg,
            ce=ce,
            ca=ca,
            instability=round4(instability),
            abstractness=round4(abstractness),
            distance=round4(distance),
            outgoing_dependencies=outgoing,
            incoming_dependencies=incoming,
            total_classes=counts.total_classes,
            abstract_classes=counts.abstract_or_interface_classes,
        )
        logger.debug(
            "Metrics for package %s: I=%s, A=%s, D=%s, CE=%d, CA=%d",
            pkg,
            result.instability,
            result.abstractness,
            result.distance,
            ce,
            ca,
        )
        return result


def zone(metrics: PackageMetrics) -> str:
    """Place a package relative to the main sequence."""
    a, i, d = metrics.abstractness, metrics.instability, metrics.distance
    if d < 0.2:
        return "main sequence"
    if a < 0.3 and i < 0.3:
        return "zone of pain"
    if a > 0.7 and i > 0.7:
        return "zone of uselessness"
    return "off main sequence"


def find_cycles(edges: Mapping[str, Iterable[str]]) -> list[list[str]]:
    """Return strongly-connected components of size ≥ 2 using Tarjan's algorithm.

    *edges* maps a package to the packages it depends on.  Each returned list
    is a sorted group of packages that are mutually reachable, i.e. a
    dependency cycle.  Packages outside any cycle are omitted.
    """
    index: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    on_stack: set[str] = set()
    stack: list[str] = []
    sccs: list[list[str]] = []
    counter = [0]

    def _visit(v: str) -> None:
        index[v] = lowlink[v] = counter[0]
        counter[0] += 1
        stack.append(v)
        on_stack.add(v)

        for w in sorted(edges.get(v, ())):
            if w not in edges:
                continue
            if w not in index:
                _visit(w)
                lowlink[v] = min(lowlink[v], lowlink[w])
            elif w in on_stack:
                lowlink[v] = min(lowlink[v], index[w])

        if lowlink[v] == index[v]:
            scc: list[str] = []
            while True:
                w = stack.pop()
                on_stack.discard(w)
                scc.append(w)
                if w == v:
                    break
            if len(scc) >= 2:
                sccs.append(sorted(scc))

    for v in sorted(edges):
        if v not in index:
            _visit(v)

    return sorted(sccs)
