"""Thread-safe accumulation of package dependency edges and class counts."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Collection, Iterable
from dataclasses import dataclass

from mainseq.model import ClassDescriptor, package_of

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PackageCounts:
    total_classes: int = 0
    abstract_or_interface_classes: int = 0


class PackageDependencyGraph:
    """Directed package graph shared by all decode workers.

    Each package key has its own lock, so workers recording classes from
    different packages do not contend.  Insertions are set unions and
    counter increments, so the final state does not depend on the order in
    which classes are recorded.

    With ``restrict_to_targets`` (the default) an edge is only kept when both
    ends are target packages; otherwise every non-self edge out of a target
    package is kept and mirrored into the incoming set of its destination.
    """

    def __init__(self, *, restrict_to_targets: bool = True) -> None:
        self.restrict_to_targets = restrict_to_targets
        self._outgoing: dict[str, set[str]] = defaultdict(set)
        self._incoming: dict[str, set[str]] = defaultdict(set)
        self._total: dict[str, int] = defaultdict(int)
        self._abstract: dict[str, int] = defaultdict(int)
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock(self, package: str) -> threading.Lock:
        lock = self._locks.get(package)
        if lock is None:
            with self._registry_lock:
                lock = self._locks.setdefault(package, threading.Lock())
        return lock

    def record(
        self,
        owner: ClassDescriptor,
        referenced_types: Iterable[str],
        target_packages: Collection[str],
    ) -> bool:
        """Add one class and its references; return False if it is not in a target package."""
        owner_pkg = owner.package
        if owner_pkg not in target_packages:
            return False

        to_packages = {package_of(t) for t in referenced_types} - {owner_pkg}
        if self.restrict_to_targets:
            to_packages &= set(target_packages)

        with self._lock(owner_pkg):
            self._total[owner_pkg] += 1
            if owner.is_abstract_or_interface:
                self._abstract[owner_pkg] += 1
            self._outgoing[owner_pkg].update(to_packages)

        for to_pkg in to_packages:
            with self._lock(to_pkg):
                self._incoming[to_pkg].add(owner_pkg)

        logger.debug("%s -> %s", owner.qualified_name, sorted(to_packages))
        return True

    def add_edge(self, from_pkg: str, to_pkg: str) -> None:
        """Record a single edge; self edges are ignored."""
        if from_pkg == to_pkg:
            return
        with self._lock(from_pkg):
            self._outgoing[from_pkg].add(to_pkg)
        with self._lock(to_pkg):
            self._incoming[to_pkg].add(from_pkg)

    def merge(self, other: PackageDependencyGraph) -> None:
        """Fold another graph's edges and counts into this one."""
        for pkg in other.packages():
            counts = other.counts(pkg)
            with self._lock(pkg):
                self._total[pkg] += counts.total_classes
                self._abstract[pkg] += counts.abstract_or_interface_classes
            for to_pkg in other.outgoing(pkg):
                self.add_edge(pkg, to_pkg)

    def outgoing(self, package: str) -> frozenset[str]:
        with self._lock(package):
            return frozenset(self._outgoing.get(package, ()))

    def incoming(self, package: str) -> frozenset[str]:
        with self._lock(package):
            return frozenset(self._incoming.get(package, ()))

    def counts(self, package: str) -> PackageCounts:
        with self._lock(package):
            return PackageCounts(
                self._total.get(package, 0), self._abstract.get(package, 0)
            )

    def packages(self) -> list[str]:
        """Every package that owns a recorded class or an outgoing edge."""
        with self._registry_lock:
            keys = list(self._locks)
        return sorted(
            pkg for pkg in keys if self._total.get(pkg) or self._outgoing.get(pkg)
        )

    def edges(self) -> dict[str, list[str]]:
        """Snapshot of the outgoing adjacency, sorted for stable output."""
        return {pkg: sorted(self.outgoing(pkg)) for pkg in self.packages()}
