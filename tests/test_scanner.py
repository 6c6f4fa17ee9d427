"""Tests for walking class files into the graph, sequentially and in parallel."""

import threading

import pytest

from classgen import make_class
from mainseq import scanner
from mainseq.errors import FilesystemAccessError
from mainseq.graph import PackageDependencyGraph
from mainseq.scanner import find_class_files, process_class_file, scan_classes

TARGETS = ("p1", "p2")


def _snapshot(graph: PackageDependencyGraph):
    return {
        pkg: (graph.outgoing(pkg), graph.incoming(pkg), graph.counts(pkg))
        for pkg in TARGETS
    }


class TestFindClassFiles:
    def test_sorted_recursive(self, write_class):
        write_class("p2.C")
        write_class("p1.sub.B")
        write_class("p1.A")
        (write_class.root / "README.txt").write_text("not a class")
        files = find_class_files(write_class.root)
        names = [f.relative_to(write_class.root).as_posix() for f in files]
        assert names == ["p1/A.class", "p1/sub/B.class", "p2/C.class"]


class TestProcessClassFile:
    def test_records_target_class(self, write_class):
        path = write_class("p1.A", uses=("p2.C", "java.util.ArrayList"))
        graph = PackageDependencyGraph()
        assert process_class_file(path, TARGETS, graph)
        assert graph.outgoing("p1") == {"p2"}

    def test_ignores_other_packages(self, write_class):
        path = write_class("lib.Util", uses=("p1.A",))
        graph = PackageDependencyGraph()
        assert not process_class_file(path, TARGETS, graph)
        assert graph.incoming("p1") == frozenset()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FilesystemAccessError):
            process_class_file(tmp_path / "gone.class", TARGETS, PackageDependencyGraph())


class TestScanClasses:
    """Bad artifacts are skipped; the rest still contribute."""

    @pytest.mark.parametrize("workers", [0, 1, 4])
    def test_scenario(self, scenario_a, workers):
        graph = PackageDependencyGraph()
        result = scan_classes(find_class_files(scenario_a), TARGETS, graph, workers=workers)
        assert (result.scanned, result.decoded, result.skipped) == (3, 3, [])
        assert not result.cancelled
        assert graph.outgoing("p1") == {"p2"}
        assert graph.incoming("p1") == {"p2"}
        assert graph.counts("p1").abstract_or_interface_classes == 1

    def test_sequential_and_parallel_agree(self, write_class):
        for i in range(30):
            pkg = TARGETS[i % 2]
            other = TARGETS[(i + 1) % 2]
            write_class(f"{pkg}.C{i}", abstract=i % 3 == 0, uses=(f"{other}.C{i + 1}",))
        files = find_class_files(write_class.root)

        sequential = PackageDependencyGraph()
        parallel = PackageDependencyGraph()
        scan_classes(files, TARGETS, sequential, workers=0)
        scan_classes(files, TARGETS, parallel, workers=8)
        assert _snapshot(sequential) == _snapshot(parallel)
        assert sequential.edges() == parallel.edges()

    def test_corrupt_class_is_skipped(self, scenario_a, write_class):
        bad = write_class("p1.Broken", b"\x00\x01\x02\x03" + make_class("p1.Broken")[4:])
        graph = PackageDependencyGraph()
        result = scan_classes(find_class_files(scenario_a), TARGETS, graph)

        assert result.scanned == 4
        assert result.decoded == 3
        assert [s.path for s in result.skipped] == [bad]
        assert "magic" in result.skipped[0].reason
        assert graph.counts("p1").total_classes == 2

    def test_truncated_class_is_skipped(self, write_class):
        write_class("p1.A", uses=("p2.B",))
        write_class("p2.B", make_class("p2.B", uses=("p1.A",))[:-10])
        graph = PackageDependencyGraph()
        result = scan_classes(find_class_files(write_class.root), TARGETS, graph, workers=2)
        assert len(result.skipped) == 1
        assert graph.counts("p2").total_classes == 0
        assert graph.incoming("p2") == {"p1"}

    def test_unreadable_artifact_is_skipped(self, scenario_a, tmp_path):
        files = find_class_files(scenario_a) + [tmp_path / "missing.class"]
        result = scan_classes(files, TARGETS, PackageDependencyGraph())
        assert result.decoded == 3
        assert [s.path.name for s in result.skipped] == ["missing.class"]

    def test_no_targets(self, scenario_a):
        graph = PackageDependencyGraph()
        result = scan_classes(find_class_files(scenario_a), (), graph)
        assert result.scanned == 0
        assert graph.packages() == []

    def test_custom_builtin_prefixes(self, write_class):
        write_class("p1.A", uses=("p2.C",))
        graph = PackageDependencyGraph()
        scan_classes(
            find_class_files(write_class.root), TARGETS, graph, builtin_prefixes=("p2.",)
        )
        assert graph.outgoing("p1") == frozenset()

    @pytest.mark.parametrize("workers", [0, 4])
    def test_cancelled_before_start(self, scenario_a, workers):
        cancel = threading.Event()
        cancel.set()
        graph = PackageDependencyGraph()
        result = scan_classes(
            find_class_files(scenario_a), TARGETS, graph, workers=workers, cancel=cancel
        )
        assert result.cancelled
        assert result.scanned == 0

    @pytest.mark.parametrize("workers", [0, 4])
    def test_cancelled_mid_scan(self, write_class, monkeypatch, workers):
        for i in range(20):
            write_class(f"p1.C{i}", uses=("p2.D",))
        files = find_class_files(write_class.root)
        cancel = threading.Event()
        lock = threading.Lock()
        processed = []

        def process_then_cancel(path, *args):
            outcome = process_class_file(path, *args)
            with lock:
                processed.append(path)
                if len(processed) == 3:
                    cancel.set()
            return outcome

        monkeypatch.setattr(scanner, "process_class_file", process_then_cancel)
        result = scan_classes(
            files, TARGETS, PackageDependencyGraph(), workers=workers, cancel=cancel
        )
        assert result.cancelled
        assert result.scanned < len(files)
        if workers == 0:
            assert result.scanned == 3
