"""Plain-text and JSON renderings of an AnalysisResult."""

from __future__ import annotations

import json

from mainseq.analysis import zone
from mainseq.model import AnalysisResult
from mainseq.renderer.html import result_to_dict

_COLUMNS = ("Package", "Ce", "Ca", "I", "A", "D", "Classes", "Zone")


def render_json(result: AnalysisResult) -> str:
    return json.dumps(result_to_dict(result), indent=2)


def render_table(result: AnalysisResult) -> str:
    """Fixed-width table, one row per package, followed by cycles and skips."""
    rows = [
        (
            m.package_name or "(default)",
            str(m.ce),
            str(m.ca),
            f"{m.instability:.4f}",
            f"{m.abstractness:.4f}",
            f"{m.distance:.4f}",
            str(m.total_classes),
            zone(m),
        )
        for m in result.metrics.values()
    ]
    widths = [len(c) for c in _COLUMNS]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]

    def _line(cells) -> str:
        first = cells[0].ljust(widths[0])
        middle = [c.rjust(w) for c, w in zip(cells[1:-1], widths[1:-1])]
        return "  ".join([first, *middle, cells[-1]]).rstrip()

    lines = [_line(_COLUMNS), _line(["-" * w for w in widths])]
    lines.extend(_line(row) for row in rows)

    for cycle in result.cycles:
        lines.append(f"cycle: {' <-> '.join(cycle)}")
    if result.scan.skipped:
        lines.append(
            f"{len(result.scan.skipped)} of {result.scan.scanned} class files skipped"
        )
    return "\n".join(lines)
