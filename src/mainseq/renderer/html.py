"""Render an AnalysisResult to a standalone HTML file."""

from __future__ import annotations

import json
from pathlib import Path
from string import Template

from mainseq.analysis import zone
from mainseq.model import AnalysisResult

_TEMPLATE_PATH = Path(__file__).with_name("template.html")


def result_to_dict(result: AnalysisResult) -> dict:
    """Plain-data form of *result*, shared by the JSON and HTML renderers."""
    packages = []
    for metrics in result.metrics.values():
        entry = metrics.to_dict()
        entry["zone"] = zone(metrics)
        packages.append(entry)
    return {
        "root": str(result.root),
        "packages": packages,
        "cycles": result.cycles,
        "scan": {
            "scanned": result.scan.scanned,
            "decoded": result.scan.decoded,
            "skipped": [
                {"path": str(s.path), "reason": s.reason} for s in result.scan.skipped
            ],
        },
    }


def render_html(result: AnalysisResult, output_path: Path) -> None:
    """Write the main-sequence chart and metrics table to *output_path*."""
    template = Template(_TEMPLATE_PATH.read_text(encoding="utf-8"))
    data_json = json.dumps(result_to_dict(result))
    html = template.safe_substitute(
        DATA_JSON=data_json.replace("</", "<\\/"),
        TITLE=result.root.name,
    )
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(html, encoding="utf-8")
