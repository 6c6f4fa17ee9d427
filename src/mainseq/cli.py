"""Command-line interface for mainseq."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from mainseq.config import load_config
from mainseq.errors import MainseqError
from mainseq.pipeline import run
from mainseq.renderer.html import render_html
from mainseq.renderer.text import render_json, render_table

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="mainseq",
        description="Package coupling metrics and distance from the main sequence for compiled JVM code.",
    )
    parser.add_argument(
        "project_dir",
        type=Path,
        help="Maven/Gradle project, or a directory of .class files",
    )
    parser.add_argument(
        "-p",
        "--package",
        action="append",
        dest="packages",
        default=None,
        help="Package to analyze (repeatable; default: located from sources)",
    )
    parser.add_argument(
        "--classes-dir",
        type=Path,
        default=None,
        help="Compiled classes directory (default: target/classes or build/classes/java/main)",
    )
    parser.add_argument(
        "-j",
        "--workers",
        type=int,
        default=None,
        help="Decode worker threads (default: from config, else 4)",
    )
    parser.add_argument(
        "--sequential",
        action="store_true",
        help="Decode class files one at a time in the main thread",
    )
    parser.add_argument(
        "--all-edges",
        action="store_true",
        help="Also count dependencies on packages outside the analyzed set",
    )
    parser.add_argument(
        "--format",
        choices=("text", "json", "html"),
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Write output to a file (default: stdout; html defaults to mainseq.html)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) output",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(message)s")
    if args.verbose:
        logging.getLogger("mainseq").setLevel(logging.DEBUG)

    try:
        config = load_config(args.project_dir).with_overrides(
            workers=0 if args.sequential else args.workers,
            restrict_to_targets=False if args.all_edges else None,
        )
        result = run(
            args.project_dir,
            packages=args.packages,
            classes_dir=args.classes_dir,
            config=config,
        )
    except MainseqError as e:
        logger.error("%s", e)
        return 1

    try:
        if args.format == "html":
            out_path = args.output or Path("mainseq.html")
            render_html(result, out_path)
            logger.info("Generated %s", out_path)
            return 0

        text = render_json(result) if args.format == "json" else render_table(result)
        if args.output:
            args.output.write_text(text + "\n")
        else:
            sys.stdout.write(text + "\n")
    except OSError as e:
        logger.error("Cannot write output: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
