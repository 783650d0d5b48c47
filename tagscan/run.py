"""Command-line entry point for tagscan.

Usage:
    python -m tagscan.run --export site.yaml [--theme-dir DIR] [--pretty]
    tagscan --export site.yaml          # via pyproject.toml [project.scripts]

Loads config, configures logging, collects blobs from the site export and the
theme directory, runs the scan and prints the report as JSON on stdout.
Logs go to stderr.

Exit codes:
    0  scan completed (whatever the safety score)
    2  bad arguments or an unreadable site export
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Optional, Sequence

from tagscan import __version__
from tagscan.config import load_config
from tagscan.models.scan import SourceKind
from tagscan.scanner.aggregator import scan
from tagscan.sources import SourceError
from tagscan.sources.plugins import detect_analytics_plugins
from tagscan.sources.site_export import collect_blobs, load_site_export
from tagscan.sources.theme import collect_theme_files
from tagscan.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tagscan",
        description="Locate Google tracking and advertising code in a site export.",
    )
    parser.add_argument("--export", help="YAML or JSON site export to scan")
    parser.add_argument("--theme-dir", help="Theme directory whose template files are scanned")
    parser.add_argument("--config", help="Explicit path to a tagscan config.yaml")
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker processes (0 = sequential); overrides scanner.workers",
    )
    parser.add_argument("--pretty", action="store_true", help="Indent the JSON report")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.export and not args.theme_dir:
        parser.print_usage(sys.stderr)
        print("tagscan: error: nothing to scan; pass --export and/or --theme-dir", file=sys.stderr)
        return EXIT_USAGE
    if args.workers is not None and args.workers < 0:
        print("tagscan: error: --workers must be >= 0", file=sys.stderr)
        return EXIT_USAGE

    config = load_config(args.config)
    if args.workers is not None:
        config.scanner.workers = args.workers
    configure_logging(config.logging.level, json_output=config.logging.json)

    blobs: dict[SourceKind, list[tuple[str, Any]]] = {}
    plugins: list[dict[str, str]] = []
    if args.export:
        try:
            export = load_site_export(args.export)
        except SourceError as exc:
            logger.error("Site export unavailable", error=str(exc))
            print(f"tagscan: error: {exc}", file=sys.stderr)
            return EXIT_USAGE
        blobs.update(collect_blobs(export))
        plugins = [
            finding.to_dict()
            for finding in detect_analytics_plugins(export.get("active_plugins") or [])
        ]
    if args.theme_dir:
        blobs[SourceKind.THEME_FILE] = collect_theme_files(args.theme_dir)

    report = scan(blobs, config)

    payload = report.to_dict()
    payload["analytics_plugins"] = plugins
    json.dump(payload, sys.stdout, indent=2 if args.pretty else None, ensure_ascii=False)
    sys.stdout.write("\n")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
