"""Command line entry point for the S3 Secret Renderer."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from prometheus_client import REGISTRY, write_to_textfile

from . import __version__
from . import logging as structured_logging
from .builders.context import ChartInfo, ReleaseInfo, RenderContext
from .builders.secret import render_manifests
from .builders.values import build_values, load_chart
from .constants import DEFAULT_CHART_NAME, DEFAULT_CHART_VERSION, DEFAULT_NAMESPACE, DEFAULT_RELEASE_NAME
from .utils.errors import RenderError, sanitize_dict, sanitize_exception

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="s3-secret-renderer",
        description="Render the object store credentials Secret from chart values",
    )
    parser.add_argument(
        "--chart",
        help="Chart directory holding Chart.yaml and values.yaml",
    )
    parser.add_argument(
        "-f", "--values", action="append", default=[], metavar="FILE",
        help="Values file, may be repeated; later files win",
    )
    parser.add_argument(
        "--set", action="append", default=[], metavar="KEY=VAL",
        help="Set values on the command line (a.b=c,d=e)",
    )
    parser.add_argument(
        "--set-string", action="append", default=[], metavar="KEY=VAL",
        help="Set STRING values on the command line",
    )
    parser.add_argument(
        "--release-name", default=DEFAULT_RELEASE_NAME,
        help=f"Release name (default: {DEFAULT_RELEASE_NAME})",
    )
    parser.add_argument(
        "-n", "--namespace", default=DEFAULT_NAMESPACE,
        help=f"Release namespace (default: {DEFAULT_NAMESPACE})",
    )
    parser.add_argument("--chart-name", help="Override the chart name")
    parser.add_argument("--chart-version", help="Override the chart version")
    parser.add_argument("--app-version", help="Override the chart app version")
    parser.add_argument(
        "-o", "--output",
        help="Write the manifest to FILE instead of stdout",
    )
    parser.add_argument(
        "--no-source-comment", action="store_true",
        help="Omit the '# Source:' comment line",
    )
    parser.add_argument(
        "--metrics-file",
        help="Write Prometheus metrics in textfile format to FILE",
    )
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for stderr logging (default: WARNING)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def build_context(args: argparse.Namespace) -> RenderContext:
    """Assemble the render context from parsed arguments.

    Raises:
        ValuesError: If the chart or a values file cannot be loaded
    """
    chart = ChartInfo(name=DEFAULT_CHART_NAME, version=DEFAULT_CHART_VERSION)
    defaults: dict = {}
    if args.chart:
        chart, defaults = load_chart(args.chart)

    chart = ChartInfo(
        name=args.chart_name or chart.name,
        version=args.chart_version or chart.version,
        app_version=args.app_version or chart.app_version,
    )
    values = build_values(defaults, args.values, args.set, args.set_string)
    logger.debug(f"Effective values: {json.dumps(sanitize_dict(values), default=str)}")
    release = ReleaseInfo(name=args.release_name, namespace=args.namespace)
    return RenderContext(values=values, release=release, chart=chart)


def _write_output(path: str, text: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        0 on success (including an empty render), 1 when the render or a write fails
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    structured_logging.setup_structured_logging(args.log_level)

    exit_code = 0
    try:
        ctx = build_context(args)
        text = render_manifests(ctx, with_source=not args.no_source_comment)
        if args.output:
            _write_output(args.output, text)
            logger.info(f"Wrote {args.output}")
        else:
            sys.stdout.write(text)
    except RenderError as e:
        print(f"Error: {sanitize_exception(e)}", file=sys.stderr)
        exit_code = 1
    except OSError as e:
        print(f"Error: cannot write output: {sanitize_exception(e)}", file=sys.stderr)
        exit_code = 1

    if args.metrics_file:
        try:
            write_to_textfile(args.metrics_file, REGISTRY)
        except OSError as e:
            print(f"Error: cannot write metrics file: {sanitize_exception(e)}", file=sys.stderr)
            exit_code = 1
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
