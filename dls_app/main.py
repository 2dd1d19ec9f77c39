"""Convert Zetasizer .zmes files into an Excel workbook."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from dls_app.engine import excel_writer
from dls_app.engine.recipe_model import ConversionOptions, load_options
from dls_app.plugins.dls.plugin import DlsPlugin

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("inputs", nargs="+", help=".zmes files to convert.")
    parser.add_argument("-o", "--output", required=True, help="Workbook to write (.xlsx).")
    parser.add_argument(
        "--parser",
        help="Byte-level .zmes parser as 'module:attribute' (overrides the config file).",
    )
    parser.add_argument("--config", help="YAML file with conversion options.")
    parser.add_argument(
        "--layout",
        choices=("tidy", "wide"),
        help="Layout of the Distributions sheet (default: tidy).",
    )
    parser.add_argument("--id", dest="analysis_id", help="Identifier of the resulting analysis.")
    parser.add_argument("--label", help="Label of the resulting analysis.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def build_options(args: argparse.Namespace) -> ConversionOptions:
    options = load_options(args.config) if args.config else ConversionOptions()
    if args.parser:
        options.parser = args.parser
    if args.layout:
        options.export_layout = args.layout
    if args.analysis_id:
        options.id = args.analysis_id
    if args.label:
        options.label = args.label
    return options


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    try:
        options = build_options(args)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Cannot read options: {exc}") from exc
    errs = options.validate()
    if errs:
        raise SystemExit("; ".join(errs))
    if not options.parser:
        raise SystemExit("No .zmes parser configured (use --parser or the 'parser' option)")

    paths = [Path(p) for p in args.inputs]
    for path in paths:
        if not path.exists():
            raise SystemExit(f"Input file not found: {path}")

    plugin = DlsPlugin(options=options)
    try:
        plugin.parser
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc
    specs = plugin.load([str(p) for p in paths])
    errs = plugin.validate(specs, {})
    if errs:
        raise SystemExit("; ".join(errs))
    specs, qc = plugin.analyze(specs, {})
    result = plugin.export(specs, qc, {})
    out = excel_writer.write_workbook(
        args.output,
        result.processed,
        result.qc_table,
        result.audit,
        layout=options.export_layout,
    )
    logger.info("Wrote %d spectra to %s", len(result.processed), out)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
