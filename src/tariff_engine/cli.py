from __future__ import annotations

from pathlib import Path
import argparse
import sys

from tariff_engine.config import load_app_config
from tariff_engine.detector import VARIANTS
from tariff_engine.diagnostics import Diagnostics
from tariff_engine.errors import TariffEngineError
from tariff_engine.pipeline import run_workbook, write_json
from tariff_engine.reference import ReferenceContext


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Normalize a carrier rate workbook into rate records")
    parser.add_argument("workbook", help="Path to the carrier .xlsx workbook")
    parser.add_argument("--config", default="config.toml", help="Path to config.toml (default: %(default)s)")
    parser.add_argument("--mode", choices=VARIANTS, help="Skip detection and force a layout")
    parser.add_argument("--output", "-o", help="Write records to this JSON file")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only print the final summary")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_app_config(Path(args.config))

    print(f"\n{'=' * 60}")
    print("CARRIER TARIFF ENGINE")
    print(f"{'=' * 60}")
    print(f"Workbook: {args.workbook}")
    print(f"Mode: {args.mode or 'auto-detect'}")
    print(f"{'=' * 60}\n")

    diagnostics = Diagnostics(config=config.diagnostics, verbose=not args.quiet)
    try:
        context = ReferenceContext.from_config(config)
        result = run_workbook(Path(args.workbook), context, config, mode=args.mode, diagnostics=diagnostics)
    except TariffEngineError as e:
        print(f"[Pipeline] FAILED: {e}", file=sys.stderr)
        return 1

    if args.output:
        path = write_json(result.records, Path(args.output), variant=result.variant)
        print(f"[Pipeline] Wrote {len(result.records)} records to {path}")

    print(f"\n{'=' * 60}")
    print("SUMMARY")
    print(f"{'=' * 60}")
    print(f"Layout: {result.variant}")
    print(f"Contract: {result.contract_number}")
    for key, value in result.summary().items():
        print(f"  {key}: {value}")
    return 0
