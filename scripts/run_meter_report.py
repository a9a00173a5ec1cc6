"""
Aggregate an activity workbook from CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from meter.errors import MeterError
from meter.schemas.meter import indicator_response, report_response
from meter.services.meter_service import MeterService
from meter.services.spreadsheet_export_service import EXPORT_STRATEGIES


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Aggregate an activity report workbook.")
    parser.add_argument("file", type=Path, help="Path to the .xlsx workbook.")
    parser.add_argument(
        "--months",
        dest="months",
        type=int,
        nargs="+",
        default=list(range(1, 13)),
        help="Selected months (1-12). Defaults to the whole year.",
    )
    parser.add_argument(
        "--indicator",
        dest="indicator_id",
        default=None,
        help="Only print the regrouping for this indicator id.",
    )
    parser.add_argument(
        "--export",
        dest="export_format",
        choices=sorted(EXPORT_STRATEGIES),
        default=None,
        help="Also write the aggregate in this format.",
    )
    parser.add_argument("--out", dest="out", type=Path, default=None, help="Export destination path.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "WARNING").strip().upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    service = MeterService()
    try:
        data = args.file.read_bytes()
        if args.indicator_id:
            result = service.regroup_upload(
                filename=args.file.name,
                data=data,
                months=args.months,
                indicator_id=args.indicator_id,
            )
            print(json.dumps(indicator_response(result).model_dump(), indent=2, ensure_ascii=False))
            return 0

        report = service.process_upload(filename=args.file.name, data=data, months=args.months)
        print(json.dumps(report_response(report).model_dump(), indent=2, ensure_ascii=False))

        if args.export_format:
            exported = service.export_upload(
                filename=args.file.name,
                data=data,
                months=args.months,
                export_format=args.export_format,
            )
            if exported is None:
                print(f"Export as {args.export_format} failed.", file=sys.stderr)
                return 1
            destination = args.out or args.file.with_name(exported.file_name)
            destination.write_bytes(exported.content)
            print(f"Wrote {destination}", file=sys.stderr)
    except MeterError as exc:
        print(json.dumps(exc.to_dict(), indent=2, ensure_ascii=False), file=sys.stderr)
        return 2
    except (OSError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
