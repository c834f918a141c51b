"""Timecard engine command line interface.

Runs payroll and invoice generation over CSV extracts on disk, using the
default client configuration.

Usage:
    python -m timecard_engine.cli payroll --timecards wd.csv --manual-adds adds.csv \\
        --crosswalk xwalk.csv --output payroll.csv
    python -m timecard_engine.cli invoice --previous prev.csv --current cur.csv \\
        --invoice-detail p1.csv p2.csv p3.csv p4.csv --output-dir invoices/
"""

from __future__ import annotations

import argparse
import csv
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Callable

from timecard_engine.exceptions import TimecardEngineError
from timecard_engine.transformers.configuration import (
    default_invoice_config,
    default_payroll_config,
)
from timecard_engine.transformers.crosswalk import CrosswalkResolver
from timecard_engine.transformers.invoice import InvoiceTransformer
from timecard_engine.transformers.output import records_to_rows, to_csv
from timecard_engine.transformers.payroll import PayrollTransformer
from timecard_engine.transformers.types import (
    INVOICE_DETAIL_COLUMNS,
    PAYROLL_COLUMNS,
    PRODUCTIVITY_COLUMNS,
    SUPPLIER_INVOICE_COLUMNS,
    Row,
)

logger = logging.getLogger(__name__)


def parse_date(s: str) -> date:
    """Parse ISO date string."""
    return date.fromisoformat(s)


def read_rows(path: Path) -> list[Row]:
    """Read a CSV extract into header-keyed rows."""
    with path.open(newline="", encoding="utf-8-sig") as handle:
        return list(csv.DictReader(handle))


class TimecardCli:
    """Timecard engine command line interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m timecard_engine.cli",
            description="Payroll and invoice generation from CSV extracts",
        )
        parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # payroll command
        payroll = subparsers.add_parser("payroll", help="Generate a payroll import file")
        payroll.add_argument("--timecards", type=Path, required=True, help="Timeclock extract")
        payroll.add_argument("--manual-adds", type=Path, required=True, help="Manual-add extract")
        payroll.add_argument("--crosswalk", type=Path, required=True, help="Employee crosswalk")
        payroll.add_argument("--facility-crosswalk", type=Path, help="Facility crosswalk")
        payroll.add_argument("--shifts", type=Path, help="Shift roster")
        payroll.add_argument("--pay-period-start", type=parse_date, help="Period start (ISO)")
        payroll.add_argument("--pay-period-end", type=parse_date, help="Period end (ISO)")
        payroll.add_argument("--run-date", type=parse_date, help="Run date (ISO, default today)")
        payroll.add_argument(
            "--output", type=Path, help="Output CSV path (default stdout)"
        )

        # invoice command
        invoice = subparsers.add_parser("invoice", help="Generate main and micro invoices")
        invoice.add_argument("--previous", type=Path, required=True, help="Previous payroll")
        invoice.add_argument("--current", type=Path, required=True, help="Current payroll")
        invoice.add_argument(
            "--invoice-detail",
            type=Path,
            nargs=4,
            required=True,
            metavar="PERIOD_FILE",
            help="The four historical invoice detail extracts",
        )
        invoice.add_argument("--run-date", type=parse_date, help="Run date (ISO, default today)")
        invoice.add_argument(
            "--output-dir", type=Path, required=True, help="Directory for the output CSVs"
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        logging.basicConfig(
            level=logging.DEBUG if parsed.verbose else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        if not parsed.command:
            self.parser.print_help()
            return 1

        handlers: dict[str, Callable[..., int]] = {
            "payroll": self._cmd_payroll,
            "invoice": self._cmd_invoice,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return handler(parsed)
        except (OSError, TimecardEngineError) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1

    def _cmd_payroll(self, args: argparse.Namespace) -> int:
        """Generate payroll output."""
        if (args.pay_period_start is None) != (args.pay_period_end is None):
            print("Error: --pay-period-start and --pay-period-end go together", file=sys.stderr)
            return 2
        pay_period = (
            (args.pay_period_start, args.pay_period_end) if args.pay_period_start else None
        )

        crosswalk = CrosswalkResolver.from_rows(
            read_rows(args.crosswalk),
            read_rows(args.facility_crosswalk) if args.facility_crosswalk else (),
            read_rows(args.shifts) if args.shifts else (),
        )
        transformer = PayrollTransformer(
            default_payroll_config(),
            run_date=args.run_date,
            pay_period=pay_period,
        )
        result = transformer.transform(
            read_rows(args.timecards), read_rows(args.manual_adds), crosswalk
        )

        text = to_csv(records_to_rows(result.records), PAYROLL_COLUMNS)
        if args.output:
            args.output.write_text(text, encoding="utf-8")
        else:
            sys.stdout.write(text)

        print(
            f"{result.record_count} payroll records, {result.rejected_count} rows rejected",
            file=sys.stderr,
        )
        for rejection in result.rejections:
            print(
                f"  {rejection.source.value} row {rejection.row_index} "
                f"({rejection.employee_external_id or 'no ID'}): {rejection.reason.value}",
                file=sys.stderr,
            )
        return 0

    def _cmd_invoice(self, args: argparse.Namespace) -> int:
        """Generate invoice outputs."""
        transformer = InvoiceTransformer(default_invoice_config(), run_date=args.run_date)
        result = transformer.transform(
            read_rows(args.previous),
            read_rows(args.current),
            [read_rows(path) for path in args.invoice_detail],
        )

        out: Path = args.output_dir
        out.mkdir(parents=True, exist_ok=True)
        outputs = {
            "main_invoice_detail.csv": (
                records_to_rows(result.main_invoice_detail), INVOICE_DETAIL_COLUMNS
            ),
            "main_invoice.csv": (result.main_invoice_csv, SUPPLIER_INVOICE_COLUMNS),
            "main_productivity.csv": (result.main_productivity_csv, PRODUCTIVITY_COLUMNS),
        }
        if result.has_microhospitals:
            outputs.update(
                {
                    "micro_invoice_detail.csv": (
                        records_to_rows(result.micro_invoice_detail), INVOICE_DETAIL_COLUMNS
                    ),
                    "micro_invoice.csv": (result.micro_invoice_csv, SUPPLIER_INVOICE_COLUMNS),
                    "micro_productivity.csv": (
                        result.micro_productivity_csv, PRODUCTIVITY_COLUMNS
                    ),
                }
            )

        for name, (rows, columns) in outputs.items():
            (out / name).write_text(to_csv(rows, columns), encoding="utf-8")

        print(f"Invoice {result.invoice_number}: {len(result.main_invoice_detail)} lines")
        if result.has_microhospitals:
            print(
                f"Micro invoice {result.micro_invoice_number}: "
                f"{len(result.micro_invoice_detail)} lines"
            )
        return 0


def main() -> int:
    """CLI entry point."""
    cli = TimecardCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
