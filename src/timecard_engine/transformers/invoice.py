"""Invoice transformation pipeline.

Reconciles previous and current payroll output against historical invoice
detail, prices the shifts not yet invoiced and splits them into main and
micro-hospital invoice sets.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from timecard_engine.transformers.coercion import (
    ZERO,
    format_decimal,
    format_short_date,
    round2,
    to_date,
    to_decimal,
    to_text,
    week_bounds,
)
from timecard_engine.transformers.configuration import InvoiceTransformerConfig
from timecard_engine.transformers.types import (
    InvoiceGenerationResult,
    InvoiceLine,
    InvoiceOutputRecord,
    Row,
)

logger = logging.getLogger(__name__)

InvoiceKey = tuple[str, str]


def _money(value: Decimal) -> str:
    return format_decimal(round2(value))


def invoice_key(employee: str, shift_date: date | None) -> InvoiceKey | None:
    """Already-invoiced lookup key: employee identity plus ISO shift date."""
    employee = employee.strip().upper()
    if not employee or shift_date is None:
        return None
    return employee, shift_date.isoformat()


def read_payroll_line(row: Row) -> InvoiceLine:
    """Map one payroll output row onto the invoice line shape."""
    start_text = to_text(row.get("In-Clocking Date"))
    hours_text = to_text(row.get("Pay Hours"))
    rate_text = to_text(row.get("Pay Rate"))
    return InvoiceLine(
        employee_id=to_text(row.get("Employee ID")),
        employee_name=to_text(row.get("Lookup Person Name")),
        timecard_id=to_text(row.get("Timecard ID")),
        shift_id=to_text(row.get("Lookup Shift ID")),
        start_date=to_date(row.get("In-Clocking Date")),
        start_date_text=start_text,
        end_date_text=to_text(row.get("Out-Clocking Date")),
        first_punch=to_text(row.get("In-Clocking Time")),
        last_punch=to_text(row.get("Out-Clocking Time")),
        hours_worked=to_decimal(hours_text),
        hours_text=hours_text,
        pay_code=to_text(row.get("Pay Code")),
        pay_rate=to_decimal(rate_text),
        pay_rate_text=rate_text,
        approver=to_text(row.get("Approver")),
        dept_number=to_text(row.get("Cost Center")),
        dept_name=to_text(row.get("Cost Center Description")),
        fac_id=to_text(row.get("Company")),
        fac_name=to_text(row.get("Company Description")),
        stogo_fac_id=to_text(row.get("Lookup TNAA")),
    )


def build_invoiced_lookup(invoice_details: Iterable[Iterable[Row]]) -> dict[InvoiceKey, str]:
    """Merge historical invoice-detail extracts into one lookup table.

    Rows are keyed by employee ID and, separately, by employee name so a
    payroll line matches whichever identity it carries. First match wins.
    """
    lookup: dict[InvoiceKey, str] = {}
    for extract in invoice_details:
        for row in extract:
            number = to_text(row.get("Invoice Number"))
            if not number:
                continue
            shift_date = to_date(row.get("Start Date of Shift"))
            for employee in (to_text(row.get("Employee ID")), to_text(row.get("Employee Name"))):
                key = invoice_key(employee, shift_date)
                if key is not None:
                    lookup.setdefault(key, number)
    return lookup


class InvoiceTransformer:
    """Produces main and micro-hospital invoice sets from payroll output."""

    def __init__(self, config: InvoiceTransformerConfig, run_date: date | None = None):
        self.config = config
        self.run_date = run_date or date.today()

    def transform(
        self,
        previous_payroll: Iterable[Row],
        current_payroll: Iterable[Row],
        invoice_details: Sequence[Iterable[Row]],
    ) -> InvoiceGenerationResult:
        lines = self.stack(previous_payroll, current_payroll)
        stacked = len(lines)
        lines = self.compute_staff_pay(lines)
        lines = self.label_pay_types(lines)
        lines = self.stamp_invoice_date(lines)
        lines = self.lookup_prior_invoices(lines, build_invoiced_lookup(invoice_details))
        lines = self.drop_already_invoiced(lines)
        lines = self.apply_flex_fees(lines)

        invoice_number = self.invoice_number()
        micro_invoice_number = self.micro_invoice_number()
        main_lines, micro_lines = self.split_micro(lines)

        logger.info(
            "Invoice transform: %d payroll rows, %d billable (%d main, %d micro)",
            stacked,
            len(lines),
            len(main_lines),
            len(micro_lines),
        )

        return InvoiceGenerationResult(
            main_invoice_detail=self.to_detail(main_lines, invoice_number, is_micro=False),
            micro_invoice_detail=self.to_detail(micro_lines, micro_invoice_number, is_micro=True),
            main_invoice_csv=self.to_supplier_invoice(main_lines, invoice_number),
            micro_invoice_csv=self.to_supplier_invoice(micro_lines, micro_invoice_number),
            main_productivity_csv=self.to_productivity(main_lines),
            micro_productivity_csv=self.to_productivity(micro_lines),
            has_microhospitals=bool(micro_lines),
            invoice_number=invoice_number,
            micro_invoice_number=micro_invoice_number,
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def stack(
        self, previous_payroll: Iterable[Row], current_payroll: Iterable[Row]
    ) -> list[InvoiceLine]:
        lines = [read_payroll_line(row) for row in previous_payroll]
        lines += [read_payroll_line(row) for row in current_payroll]
        return lines

    def compute_staff_pay(self, lines: list[InvoiceLine]) -> list[InvoiceLine]:
        return [
            replace(line, total_staff_pay=round2(line.hours_worked * line.pay_rate))
            for line in lines
        ]

    def label_pay_types(self, lines: list[InvoiceLine]) -> list[InvoiceLine]:
        labels = self.config.pay_type_labels
        return [replace(line, pay_type=labels.get(line.pay_code, line.pay_code)) for line in lines]

    def stamp_invoice_date(self, lines: list[InvoiceLine]) -> list[InvoiceLine]:
        invoice_date = format_short_date(self.run_date)
        return [replace(line, date_of_invoice=invoice_date) for line in lines]

    def lookup_prior_invoices(
        self, lines: list[InvoiceLine], lookup: dict[InvoiceKey, str]
    ) -> list[InvoiceLine]:
        result = []
        for line in lines:
            number = ""
            for employee in (line.employee_id, line.employee_name):
                key = invoice_key(employee, line.start_date)
                if key is not None and key in lookup:
                    number = lookup[key]
                    break
            result.append(replace(line, prior_invoice_number=number))
        return result

    def drop_already_invoiced(self, lines: list[InvoiceLine]) -> list[InvoiceLine]:
        kept = [line for line in lines if not line.prior_invoice_number]
        if len(kept) != len(lines):
            logger.debug("Dropped %d already-invoiced shifts", len(lines) - len(kept))
        return kept

    def apply_flex_fees(self, lines: list[InvoiceLine]) -> list[InvoiceLine]:
        result = []
        for line in lines:
            rate = self.config.fee_rate_for(line.fac_id)
            flex_fee = round2(line.hours_worked * rate)
            result.append(
                replace(
                    line,
                    flex_fee_per_hour=rate,
                    total_flex_fee=flex_fee,
                    total_shift_fee=line.total_staff_pay + flex_fee,
                )
            )
        return result

    def invoice_number(self) -> str:
        return self._number(self.config.invoice_number_prefix, self.config.invoice_sequence_start)

    def micro_invoice_number(self) -> str:
        return self._number(
            self.config.micro_invoice_number_prefix,
            self.config.micro_invoice_sequence_start,
        )

    def _number(self, prefix: str, sequence: int | None) -> str:
        if sequence is not None:
            return f"{prefix}{sequence}"
        return f"{prefix}{self.run_date.strftime('%m%d%y')}"

    def split_micro(
        self, lines: list[InvoiceLine]
    ) -> tuple[list[InvoiceLine], list[InvoiceLine]]:
        main: list[InvoiceLine] = []
        micro: list[InvoiceLine] = []
        for line in lines:
            (micro if self.config.is_micro_facility(line.facility_key) else main).append(line)
        return main, micro

    # ------------------------------------------------------------------
    # Output shapes
    # ------------------------------------------------------------------

    def to_detail(
        self, lines: list[InvoiceLine], invoice_number: str, is_micro: bool
    ) -> list[InvoiceOutputRecord]:
        records = []
        for line in lines:
            period_end = week_bounds(line.start_date)[1] if line.start_date else None
            records.append(
                InvoiceOutputRecord(
                    timecard_id=line.timecard_id,
                    shift_id=line.shift_id,
                    employee_id=line.employee_id,
                    employee_name=line.employee_name,
                    start_date=line.start_date_text,
                    first_punch=line.first_punch,
                    end_date=line.end_date_text,
                    last_punch=line.last_punch,
                    fac_id=line.fac_id,
                    fac_name=line.fac_name,
                    stogo_fac_id=line.stogo_fac_id,
                    dept_number=line.dept_number,
                    dept_name=line.dept_name,
                    approver=line.approver,
                    hours_worked=line.hours_text,
                    pay_rate=line.pay_rate_text,
                    pay_type=line.pay_type,
                    total_staff_pay=_money(line.total_staff_pay),
                    flex_fee_per_hour=_money(line.flex_fee_per_hour),
                    total_flex_fee=_money(line.total_flex_fee),
                    total_shift_fee=_money(line.total_shift_fee),
                    invoice_number=invoice_number,
                    date_of_invoice=line.date_of_invoice,
                    pay_period_end=format_short_date(period_end),
                    is_micro=is_micro,
                )
            )
        return records

    def to_supplier_invoice(self, lines: list[InvoiceLine], invoice_number: str) -> list[dict[str, str]]:
        """Supplier invoice import rows; line items are numbered from 1 per set."""
        rows = []
        for index, line in enumerate(lines, start=1):
            if line.hours_worked == ZERO:
                unit_cost = "0.00"
            else:
                unit_cost = _money(line.total_shift_fee / line.hours_worked)
            rows.append(
                {
                    "Supplier Invoice Number": invoice_number,
                    "Invoice Date": line.date_of_invoice,
                    "Line Item Number": str(index),
                    "Unit Cost": unit_cost,
                    "Quantity": line.hours_text,
                    "Extended Amount": _money(line.total_shift_fee),
                    "Cost Center": line.dept_number,
                    "Spend Category": "",
                    "Memo": f"{line.employee_name} - {line.start_date_text} - {line.pay_type}",
                    "Employee Name": line.employee_name,
                    "Shift Date": line.start_date_text,
                    "Pay Type": line.pay_type,
                }
            )
        return rows

    def to_productivity(self, lines: list[InvoiceLine]) -> list[dict[str, str]]:
        return [
            {
                "Journal Key": "",
                "Cost Center Worktag": line.dept_number,
                "Statistical Account Code": "",
                "Hours": line.hours_text,
                "Line Memo": f"{line.employee_name} - {line.start_date_text}",
                "Employee Name": line.employee_name,
                "Shift Date": line.start_date_text,
                "Facility": line.fac_name,
            }
            for line in lines
        ]
