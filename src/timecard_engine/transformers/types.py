"""Type definitions for the payroll and invoice pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from timecard_engine.transformers.configuration import ShiftType

Row = dict[str, Any]

BLANK = " "


class PunchSource(str, Enum):
    """Which extract a punch was read from."""

    TIMECARD = "timecard"
    MANUAL_ADD = "manual_add"


class RejectionReason(str, Enum):
    """Why a punch was dropped from payroll output."""

    MISSING_INTERNAL_ID = "missing_internal_id"
    MISSING_CLOCK_GUID = "missing_clock_guid"


@dataclass(frozen=True)
class Punch:
    """Canonical clock-in/clock-out event, coerced once at ingestion."""

    source: PunchSource
    row_index: int
    employee_external_id: str
    clock_guid: str
    raw_hours: Decimal
    lunch_answer: str = ""
    first_name: str = ""
    last_name: str = ""
    pay_code: str = ""
    in_date: date | None = None
    in_minute: int | None = None
    out_date: date | None = None
    out_minute: int | None = None
    company: str = ""
    company_description: str = ""
    cost_center: str = ""
    cost_center_description: str = ""
    department: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class PayrollLine:
    """A punch as it moves through the payroll stages.

    Each stage returns new instances; fields are filled in stage order.
    """

    punch: Punch
    internal_id: str = ""
    lunch_deduction: Decimal = Decimal("0")
    pay_hours: Decimal = Decimal("0")
    shift_type: ShiftType = ShiftType.DAY
    pay_rate: Decimal = Decimal("0")
    pay_code: str = ""
    timecard_id: str = ""
    in_time: str = ""
    out_time: str = ""
    approver: str = ""
    facility_label: str = ""
    shift_id: str = ""
    person_name: str = ""
    incentive_total: Decimal = Decimal("0")
    incentive_descriptions: tuple[str, ...] = ()
    adjusted_period_start: date | None = None
    adjusted_period_end: date | None = None


PAYROLL_COLUMNS: tuple[str, ...] = (
    "Employee ID",
    "Pay Code",
    "Pay Hours",
    "Pay Rate",
    "Blank",
    "Lookup TNAA",
    "Adjusted Pay Rate Date Start",
    "Adjusted Pay Rate Date End",
    "Timecard ID",
    "Meta Info",
    "Lookup Shift ID",
    "Lookup Person Name",
    "In-Clocking Date",
    "In-Clocking Time",
    "Out-Clocking Date",
    "Out-Clocking Time",
    "Approver",
    "Company",
    "Company Description",
    "Cost Center",
    "Cost Center Description",
)


@dataclass(frozen=True)
class PayrollOutputRecord:
    """Canonical payroll import line."""

    employee_id: str
    pay_code: str
    pay_hours: str
    pay_rate: str
    lookup_tnaa: str
    timecard_id: str
    meta_info: str
    person_name: str
    in_date: str
    in_time: str
    out_date: str
    out_time: str
    approver: str
    company: str
    company_description: str
    cost_center: str
    cost_center_description: str
    lookup_shift_id: str = BLANK
    adjusted_period_start: str = BLANK
    adjusted_period_end: str = BLANK
    blank: str = BLANK

    # Audit fields, not part of the import column set
    has_incentive: bool = False
    incentive_total: str = "0.00"
    incentive_description: str = ""
    is_outside_pay_period: bool = False

    def to_row(self) -> dict[str, str]:
        """Render the fixed payroll import column set."""
        return {
            "Employee ID": self.employee_id,
            "Pay Code": self.pay_code,
            "Pay Hours": self.pay_hours,
            "Pay Rate": self.pay_rate,
            "Blank": self.blank,
            "Lookup TNAA": self.lookup_tnaa,
            "Adjusted Pay Rate Date Start": self.adjusted_period_start,
            "Adjusted Pay Rate Date End": self.adjusted_period_end,
            "Timecard ID": self.timecard_id,
            "Meta Info": self.meta_info,
            "Lookup Shift ID": self.lookup_shift_id,
            "Lookup Person Name": self.person_name,
            "In-Clocking Date": self.in_date,
            "In-Clocking Time": self.in_time,
            "Out-Clocking Date": self.out_date,
            "Out-Clocking Time": self.out_time,
            "Approver": self.approver,
            "Company": self.company,
            "Company Description": self.company_description,
            "Cost Center": self.cost_center,
            "Cost Center Description": self.cost_center_description,
        }

    def to_dict(self) -> dict[str, Any]:
        """Import columns plus the incentive and pay-period audit flags."""
        row: dict[str, Any] = dict(self.to_row())
        row["hasIncentive"] = self.has_incentive
        row["incentiveTotal"] = self.incentive_total
        row["incentiveDescription"] = self.incentive_description
        row["isOutsidePayPeriod"] = self.is_outside_pay_period
        return row


@dataclass(frozen=True)
class RowRejection:
    """One input row excluded from payroll output."""

    source: PunchSource
    row_index: int
    employee_external_id: str
    reason: RejectionReason

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.value,
            "rowIndex": self.row_index,
            "employeeId": self.employee_external_id,
            "reason": self.reason.value,
        }


@dataclass
class PayrollTransformResult:
    """Output of one payroll run."""

    records: list[PayrollOutputRecord]
    rejections: list[RowRejection] = field(default_factory=list)

    @property
    def record_count(self) -> int:
        return len(self.records)

    @property
    def rejected_count(self) -> int:
        return len(self.rejections)


# ============================================================================
# Invoice types
# ============================================================================


@dataclass(frozen=True)
class InvoiceLine:
    """A previously-paid shift as it moves through the invoice stages."""

    employee_id: str
    employee_name: str
    timecard_id: str
    shift_id: str
    start_date: date | None
    start_date_text: str
    end_date_text: str
    first_punch: str
    last_punch: str
    hours_worked: Decimal
    hours_text: str
    pay_code: str
    pay_rate: Decimal
    pay_rate_text: str
    approver: str
    dept_number: str
    dept_name: str
    fac_id: str
    fac_name: str
    stogo_fac_id: str
    pay_type: str = ""
    total_staff_pay: Decimal = Decimal("0")
    date_of_invoice: str = ""
    prior_invoice_number: str = ""
    flex_fee_per_hour: Decimal = Decimal("0")
    total_flex_fee: Decimal = Decimal("0")
    total_shift_fee: Decimal = Decimal("0")

    @property
    def facility_key(self) -> str:
        """Facility used for micro-hospital routing."""
        return self.stogo_fac_id or self.fac_id


INVOICE_DETAIL_COLUMNS: tuple[str, ...] = (
    "Timecard ID",
    "Shift ID",
    "Employee ID",
    "Employee Name",
    "Start Date of Shift",
    "First Punch",
    "End Date of Shift",
    "Last Punch",
    "Fac ID",
    "Fac Name",
    "Stogo Fac ID",
    "Dept #",
    "Dept Name",
    "Shift Approver",
    "Hours Worked",
    "Pay Rate",
    "Pay Type",
    "Total Staff Pay",
    "Flex Fee Per Hour",
    "Total Flex Fee",
    "Total Shift Fee",
    "Invoice Number",
    "Date of Invoice",
    "Pay Period End",
)

SUPPLIER_INVOICE_COLUMNS: tuple[str, ...] = (
    "Supplier Invoice Number",
    "Invoice Date",
    "Line Item Number",
    "Unit Cost",
    "Quantity",
    "Extended Amount",
    "Cost Center",
    "Spend Category",
    "Memo",
    "Employee Name",
    "Shift Date",
    "Pay Type",
)

PRODUCTIVITY_COLUMNS: tuple[str, ...] = (
    "Journal Key",
    "Cost Center Worktag",
    "Statistical Account Code",
    "Hours",
    "Line Memo",
    "Employee Name",
    "Shift Date",
    "Facility",
)


@dataclass(frozen=True)
class InvoiceOutputRecord:
    """Billable invoice detail line."""

    timecard_id: str
    shift_id: str
    employee_id: str
    employee_name: str
    start_date: str
    first_punch: str
    end_date: str
    last_punch: str
    fac_id: str
    fac_name: str
    stogo_fac_id: str
    dept_number: str
    dept_name: str
    approver: str
    hours_worked: str
    pay_rate: str
    pay_type: str
    total_staff_pay: str
    flex_fee_per_hour: str
    total_flex_fee: str
    total_shift_fee: str
    invoice_number: str
    date_of_invoice: str
    pay_period_end: str
    is_micro: bool = False

    def to_row(self) -> dict[str, str]:
        return {
            "Timecard ID": self.timecard_id,
            "Shift ID": self.shift_id,
            "Employee ID": self.employee_id,
            "Employee Name": self.employee_name,
            "Start Date of Shift": self.start_date,
            "First Punch": self.first_punch,
            "End Date of Shift": self.end_date,
            "Last Punch": self.last_punch,
            "Fac ID": self.fac_id,
            "Fac Name": self.fac_name,
            "Stogo Fac ID": self.stogo_fac_id,
            "Dept #": self.dept_number,
            "Dept Name": self.dept_name,
            "Shift Approver": self.approver,
            "Hours Worked": self.hours_worked,
            "Pay Rate": self.pay_rate,
            "Pay Type": self.pay_type,
            "Total Staff Pay": self.total_staff_pay,
            "Flex Fee Per Hour": self.flex_fee_per_hour,
            "Total Flex Fee": self.total_flex_fee,
            "Total Shift Fee": self.total_shift_fee,
            "Invoice Number": self.invoice_number,
            "Date of Invoice": self.date_of_invoice,
            "Pay Period End": self.pay_period_end,
        }


@dataclass
class InvoiceGenerationResult:
    """Main and micro-hospital invoice outputs for one run."""

    main_invoice_detail: list[InvoiceOutputRecord]
    micro_invoice_detail: list[InvoiceOutputRecord]
    main_invoice_csv: list[dict[str, str]]
    micro_invoice_csv: list[dict[str, str]]
    main_productivity_csv: list[dict[str, str]]
    micro_productivity_csv: list[dict[str, str]]
    has_microhospitals: bool
    invoice_number: str
    micro_invoice_number: str

    @property
    def record_count(self) -> int:
        return len(self.main_invoice_detail) + len(self.micro_invoice_detail)
