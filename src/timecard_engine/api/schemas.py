"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from timecard_engine.transformers.configuration import IncentiveRule, ShiftType, TimeRange
from timecard_engine.transformers.ingestion import FieldMapping

Rows = list[dict[str, Any]]


# ============================================================================
# Incentive rule overrides
# ============================================================================


class TimeRangeSchema(BaseModel):
    """Clock-in window in whole hours; ``end < start`` wraps past midnight."""

    start: int = Field(ge=0, le=24)
    end: int = Field(ge=0, le=24)


class IncentiveRuleSchema(BaseModel):
    """Incentive rule supplied with a single request."""

    company: str
    cost_centers: list[str]
    amount: Decimal
    description: str = ""
    day_of_week: list[int] | None = None
    shift_type: ShiftType | None = None
    time_range: TimeRangeSchema | None = None

    @model_validator(mode="after")
    def check_days(self) -> "IncentiveRuleSchema":
        if self.day_of_week is not None and any(d < 0 or d > 6 for d in self.day_of_week):
            raise ValueError("day_of_week values must be 0 (Sunday) through 6 (Saturday)")
        return self

    def to_rule(self) -> IncentiveRule:
        return IncentiveRule(
            company=self.company,
            cost_centers=frozenset(self.cost_centers),
            amount=self.amount,
            description=self.description,
            day_of_week=frozenset(self.day_of_week) if self.day_of_week is not None else None,
            shift_type=self.shift_type,
            time_range=(
                TimeRange.from_hours(self.time_range.start, self.time_range.end)
                if self.time_range is not None
                else None
            ),
        )


# ============================================================================
# Payroll schemas
# ============================================================================


class PayrollGenerateRequest(BaseModel):
    """Extract rows for one payroll run."""

    client_id: str | None = None
    raw_timecards: Rows | None = None
    manual_adds: Rows | None = None
    crosswalk: Rows | None = None
    facility_crosswalk: Rows | None = None
    shifts: Rows | None = None
    pay_period_start: date | None = None
    pay_period_end: date | None = None
    incentive_rules: list[IncentiveRuleSchema] | None = None
    incentives_enabled: bool | None = None
    incentive_valid_through: date | None = None
    field_mapping: dict[str, str] | None = None
    run_date: date | None = None

    @model_validator(mode="after")
    def check_pay_period(self) -> "PayrollGenerateRequest":
        if (self.pay_period_start is None) != (self.pay_period_end is None):
            raise ValueError("pay_period_start and pay_period_end must be given together")
        if self.pay_period_start and self.pay_period_end and self.pay_period_end < self.pay_period_start:
            raise ValueError("pay_period_end must not precede pay_period_start")
        return self

    @model_validator(mode="after")
    def check_field_mapping(self) -> "PayrollGenerateRequest":
        if self.field_mapping:
            unknown = set(self.field_mapping) - set(FieldMapping.canonical_fields())
            if unknown:
                raise ValueError(f"Unknown canonical punch fields: {sorted(unknown)}")
        return self

    @property
    def pay_period(self) -> tuple[date, date] | None:
        if self.pay_period_start is None or self.pay_period_end is None:
            return None
        return self.pay_period_start, self.pay_period_end


class RejectionResponse(BaseModel):
    """Input row excluded from payroll output."""

    model_config = ConfigDict(populate_by_name=True)

    source: str
    row_index: int = Field(alias="rowIndex")
    employee_id: str = Field(alias="employeeId")
    reason: str


class PayrollGenerateResponse(BaseModel):
    """Payroll run result."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: Rows
    record_count: int = Field(alias="recordCount")
    rejected_count: int = Field(alias="rejectedCount")
    rejections: list[RejectionResponse]
    client_id: str = Field(alias="clientId")
    timestamp: datetime


# ============================================================================
# Invoice schemas
# ============================================================================


class InvoiceGenerateRequest(BaseModel):
    """Payroll output and historical invoice detail for one invoice run."""

    client_id: str | None = None
    previous_payroll: Rows | None = None
    current_payroll: Rows | None = None
    invoice_details: list[Rows | None] | None = None
    run_date: date | None = None


class InvoiceOutputs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    main_invoice_detail: Rows = Field(alias="mainInvoiceDetail")
    micro_invoice_detail: Rows = Field(alias="microInvoiceDetail")
    main_invoice_csv: Rows = Field(alias="mainInvoiceCSV")
    micro_invoice_csv: Rows = Field(alias="microInvoiceCSV")
    main_productivity_csv: Rows = Field(alias="mainProductivityCSV")
    micro_productivity_csv: Rows = Field(alias="microProductivityCSV")


class InvoiceGenerateResponse(BaseModel):
    """Invoice run result.

    ``data`` holds the main invoice detail; ``recordCount`` counts billable
    lines across the main and micro sets.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: Rows
    record_count: int = Field(
        alias="recordCount", description="Billable lines across main and micro sets"
    )
    client_id: str = Field(alias="clientId")
    timestamp: datetime
    outputs: InvoiceOutputs
    has_microhospitals: bool = Field(alias="hasMicrohospitals")
    invoice_number: str = Field(alias="invoiceNumber")
    micro_invoice_number: str = Field(alias="microInvoiceNumber")


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Error body returned by failed runs."""

    error: str
    details: str
