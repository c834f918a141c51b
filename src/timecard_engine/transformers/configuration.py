"""Typed, immutable transformer configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Mapping


class ShiftType(str, Enum):
    """Shift classification used for pay rates, pay codes and incentives."""

    DAY = "Day"
    NIGHT = "Night"
    BOTH = "Both"


MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class TimeRange:
    """Half-open minute-of-day window ``[start, end)``.

    ``end < start`` wraps past midnight, e.g. 19:00-07:00.
    """

    start: int
    end: int

    def __post_init__(self) -> None:
        for bound in (self.start, self.end):
            if not 0 <= bound <= MINUTES_PER_DAY:
                raise ValueError(f"Minute-of-day bound out of range: {bound}")

    @classmethod
    def from_hours(cls, start_hour: int, end_hour: int) -> TimeRange:
        """Build a window from whole hours (0-24)."""
        return cls(start=start_hour * 60, end=end_hour * 60)

    def contains(self, minute: int) -> bool:
        """Check whether a minute of day falls inside the window."""
        if self.start <= self.end:
            return self.start <= minute < self.end
        return minute >= self.start or minute < self.end


@dataclass(frozen=True)
class IncentiveRule:
    """Predicate-plus-amount record granting additional pay.

    A rule with no day, shift or time predicate matches every punch in its
    company and cost-center scope.
    """

    company: str
    cost_centers: frozenset[str]
    amount: Decimal
    description: str = ""
    day_of_week: frozenset[int] | None = None  # 0=Sunday .. 6=Saturday
    shift_type: ShiftType | None = None
    time_range: TimeRange | None = None

    def __post_init__(self) -> None:
        if self.day_of_week is not None and not self.day_of_week <= frozenset(range(7)):
            raise ValueError(f"Invalid day_of_week values: {sorted(self.day_of_week)}")


@dataclass(frozen=True)
class TransformerConfig:
    """Per-client payroll transformer configuration."""

    day_pay_rate: Decimal
    night_pay_rate: Decimal
    day_pay_code: str
    night_pay_code: str
    approver_name: str
    lunch_time_hours: Decimal
    incentives_enabled: bool
    incentive_valid_through: date | None
    version: int = 1

    def pay_rate_for(self, shift_type: ShiftType) -> Decimal:
        return self.night_pay_rate if shift_type == ShiftType.NIGHT else self.day_pay_rate

    def pay_code_for(self, shift_type: ShiftType) -> str:
        return self.night_pay_code if shift_type == ShiftType.NIGHT else self.day_pay_code

    def incentives_active_on(self, run_date: date) -> bool:
        """Incentives apply only while enabled and not past their expiry."""
        if not self.incentives_enabled:
            return False
        if self.incentive_valid_through is None:
            return True
        return run_date <= self.incentive_valid_through


DEFAULT_MICRO_FACILITY_IDS = frozenset({"1567", "1571", "1576", "1548"})
DEFAULT_PAY_TYPE_LABELS: Mapping[str, str] = {"FXDY": "Day", "FXNT": "Night"}


@dataclass(frozen=True)
class InvoiceTransformerConfig:
    """Per-client invoice transformer configuration."""

    flex_fee_rate: Decimal | None
    default_flex_fee_rate: Decimal
    invoice_number_prefix: str
    micro_invoice_number_prefix: str
    invoice_sequence_start: int | None = None
    micro_invoice_sequence_start: int | None = None
    micro_facility_ids: frozenset[str] = DEFAULT_MICRO_FACILITY_IDS
    facility_fee_rates: Mapping[str, Decimal] = field(default_factory=dict)
    pay_type_labels: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_PAY_TYPE_LABELS)
    )

    def fee_rate_for(self, facility_id: str) -> Decimal:
        """Facility override, then client rate, then the default rate."""
        override = self.facility_fee_rates.get(facility_id)
        if override is not None:
            return override
        if self.flex_fee_rate is not None:
            return self.flex_fee_rate
        return self.default_flex_fee_rate

    def is_micro_facility(self, facility_id: str) -> bool:
        return facility_id in self.micro_facility_ids


@dataclass(frozen=True)
class ClientConfiguration:
    """Everything one pipeline run needs to know about a client."""

    client_id: str
    payroll: TransformerConfig
    incentive_rules: tuple[IncentiveRule, ...]
    invoice: InvoiceTransformerConfig


def default_payroll_config() -> TransformerConfig:
    """Configuration used when a client has no persisted record."""
    return TransformerConfig(
        day_pay_rate=Decimal("58"),
        night_pay_rate=Decimal("63"),
        day_pay_code="FXDY",
        night_pay_code="FXNT",
        approver_name="Jennifer Devine",
        lunch_time_hours=Decimal("0.5"),
        incentives_enabled=True,
        incentive_valid_through=None,
    )


def default_invoice_config() -> InvoiceTransformerConfig:
    """Invoice configuration used when a client has no persisted record."""
    return InvoiceTransformerConfig(
        flex_fee_rate=Decimal("25.00"),
        default_flex_fee_rate=Decimal("25.00"),
        invoice_number_prefix="LVFLEX",
        micro_invoice_number_prefix="MICFLEX",
    )


def default_client_configuration(client_id: str) -> ClientConfiguration:
    return ClientConfiguration(
        client_id=client_id,
        payroll=default_payroll_config(),
        incentive_rules=(),
        invoice=default_invoice_config(),
    )
