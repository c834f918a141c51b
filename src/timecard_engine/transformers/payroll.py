"""Payroll transformation pipeline.

Stages run in a fixed order; each consumes a list and returns a new list:

1. stack the timecard and manual-add extracts
2. attach internal employee IDs from the crosswalk
3. drop punches without an internal ID
4. drop punches without a clock GUID
5. lunch deduction
6. pay hours
7. Day/Night classification, pay rate and pay code
8. timecard ID
9. time formatting
10. approver
11. output records

Facility, roster, incentive and pay-period annotations run between stage 10
and stage 11 since they depend on the classification and the internal ID.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Callable, Iterable, Sequence

from timecard_engine.transformers.coercion import (
    ZERO,
    format_decimal,
    format_minute,
    format_padded_date,
    format_short_date,
    round2,
    week_bounds,
)
from timecard_engine.transformers.configuration import (
    IncentiveRule,
    ShiftType,
    TransformerConfig,
)
from timecard_engine.transformers.crosswalk import CrosswalkResolver, strip_role_prefix
from timecard_engine.transformers.incentives import IncentiveEngine
from timecard_engine.transformers.ingestion import FieldMapping, read_punches
from timecard_engine.transformers.types import (
    BLANK,
    PayrollLine,
    PayrollOutputRecord,
    PayrollTransformResult,
    Punch,
    PunchSource,
    RejectionReason,
    Row,
    RowRejection,
)

logger = logging.getLogger(__name__)

LUNCH_TAKEN = "yes"


def sanitize_employee_id(internal_id: str) -> str:
    """Strip a leading ``NU``/``HS`` role token from an internal ID."""
    return strip_role_prefix(internal_id)


def output_cost_center(value: str) -> str:
    """Cost center without leading zeros; an all-zero code is kept as-is."""
    value = value.strip()
    return value.lstrip("0") or value


def classify_shift(punch: Punch) -> ShiftType:
    """Night iff the punch clocks out on a later calendar date than it clocked in."""
    if punch.in_date is None or punch.out_date is None:
        return ShiftType.DAY
    return ShiftType.NIGHT if punch.out_date > punch.in_date else ShiftType.DAY


class PayrollTransformer:
    """Turns timeclock punches into payroll import lines."""

    def __init__(
        self,
        config: TransformerConfig,
        incentive_rules: Sequence[IncentiveRule] = (),
        run_date: date | None = None,
        pay_period: tuple[date, date] | None = None,
        field_mapping: FieldMapping | None = None,
    ):
        self.config = config
        self.run_date = run_date or date.today()
        self.pay_period = pay_period
        self.field_mapping = field_mapping or FieldMapping()
        self.incentives = IncentiveEngine(incentive_rules, config, self.run_date)

    def transform(
        self,
        raw_timecards: Iterable[Row],
        manual_adds: Iterable[Row],
        crosswalk: CrosswalkResolver,
    ) -> PayrollTransformResult:
        """Run every stage and return output records plus rejected rows."""
        rejections: list[RowRejection] = []

        punches = self.stack(raw_timecards, manual_adds)
        lines = self.lookup_internal_ids(punches, crosswalk)
        lines = self.filter_missing_internal_id(lines, rejections)
        lines = self.filter_missing_clock_guid(lines, rejections)
        lines = self.compute_lunch(lines)
        lines = self.compute_pay_hours(lines)
        lines = self.classify_shifts(lines)
        lines = self.assign_timecard_ids(lines)
        lines = self.format_times(lines)
        lines = self.stamp_approver(lines)
        lines = self.lookup_facilities(lines, crosswalk)
        lines = self.lookup_roster(lines, crosswalk)
        lines = self.apply_incentives(lines)
        lines = self.adjust_pay_period(lines)
        records = self.to_output_records(lines)

        logger.info(
            "Payroll transform produced %d records from %d punches (%d rejected)",
            len(records),
            len(punches),
            len(rejections),
        )
        return PayrollTransformResult(records=records, rejections=rejections)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def stack(self, raw_timecards: Iterable[Row], manual_adds: Iterable[Row]) -> list[Punch]:
        """Timecards first, then manual adds, each in original order."""
        punches = read_punches(raw_timecards, self.field_mapping, PunchSource.TIMECARD)
        punches += read_punches(manual_adds, self.field_mapping, PunchSource.MANUAL_ADD)
        logger.debug("Stacked %d punches", len(punches))
        return punches

    def lookup_internal_ids(
        self, punches: list[Punch], crosswalk: CrosswalkResolver
    ) -> list[PayrollLine]:
        return [
            PayrollLine(
                punch=punch,
                internal_id=crosswalk.resolve(punch.employee_external_id) or "",
            )
            for punch in punches
        ]

    def filter_missing_internal_id(
        self, lines: list[PayrollLine], rejections: list[RowRejection]
    ) -> list[PayrollLine]:
        return self._filter(
            lines, rejections, lambda line: bool(line.internal_id.strip()),
            RejectionReason.MISSING_INTERNAL_ID,
        )

    def filter_missing_clock_guid(
        self, lines: list[PayrollLine], rejections: list[RowRejection]
    ) -> list[PayrollLine]:
        return self._filter(
            lines, rejections, lambda line: bool(line.punch.clock_guid.strip()),
            RejectionReason.MISSING_CLOCK_GUID,
        )

    def _filter(
        self,
        lines: list[PayrollLine],
        rejections: list[RowRejection],
        keep: Callable[[PayrollLine], bool],
        reason: RejectionReason,
    ) -> list[PayrollLine]:
        kept = []
        for line in lines:
            if keep(line):
                kept.append(line)
                continue
            rejections.append(
                RowRejection(
                    source=line.punch.source,
                    row_index=line.punch.row_index,
                    employee_external_id=line.punch.employee_external_id,
                    reason=reason,
                )
            )
        dropped = len(lines) - len(kept)
        if dropped:
            logger.debug("Dropped %d punches: %s", dropped, reason.value)
        return kept

    def compute_lunch(self, lines: list[PayrollLine]) -> list[PayrollLine]:
        deduction = self.config.lunch_time_hours
        return [
            replace(
                line,
                lunch_deduction=(
                    deduction
                    if line.punch.lunch_answer.strip().lower() == LUNCH_TAKEN
                    else ZERO
                ),
            )
            for line in lines
        ]

    def compute_pay_hours(self, lines: list[PayrollLine]) -> list[PayrollLine]:
        # Negative results are kept as-is
        return [
            replace(line, pay_hours=round2(line.punch.raw_hours - line.lunch_deduction))
            for line in lines
        ]

    def classify_shifts(self, lines: list[PayrollLine]) -> list[PayrollLine]:
        result = []
        for line in lines:
            shift_type = classify_shift(line.punch)
            result.append(
                replace(
                    line,
                    shift_type=shift_type,
                    pay_rate=self.config.pay_rate_for(shift_type),
                    pay_code=self.config.pay_code_for(shift_type),
                )
            )
        return result

    def assign_timecard_ids(self, lines: list[PayrollLine]) -> list[PayrollLine]:
        return [replace(line, timecard_id=line.punch.clock_guid) for line in lines]

    def format_times(self, lines: list[PayrollLine]) -> list[PayrollLine]:
        return [
            replace(
                line,
                in_time=format_minute(line.punch.in_minute),
                out_time=format_minute(line.punch.out_minute),
            )
            for line in lines
        ]

    def stamp_approver(self, lines: list[PayrollLine]) -> list[PayrollLine]:
        return [replace(line, approver=self.config.approver_name) for line in lines]

    def lookup_facilities(
        self, lines: list[PayrollLine], crosswalk: CrosswalkResolver
    ) -> list[PayrollLine]:
        return [
            replace(
                line,
                facility_label=crosswalk.resolve_facility(
                    line.punch.company, line.punch.cost_center, line.punch.department
                ),
            )
            for line in lines
        ]

    def lookup_roster(
        self, lines: list[PayrollLine], crosswalk: CrosswalkResolver
    ) -> list[PayrollLine]:
        """Shift ID and display name from the shift roster."""
        if not crosswalk.has_shift_roster:
            return [replace(line, person_name=line.punch.full_name) for line in lines]
        result = []
        for line in lines:
            name = crosswalk.lookup_person_name(line.internal_id) or line.punch.full_name
            result.append(
                replace(
                    line,
                    shift_id=crosswalk.lookup_shift_id(line.internal_id, line.punch.in_date),
                    person_name=name,
                )
            )
        return result

    def apply_incentives(self, lines: list[PayrollLine]) -> list[PayrollLine]:
        result = []
        matched = 0
        for line in lines:
            incentive = self.incentives.evaluate(line.punch, line.shift_type)
            if incentive.matched:
                matched += 1
            result.append(
                replace(
                    line,
                    incentive_total=incentive.total,
                    incentive_descriptions=incentive.descriptions,
                )
            )
        if matched:
            logger.debug("Incentives matched %d of %d punches", matched, len(lines))
        return result

    def adjust_pay_period(self, lines: list[PayrollLine]) -> list[PayrollLine]:
        """Flag punches whose Sunday-Saturday week is not the selected period."""
        if self.pay_period is None:
            return lines
        result = []
        for line in lines:
            if line.punch.in_date is None:
                result.append(line)
                continue
            week = week_bounds(line.punch.in_date)
            if week == tuple(self.pay_period):
                result.append(line)
                continue
            result.append(
                replace(line, adjusted_period_start=week[0], adjusted_period_end=week[1])
            )
        return result

    def to_output_records(self, lines: list[PayrollLine]) -> list[PayrollOutputRecord]:
        meta_info = format_short_date(self.run_date)
        records = []
        for line in lines:
            punch = line.punch
            outside = line.adjusted_period_start is not None
            records.append(
                PayrollOutputRecord(
                    employee_id=sanitize_employee_id(line.internal_id),
                    pay_code=line.pay_code,
                    pay_hours=format_decimal(line.pay_hours),
                    pay_rate=format_decimal(line.pay_rate),
                    lookup_tnaa=line.facility_label or BLANK,
                    timecard_id=line.timecard_id,
                    meta_info=meta_info,
                    person_name=line.person_name or BLANK,
                    in_date=format_short_date(punch.in_date),
                    in_time=line.in_time,
                    out_date=format_short_date(punch.out_date),
                    out_time=line.out_time,
                    approver=line.approver,
                    company=punch.company,
                    company_description=punch.company_description,
                    cost_center=output_cost_center(punch.cost_center),
                    cost_center_description=punch.cost_center_description,
                    lookup_shift_id=line.shift_id or BLANK,
                    adjusted_period_start=(
                        format_padded_date(line.adjusted_period_start) if outside else BLANK
                    ),
                    adjusted_period_end=(
                        format_padded_date(line.adjusted_period_end) if outside else BLANK
                    ),
                    has_incentive=bool(line.incentive_descriptions),
                    incentive_total=format_decimal(round2(line.incentive_total)),
                    incentive_description="; ".join(line.incentive_descriptions),
                    is_outside_pay_period=outside,
                )
            )
        return records
