"""Ingestion boundary: maps client rows onto the canonical punch shape."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Iterable, Mapping

from timecard_engine.transformers.coercion import (
    to_date,
    to_decimal,
    to_minute_of_day,
    to_text,
)
from timecard_engine.transformers.types import Punch, PunchSource, Row

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldMapping:
    """Source column name for each canonical punch field.

    Defaults follow the timeclock export headers; clients override only the
    columns their extract names differently.
    """

    employee_external_id: str = "EmployeeID"
    first_name: str = "FirstName"
    last_name: str = "LastName"
    clock_guid: str = "In-Clocking GUID"
    raw_hours: str = "Hours"
    pay_code: str = "Paycode"
    in_date: str = "In-Clocking Date"
    in_time: str = "In-Clocking Time"
    out_date: str = "Out-Clocking Date"
    out_time: str = "Out-Clocking Time"
    lunch_answer: str = "UserShiftAnswer-OutClocking"
    company: str = "Company"
    company_description: str = "Company Description"
    cost_center: str = "Cost Center"
    cost_center_description: str = "Cost Center Description"
    department: str = "Department"

    @classmethod
    def canonical_fields(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def with_overrides(self, overrides: Mapping[str, str] | None) -> FieldMapping:
        """Return a mapping with some source columns renamed."""
        if not overrides:
            return self
        unknown = set(overrides) - set(self.canonical_fields())
        if unknown:
            raise ValueError(f"Unknown canonical punch fields: {sorted(unknown)}")
        return replace(self, **overrides)


def _cell(row: Row, column: str) -> Any:
    return row.get(column)


def read_punch(row: Row, mapping: FieldMapping, source: PunchSource, row_index: int) -> Punch:
    """Coerce one raw row into a :class:`Punch`. Never raises on bad cells."""
    return Punch(
        source=source,
        row_index=row_index,
        employee_external_id=to_text(_cell(row, mapping.employee_external_id)),
        clock_guid=to_text(_cell(row, mapping.clock_guid)),
        raw_hours=to_decimal(_cell(row, mapping.raw_hours)),
        lunch_answer=to_text(_cell(row, mapping.lunch_answer)),
        first_name=to_text(_cell(row, mapping.first_name)),
        last_name=to_text(_cell(row, mapping.last_name)),
        pay_code=to_text(_cell(row, mapping.pay_code)),
        in_date=to_date(_cell(row, mapping.in_date)),
        in_minute=to_minute_of_day(_cell(row, mapping.in_time)),
        out_date=to_date(_cell(row, mapping.out_date)),
        out_minute=to_minute_of_day(_cell(row, mapping.out_time)),
        company=to_text(_cell(row, mapping.company)),
        company_description=to_text(_cell(row, mapping.company_description)),
        cost_center=to_text(_cell(row, mapping.cost_center)),
        cost_center_description=to_text(_cell(row, mapping.cost_center_description)),
        department=to_text(_cell(row, mapping.department)),
    )


def read_punches(
    rows: Iterable[Row],
    mapping: FieldMapping,
    source: PunchSource,
) -> list[Punch]:
    """Read an extract, preserving row order."""
    punches = [read_punch(row, mapping, source, index) for index, row in enumerate(rows)]
    logger.debug("Read %d %s punches", len(punches), source.value)
    return punches
