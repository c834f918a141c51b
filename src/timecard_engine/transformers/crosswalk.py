"""Employee, facility and shift-roster lookups."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from timecard_engine.transformers.coercion import to_date, to_text
from timecard_engine.transformers.types import Row

logger = logging.getLogger(__name__)

CROSSWALK_KEY_COLUMN = "EEID"
CROSSWALK_VALUE_COLUMNS = ("Employee Number", "Lookup *Employee Number")
FACILITY_KEY_COLUMN = "Facility Code"
FACILITY_VALUE_COLUMN = "TNAA"

_ROLE_PREFIX = re.compile(r"^(NU|HS)", re.IGNORECASE)
_LABEL_PREFIX = re.compile(r"^HS\s*")


def strip_role_prefix(value: str) -> str:
    """Drop a leading ``NU``/``HS`` role token, in any case."""
    return _ROLE_PREFIX.sub("", value.strip()).strip()


def normalize_person_id(value: str) -> str:
    """Uppercase an ID and drop a leading ``NU``/``HS`` role token."""
    return strip_role_prefix(value).upper()


@dataclass(frozen=True)
class CrosswalkEntry:
    """Client employee ID to internal employee ID."""

    client_employee_id: str
    internal_employee_id: str


@dataclass(frozen=True)
class ShiftRosterEntry:
    """One scheduled shift from the roster extract."""

    person_id: str
    person_name: str
    shift_id: str
    shift_date: date | None

    @classmethod
    def from_row(cls, row: Row) -> ShiftRosterEntry:
        start = to_text(row.get("start_date_time"))
        return cls(
            person_id=to_text(row.get("Person ID")),
            person_name=to_text(row.get("Person Name")),
            shift_id=to_text(row.get("Shift ID")),
            shift_date=to_date(start.split(" ")[0]) if start else None,
        )


class CrosswalkResolver:
    """Resolves client identifiers to internal identifiers.

    Matching is exact string equality on the crosswalk key. When the
    crosswalk holds duplicate keys the first entry wins.
    """

    def __init__(
        self,
        entries: Iterable[CrosswalkEntry],
        facility_labels: dict[str, str] | None = None,
        shifts: Iterable[ShiftRosterEntry] = (),
    ):
        self._employees: dict[str, str] = {}
        duplicates = 0
        for entry in entries:
            if entry.client_employee_id in self._employees:
                duplicates += 1
                continue
            self._employees[entry.client_employee_id] = entry.internal_employee_id
        if duplicates:
            logger.warning("Crosswalk has %d duplicate keys; first match kept", duplicates)

        self._facilities = dict(facility_labels or {})
        self._shifts = [s for s in shifts if s.person_id]

    @classmethod
    def from_rows(
        cls,
        crosswalk_rows: Iterable[Row],
        facility_rows: Iterable[Row] = (),
        shift_rows: Iterable[Row] = (),
    ) -> CrosswalkResolver:
        """Build a resolver from uploaded crosswalk and roster extracts."""
        entries = []
        for row in crosswalk_rows:
            value = ""
            for column in CROSSWALK_VALUE_COLUMNS:
                value = to_text(row.get(column))
                if value:
                    break
            entries.append(
                CrosswalkEntry(
                    client_employee_id=to_text(row.get(CROSSWALK_KEY_COLUMN)),
                    internal_employee_id=value,
                )
            )
        return cls.from_entries(entries, facility_rows, shift_rows)

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[CrosswalkEntry],
        facility_rows: Iterable[Row] = (),
        shift_rows: Iterable[Row] = (),
    ) -> CrosswalkResolver:
        """Build a resolver from known entries plus facility and roster extracts."""
        facility_labels: dict[str, str] = {}
        for row in facility_rows:
            code = to_text(row.get(FACILITY_KEY_COLUMN))
            if code and code not in facility_labels:
                facility_labels[code] = to_text(row.get(FACILITY_VALUE_COLUMN))

        shifts = [ShiftRosterEntry.from_row(row) for row in shift_rows]
        return cls(entries, facility_labels, shifts)

    @property
    def has_shift_roster(self) -> bool:
        return bool(self._shifts)

    def resolve(self, employee_external_id: str) -> str | None:
        """Internal employee ID for a client ID, or ``None`` when unmapped."""
        return self._employees.get(employee_external_id)

    def resolve_facility(
        self,
        company_code: str,
        cost_center: str = "",
        department: str = "",
    ) -> str:
        """Facility display label.

        Falls back through company code, cost center and department when no
        explicit facility mapping exists.
        """
        label = self._facilities.get(company_code.strip()) if company_code else None
        if not label:
            label = company_code or cost_center or department
        return _LABEL_PREFIX.sub("", label.strip())

    def lookup_shift_id(self, internal_id: str, shift_date: date | None) -> str:
        """Roster shift for this person on this calendar date, or ``""``."""
        if not internal_id or shift_date is None:
            return ""
        wanted = normalize_person_id(internal_id)
        for shift in self._shifts:
            if shift.shift_date == shift_date and normalize_person_id(shift.person_id) == wanted:
                return shift.shift_id
        return ""

    def lookup_person_name(self, internal_id: str) -> str | None:
        """Roster display name for a person, if the roster knows them."""
        if not internal_id:
            return None
        wanted = normalize_person_id(internal_id)
        for shift in self._shifts:
            if normalize_person_id(shift.person_id) == wanted and shift.person_name:
                return shift.person_name
        return None
