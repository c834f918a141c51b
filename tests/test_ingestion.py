"""Tests for the ingestion boundary."""

from datetime import date
from decimal import Decimal

import pytest

from timecard_engine.transformers.ingestion import FieldMapping, read_punch, read_punches
from timecard_engine.transformers.types import PunchSource


class TestFieldMapping:
    """Test per-client column mapping."""

    def test_defaults_follow_timeclock_headers(self):
        """Test default source columns."""
        mapping = FieldMapping()
        assert mapping.employee_external_id == "EmployeeID"
        assert mapping.clock_guid == "In-Clocking GUID"
        assert mapping.lunch_answer == "UserShiftAnswer-OutClocking"

    def test_overrides_rename_some_columns(self):
        """Test a client overriding a subset of columns."""
        mapping = FieldMapping().with_overrides({"employee_external_id": "Worker ID"})
        assert mapping.employee_external_id == "Worker ID"
        assert mapping.raw_hours == "Hours"

    def test_no_overrides_returns_same_mapping(self):
        """Test empty overrides are a no-op."""
        mapping = FieldMapping()
        assert mapping.with_overrides(None) is mapping
        assert mapping.with_overrides({}) is mapping

    def test_unknown_field_rejected(self):
        """Test overriding a non-existent canonical field."""
        with pytest.raises(ValueError, match="Unknown canonical punch fields"):
            FieldMapping().with_overrides({"shoe_size": "Shoe"})


class TestReadPunch:
    """Test row coercion into punches."""

    def test_reads_canonical_fields(self, punch_row):
        """Test a well-formed row."""
        punch = read_punch(punch_row(), FieldMapping(), PunchSource.TIMECARD, 3)

        assert punch.source == PunchSource.TIMECARD
        assert punch.row_index == 3
        assert punch.employee_external_id == "E100"
        assert punch.clock_guid == "guid-1"
        assert punch.raw_hours == Decimal("12.5")
        assert punch.in_date == date(2025, 6, 4)
        assert punch.in_minute == 7 * 60
        assert punch.out_minute == 19 * 60 + 30
        assert punch.full_name == "Dana Reyes"

    def test_malformed_cells_coerce_to_defaults(self, punch_row):
        """Test a row with bad hours and dates does not raise."""
        row = punch_row(**{"Hours": "n/a", "In-Clocking Date": "??", "In-Clocking Time": None})
        punch = read_punch(row, FieldMapping(), PunchSource.TIMECARD, 0)

        assert punch.raw_hours == Decimal("0")
        assert punch.in_date is None
        assert punch.in_minute is None

    def test_missing_columns_read_as_empty(self):
        """Test a sparse row."""
        punch = read_punch({"EmployeeID": 42.0}, FieldMapping(), PunchSource.MANUAL_ADD, 0)

        assert punch.employee_external_id == "42"
        assert punch.clock_guid == ""
        assert punch.company == ""

    def test_custom_mapping(self, punch_row):
        """Test reading through an overridden column."""
        row = punch_row()
        row["Worker ID"] = row.pop("EmployeeID")
        mapping = FieldMapping().with_overrides({"employee_external_id": "Worker ID"})

        punch = read_punch(row, mapping, PunchSource.TIMECARD, 0)

        assert punch.employee_external_id == "E100"

    def test_read_punches_preserves_order(self, punch_row):
        """Test row indexes follow input order."""
        rows = [punch_row(EmployeeID=f"E{i}") for i in range(3)]
        punches = read_punches(rows, FieldMapping(), PunchSource.TIMECARD)

        assert [p.employee_external_id for p in punches] == ["E0", "E1", "E2"]
        assert [p.row_index for p in punches] == [0, 1, 2]
