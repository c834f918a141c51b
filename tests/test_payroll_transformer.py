"""Tests for the payroll transformation pipeline."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from timecard_engine.transformers.configuration import (
    IncentiveRule,
    ShiftType,
    default_payroll_config,
)
from timecard_engine.transformers.crosswalk import CrosswalkResolver
from timecard_engine.transformers.payroll import PayrollTransformer, sanitize_employee_id
from timecard_engine.transformers.types import BLANK, PAYROLL_COLUMNS, RejectionReason

RUN_DATE = date(2025, 6, 10)


@pytest.fixture
def crosswalk(crosswalk_rows) -> CrosswalkResolver:
    return CrosswalkResolver.from_rows(crosswalk_rows)


@pytest.fixture
def transformer() -> PayrollTransformer:
    return PayrollTransformer(default_payroll_config(), run_date=RUN_DATE)


def night_row(punch_row, **overrides):
    values = {
        "Hours": "8",
        "In-Clocking Date": "2025-12-31",
        "In-Clocking Time": "22:00",
        "Out-Clocking Date": "2026-01-01",
        "Out-Clocking Time": "06:00",
        "UserShiftAnswer-OutClocking": "No",
    }
    values.update(overrides)
    return punch_row(**values)


class TestPayHours:
    """Test lunch deduction and pay hours."""

    def test_lunch_taken_deducts_half_hour(self, transformer, crosswalk, punch_row):
        """Test 12.5 hours with lunch taken."""
        result = transformer.transform([punch_row()], [], crosswalk)
        assert result.records[0].pay_hours == "12.00"

    def test_lunch_answer_is_case_insensitive(self, transformer, crosswalk, punch_row):
        """Test padded lowercase answer."""
        row = punch_row(**{"UserShiftAnswer-OutClocking": "  yes "})
        result = transformer.transform([row], [], crosswalk)
        assert result.records[0].pay_hours == "12.00"

    def test_no_lunch(self, transformer, crosswalk, punch_row):
        """Test any other answer deducts nothing."""
        row = punch_row(**{"UserShiftAnswer-OutClocking": "No"})
        result = transformer.transform([row], [], crosswalk)
        assert result.records[0].pay_hours == "12.50"

    def test_short_punch_can_go_negative(self, transformer, crosswalk, punch_row):
        """Test pay hours are not clamped at zero."""
        result = transformer.transform([punch_row(Hours="0.25")], [], crosswalk)
        assert result.records[0].pay_hours == "-0.25"


class TestShiftClassification:
    """Test Day/Night classification and pay lookups."""

    def test_day_shift(self, transformer, crosswalk, punch_row):
        """Test a same-day punch."""
        record = transformer.transform([punch_row()], [], crosswalk).records[0]
        assert record.pay_code == "FXDY"
        assert record.pay_rate == "58"

    def test_overnight_shift(self, transformer, crosswalk, punch_row):
        """Test a punch crossing midnight and the year boundary."""
        record = transformer.transform([night_row(punch_row)], [], crosswalk).records[0]

        assert record.pay_code == "FXNT"
        assert record.pay_rate == "63"
        assert record.pay_hours == "8.00"
        assert record.in_date == "12/31/25"
        assert record.out_date == "1/1/26"
        assert record.in_time == "22:00"
        assert record.out_time == "06:00"

    def test_late_day_shift_stays_day(self, transformer, crosswalk, punch_row):
        """Test classification ignores clock times."""
        row = punch_row(**{"In-Clocking Time": "19:00", "Out-Clocking Time": "23:30"})
        record = transformer.transform([row], [], crosswalk).records[0]
        assert record.pay_code == "FXDY"


class TestFiltering:
    """Test rows dropped from output."""

    def test_missing_crosswalk_entry_is_rejected(self, transformer, crosswalk, punch_row):
        """Test unmapped employees are excluded and reported."""
        rows = [punch_row(), punch_row(EmployeeID="E999")]
        result = transformer.transform(rows, [], crosswalk)

        assert result.record_count == 1
        assert result.rejected_count == 1
        rejection = result.rejections[0]
        assert rejection.reason == RejectionReason.MISSING_INTERNAL_ID
        assert rejection.row_index == 1
        assert rejection.employee_external_id == "E999"

    def test_missing_guid_is_rejected(self, transformer, crosswalk, punch_row):
        """Test punches without a clock GUID."""
        manual = punch_row(**{"In-Clocking GUID": "  "})
        result = transformer.transform([punch_row()], [manual], crosswalk)

        assert result.record_count == 1
        assert result.rejections[0].reason == RejectionReason.MISSING_CLOCK_GUID
        assert result.rejections[0].to_dict() == {
            "source": "manual_add",
            "rowIndex": 0,
            "employeeId": "E100",
            "reason": "missing_clock_guid",
        }

    def test_oversized_hours_do_not_abort_batch(self, transformer, crosswalk, punch_row):
        """Test an absurd hours cell coerces to zero without losing other rows."""
        rows = [punch_row(), punch_row(Hours="1e30", **{"In-Clocking GUID": "guid-2"})]
        result = transformer.transform(rows, [], crosswalk)

        assert [r.pay_hours for r in result.records] == ["12.00", "-0.50"]
        assert result.rejections == []

    def test_empty_inputs(self, transformer, crosswalk):
        """Test no rows in, no rows out."""
        result = transformer.transform([], [], crosswalk)
        assert result.records == []
        assert result.rejections == []


class TestOutputRecords:
    """Test the rendered payroll import line."""

    def test_employee_id_is_sanitized(self, transformer, crosswalk, punch_row):
        """Test role tokens are removed from internal IDs."""
        rows = [punch_row(), punch_row(EmployeeID="E200", **{"In-Clocking GUID": "guid-2"})]
        records = transformer.transform(rows, [], crosswalk).records
        assert [r.employee_id for r in records] == ["5001", "5002"]

    def test_sanitize_employee_id(self):
        assert sanitize_employee_id("NU5001") == "5001"
        assert sanitize_employee_id("HS5002 ") == "5002"
        assert sanitize_employee_id("7777") == "7777"

    def test_only_leading_role_token_is_stripped(self):
        """Test the role token is matched at the start, in any case."""
        assert sanitize_employee_id("nu5001") == "5001"
        assert sanitize_employee_id("50NU1") == "50NU1"
        assert sanitize_employee_id("HS12HS") == "12HS"

    def test_cost_center_leading_zeros(self, transformer, crosswalk, punch_row):
        """Test leading zeros are dropped unless the code is all zeros."""
        rows = [
            punch_row(**{"Cost Center": "000"}),
            punch_row(**{"Cost Center": "0042", "In-Clocking GUID": "guid-2"}),
        ]
        records = transformer.transform(rows, [], crosswalk).records
        assert [r.cost_center for r in records] == ["000", "42"]

    def test_timecards_precede_manual_adds(self, transformer, crosswalk, punch_row):
        """Test stacking order."""
        manual = punch_row(**{"In-Clocking GUID": "manual-1"})
        timecard = punch_row(**{"In-Clocking GUID": "timecard-1"})
        records = transformer.transform([timecard], [manual], crosswalk).records
        assert [r.timecard_id for r in records] == ["timecard-1", "manual-1"]

    def test_static_fields(self, transformer, crosswalk, punch_row):
        """Test meta info, approver and passthrough columns."""
        record = transformer.transform([punch_row()], [], crosswalk).records[0]

        assert record.meta_info == "6/10/25"
        assert record.approver == "Jennifer Devine"
        assert record.timecard_id == "guid-1"
        assert record.lookup_tnaa == "100402"
        assert record.person_name == "Dana Reyes"
        assert record.cost_center == "9343"
        assert record.company_description == "Lehigh Valley Hospital"

    def test_empty_optional_fields_are_blank(self, transformer, crosswalk, punch_row):
        """Test unresolved optional columns render as a single space."""
        record = transformer.transform([punch_row()], [], crosswalk).records[0]
        row = record.to_row()

        assert list(row) == list(PAYROLL_COLUMNS)
        assert row["Blank"] == BLANK
        assert row["Lookup Shift ID"] == BLANK
        assert row["Adjusted Pay Rate Date Start"] == BLANK
        assert row["Adjusted Pay Rate Date End"] == BLANK

    def test_roster_lookups(self, transformer, crosswalk_rows, punch_row):
        """Test shift ID and display name come from the roster."""
        crosswalk = CrosswalkResolver.from_rows(
            crosswalk_rows,
            shift_rows=[
                {
                    "Person ID": "5001",
                    "Person Name": "Reyes, Dana",
                    "Shift ID": "SH-77",
                    "start_date_time": "06/04/25 07:00 AM",
                }
            ],
        )
        record = transformer.transform([punch_row()], [], crosswalk).records[0]

        assert record.lookup_shift_id == "SH-77"
        assert record.person_name == "Reyes, Dana"


class TestPayPeriod:
    """Test adjusted pay period dates."""

    def test_punch_outside_pay_period(self, crosswalk, punch_row):
        """Test an earlier week gets its own Sunday-Saturday dates."""
        transformer = PayrollTransformer(
            default_payroll_config(),
            run_date=RUN_DATE,
            pay_period=(date(2025, 6, 8), date(2025, 6, 14)),
        )
        rows = [
            punch_row(),
            punch_row(**{"In-Clocking Date": "2025-06-10", "Out-Clocking Date": "2025-06-10"}),
        ]
        outside, inside = transformer.transform(rows, [], crosswalk).records

        assert outside.adjusted_period_start == "06/01/25"
        assert outside.adjusted_period_end == "06/07/25"
        assert outside.is_outside_pay_period
        assert inside.adjusted_period_start == BLANK
        assert not inside.is_outside_pay_period


class TestIncentives:
    """Test incentive annotation."""

    @pytest.fixture
    def icu_night_rule(self) -> IncentiveRule:
        return IncentiveRule(
            company="100402",
            cost_centers=frozenset({"9343"}),
            amount=Decimal("2.0"),
            description="ICU nights",
            shift_type=ShiftType.NIGHT,
        )

    def test_matching_night_shift(self, crosswalk, punch_row, icu_night_rule):
        """Test the incentive is reported without changing the pay rate."""
        transformer = PayrollTransformer(
            default_payroll_config(), incentive_rules=[icu_night_rule], run_date=RUN_DATE
        )
        record = transformer.transform([night_row(punch_row)], [], crosswalk).records[0]

        assert record.has_incentive
        assert record.incentive_total == "2.00"
        assert record.incentive_description == "ICU nights"
        assert record.pay_rate == "63"
        assert record.to_dict()["incentiveTotal"] == "2.00"

    def test_day_shift_not_matched(self, crosswalk, punch_row, icu_night_rule):
        transformer = PayrollTransformer(
            default_payroll_config(), incentive_rules=[icu_night_rule], run_date=RUN_DATE
        )
        record = transformer.transform([punch_row()], [], crosswalk).records[0]

        assert not record.has_incentive
        assert record.incentive_total == "0.00"

    def test_expired_rules_ignored(self, crosswalk, punch_row, icu_night_rule):
        config = replace(default_payroll_config(), incentive_valid_through=date(2025, 6, 1))
        transformer = PayrollTransformer(
            config, incentive_rules=[icu_night_rule], run_date=RUN_DATE
        )
        record = transformer.transform([night_row(punch_row)], [], crosswalk).records[0]

        assert not record.has_incentive
