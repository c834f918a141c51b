"""Tests for persisted configuration resolution."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from timecard_engine.exceptions import TransformError
from timecard_engine.models import (
    EmployeeCrosswalkRecord,
    IncentiveRuleRecord,
    InvoiceTransformerConfigRecord,
    PayrollTransformerConfigRecord,
)
from timecard_engine.services.config_resolver import ConfigResolver, apply_incentive_overrides
from timecard_engine.transformers.configuration import (
    DEFAULT_MICRO_FACILITY_IDS,
    IncentiveRule,
    ShiftType,
    TimeRange,
    default_client_configuration,
)


class UnavailableSession:
    """Session stand-in whose queries always fail."""

    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


class TestDefaults:
    """Test fallback to default configuration."""

    async def test_unknown_client_uses_defaults(self, session):
        """Test a client with no persisted records."""
        configuration = await ConfigResolver(session).resolve("missing")

        assert configuration.client_id == "missing"
        assert configuration.payroll.day_pay_rate == Decimal("58")
        assert configuration.payroll.night_pay_code == "FXNT"
        assert configuration.incentive_rules == ()
        assert configuration.invoice.invoice_number_prefix == "LVFLEX"

    async def test_database_failure_uses_defaults(self):
        """Test lookup errors never abort a run."""
        configuration = await ConfigResolver(UnavailableSession()).resolve("1")

        assert configuration.payroll.lunch_time_hours == Decimal("0.5")
        assert configuration.incentive_rules == ()
        assert configuration.invoice.default_flex_fee_rate == Decimal("25.00")

    async def test_crosswalk_failure_is_fatal(self):
        """Test an unreadable crosswalk raises."""
        with pytest.raises(TransformError) as exc_info:
            await ConfigResolver(UnavailableSession()).load_crosswalk("1")
        assert exc_info.value.summary == "Error loading crosswalk"


class TestPersistedConfiguration:
    """Test mapping of persisted records."""

    async def test_payroll_config(self, session, test_client_record):
        """Test payroll rates and incentive settings."""
        session.add(
            PayrollTransformerConfigRecord(
                client_id="1",
                day_pay_rate=Decimal("60.00"),
                night_pay_rate=Decimal("65.00"),
                day_pay_code="DAY",
                night_pay_code="NGT",
                approver_name="Pat Lee",
                lunch_time_hours=Decimal("1.00"),
                incentives_enabled=False,
                incentive_valid_through=date(2025, 11, 8),
            )
        )
        await session.flush()

        config = await ConfigResolver(session).load_payroll_config("1")

        assert config.day_pay_rate == Decimal("60.00")
        assert config.night_pay_code == "NGT"
        assert config.approver_name == "Pat Lee"
        assert not config.incentives_enabled
        assert config.incentive_valid_through == date(2025, 11, 8)

    async def test_incentive_rules_active_and_ordered(self, session, test_client_record):
        """Test inactive rules are skipped and order follows sort_order."""
        session.add_all(
            [
                IncentiveRuleRecord(
                    client_id="1",
                    company="102970",
                    cost_centers=["4055"],
                    shift_type="Night",
                    amount=Decimal("10"),
                    description="second",
                    sort_order=2,
                ),
                IncentiveRuleRecord(
                    client_id="1",
                    company="100402",
                    cost_centers=["9343"],
                    day_of_week=[0, 6],
                    time_range_start=420,
                    time_range_end=1140,
                    amount=Decimal("5"),
                    description="first",
                    sort_order=1,
                ),
                IncentiveRuleRecord(
                    client_id="1",
                    company="100402",
                    cost_centers=["9343"],
                    amount=Decimal("1"),
                    description="retired",
                    sort_order=0,
                    active=False,
                ),
            ]
        )
        await session.flush()

        rules = await ConfigResolver(session).load_incentive_rules("1")

        assert [r.description for r in rules] == ["first", "second"]
        assert rules[0].day_of_week == frozenset({0, 6})
        assert rules[0].time_range == TimeRange(start=420, end=1140)
        assert rules[0].shift_type is None
        assert rules[1].shift_type == ShiftType.NIGHT
        assert rules[1].cost_centers == frozenset({"4055"})

    async def test_malformed_rule_skipped(self, session, test_client_record):
        """Test a rule with an invalid day is dropped."""
        session.add(
            IncentiveRuleRecord(
                client_id="1",
                company="100402",
                cost_centers=["9343"],
                day_of_week=[9],
                amount=Decimal("5"),
            )
        )
        await session.flush()

        assert await ConfigResolver(session).load_incentive_rules("1") == ()

    async def test_invoice_config(self, session, test_client_record):
        """Test fee overrides and numbering."""
        session.add(
            InvoiceTransformerConfigRecord(
                client_id="1",
                flex_fee_rate=Decimal("25.00"),
                default_flex_fee_rate=Decimal("25.00"),
                invoice_number_prefix="LVFLEX",
                micro_invoice_number_prefix="MICFLEX",
                invoice_sequence_start=1112,
                micro_invoice_sequence_start=1012,
                micro_facility_ids=[],
                facility_fee_rates={"100402": "27.50"},
                pay_type_labels={"FXDY": "Day", "FXNT": "Night"},
            )
        )
        await session.flush()

        config = await ConfigResolver(session).load_invoice_config("1")

        assert config.invoice_sequence_start == 1112
        assert config.fee_rate_for("100402") == Decimal("27.50")
        assert config.fee_rate_for("999") == Decimal("25.00")
        assert config.micro_facility_ids == DEFAULT_MICRO_FACILITY_IDS

    async def test_crosswalk_entries(self, session, test_client_record):
        """Test active entries load in insertion order."""
        session.add_all(
            [
                EmployeeCrosswalkRecord(
                    client_id="1", client_employee_id="E100", internal_employee_id="NU5001"
                ),
                EmployeeCrosswalkRecord(
                    client_id="1",
                    client_employee_id="E200",
                    internal_employee_id="NU0000",
                    active=False,
                ),
                EmployeeCrosswalkRecord(
                    client_id="1", client_employee_id="E200", internal_employee_id="HS5002"
                ),
            ]
        )
        await session.flush()

        entries = await ConfigResolver(session).load_crosswalk("1")

        assert [(e.client_employee_id, e.internal_employee_id) for e in entries] == [
            ("E100", "NU5001"),
            ("E200", "HS5002"),
        ]


class TestIncentiveOverrides:
    """Test per-request incentive overrides."""

    def test_overrides_replace_configuration(self):
        rule = IncentiveRule(
            company="100402", cost_centers=frozenset({"9343"}), amount=Decimal("2")
        )
        configuration = apply_incentive_overrides(
            default_client_configuration("1"),
            incentive_rules=[rule],
            incentives_enabled=False,
            incentive_valid_through=date(2025, 1, 1),
        )

        assert configuration.incentive_rules == (rule,)
        assert not configuration.payroll.incentives_enabled
        assert configuration.payroll.incentive_valid_through == date(2025, 1, 1)

    def test_no_overrides_keeps_configuration(self):
        base = default_client_configuration("1")
        assert apply_incentive_overrides(base) == base
