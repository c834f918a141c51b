"""Resolves persisted client configuration into transformer configuration."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from timecard_engine.exceptions import TransformError
from timecard_engine.models import (
    EmployeeCrosswalkRecord,
    IncentiveRuleRecord,
    InvoiceTransformerConfigRecord,
    PayrollTransformerConfigRecord,
)
from timecard_engine.transformers.coercion import to_decimal
from timecard_engine.transformers.configuration import (
    DEFAULT_MICRO_FACILITY_IDS,
    DEFAULT_PAY_TYPE_LABELS,
    ClientConfiguration,
    IncentiveRule,
    InvoiceTransformerConfig,
    ShiftType,
    TimeRange,
    TransformerConfig,
    default_invoice_config,
    default_payroll_config,
)
from timecard_engine.transformers.crosswalk import CrosswalkEntry

logger = logging.getLogger(__name__)


# ============================================================================
# Record mappers
# ============================================================================


def payroll_config_from_record(record: PayrollTransformerConfigRecord) -> TransformerConfig:
    return TransformerConfig(
        day_pay_rate=Decimal(record.day_pay_rate),
        night_pay_rate=Decimal(record.night_pay_rate),
        day_pay_code=record.day_pay_code,
        night_pay_code=record.night_pay_code,
        approver_name=record.approver_name,
        lunch_time_hours=Decimal(record.lunch_time_hours),
        incentives_enabled=record.incentives_enabled,
        incentive_valid_through=record.incentive_valid_through,
        version=record.version,
    )


def incentive_rule_from_record(record: IncentiveRuleRecord) -> IncentiveRule:
    """Map a rule record; raises ``ValueError`` on malformed predicates."""
    time_range = None
    if record.time_range_start is not None and record.time_range_end is not None:
        time_range = TimeRange(start=record.time_range_start, end=record.time_range_end)

    return IncentiveRule(
        company=record.company,
        cost_centers=frozenset(str(c) for c in record.cost_centers or ()),
        amount=Decimal(record.amount),
        description=record.description or "",
        day_of_week=(
            frozenset(int(d) for d in record.day_of_week)
            if record.day_of_week is not None
            else None
        ),
        shift_type=ShiftType(record.shift_type) if record.shift_type else None,
        time_range=time_range,
    )


def invoice_config_from_record(record: InvoiceTransformerConfigRecord) -> InvoiceTransformerConfig:
    return InvoiceTransformerConfig(
        flex_fee_rate=(
            Decimal(record.flex_fee_rate) if record.flex_fee_rate is not None else None
        ),
        default_flex_fee_rate=Decimal(record.default_flex_fee_rate),
        invoice_number_prefix=record.invoice_number_prefix,
        micro_invoice_number_prefix=record.micro_invoice_number_prefix,
        invoice_sequence_start=record.invoice_sequence_start,
        micro_invoice_sequence_start=record.micro_invoice_sequence_start,
        micro_facility_ids=(
            frozenset(str(f) for f in record.micro_facility_ids)
            if record.micro_facility_ids
            else DEFAULT_MICRO_FACILITY_IDS
        ),
        facility_fee_rates={
            str(facility): to_decimal(rate)
            for facility, rate in (record.facility_fee_rates or {}).items()
        },
        pay_type_labels=dict(record.pay_type_labels or DEFAULT_PAY_TYPE_LABELS),
    )


def apply_incentive_overrides(
    configuration: ClientConfiguration,
    incentive_rules: Sequence[IncentiveRule] | None = None,
    incentives_enabled: bool | None = None,
    incentive_valid_through: date | None = None,
) -> ClientConfiguration:
    """Return a copy of ``configuration`` with per-request incentive overrides."""
    payroll = configuration.payroll
    if incentives_enabled is not None:
        payroll = replace(payroll, incentives_enabled=incentives_enabled)
    if incentive_valid_through is not None:
        payroll = replace(payroll, incentive_valid_through=incentive_valid_through)

    rules = configuration.incentive_rules
    if incentive_rules is not None:
        rules = tuple(incentive_rules)

    return replace(configuration, payroll=payroll, incentive_rules=rules)


# ============================================================================
# Resolver
# ============================================================================


class ConfigResolver:
    """Loads a client's transformer configuration from the database.

    Lookups are read-only. A missing record resolves to the defaults, and so
    does a failed lookup: configuration errors are logged and never abort a
    run.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def resolve(self, client_id: str) -> ClientConfiguration:
        """Full configuration bundle for one pipeline run."""
        return ClientConfiguration(
            client_id=client_id,
            payroll=await self.load_payroll_config(client_id),
            incentive_rules=await self.load_incentive_rules(client_id),
            invoice=await self.load_invoice_config(client_id),
        )

    async def load_payroll_config(self, client_id: str) -> TransformerConfig:
        try:
            result = await self.session.execute(
                select(PayrollTransformerConfigRecord).where(
                    PayrollTransformerConfigRecord.client_id == client_id
                )
            )
            record = result.scalar_one_or_none()
        except SQLAlchemyError:
            logger.exception("Failed to load payroll config for client %s; using defaults", client_id)
            return default_payroll_config()

        if record is None:
            logger.info("No payroll config for client %s; using defaults", client_id)
            return default_payroll_config()
        return payroll_config_from_record(record)

    async def load_incentive_rules(self, client_id: str) -> tuple[IncentiveRule, ...]:
        """Active incentive rules in ``sort_order``."""
        try:
            result = await self.session.execute(
                select(IncentiveRuleRecord)
                .where(
                    IncentiveRuleRecord.client_id == client_id,
                    IncentiveRuleRecord.active.is_(True),
                )
                .order_by(IncentiveRuleRecord.sort_order, IncentiveRuleRecord.incentive_rule_id)
            )
            records = result.scalars().all()
        except SQLAlchemyError:
            logger.exception("Failed to load incentive rules for client %s; using none", client_id)
            return ()

        rules = []
        for record in records:
            try:
                rules.append(incentive_rule_from_record(record))
            except ValueError as exc:
                logger.warning(
                    "Skipping malformed incentive rule %s for client %s: %s",
                    record.incentive_rule_id,
                    client_id,
                    exc,
                )
        return tuple(rules)

    async def load_invoice_config(self, client_id: str) -> InvoiceTransformerConfig:
        try:
            result = await self.session.execute(
                select(InvoiceTransformerConfigRecord).where(
                    InvoiceTransformerConfigRecord.client_id == client_id
                )
            )
            record = result.scalar_one_or_none()
        except SQLAlchemyError:
            logger.exception("Failed to load invoice config for client %s; using defaults", client_id)
            return default_invoice_config()

        if record is None:
            logger.info("No invoice config for client %s; using defaults", client_id)
            return default_invoice_config()
        return invoice_config_from_record(record)

    async def load_crosswalk(self, client_id: str) -> list[CrosswalkEntry]:
        """Active persisted crosswalk entries in insertion order.

        Unlike configuration, a crosswalk that cannot be read is fatal: every
        punch would otherwise be rejected as unmatched.
        """
        try:
            result = await self.session.execute(
                select(EmployeeCrosswalkRecord)
                .where(
                    EmployeeCrosswalkRecord.client_id == client_id,
                    EmployeeCrosswalkRecord.active.is_(True),
                )
                .order_by(EmployeeCrosswalkRecord.employee_crosswalk_id)
            )
            records = result.scalars().all()
        except SQLAlchemyError as exc:
            raise TransformError(
                "Error loading crosswalk",
                f"Could not load employee crosswalk for client {client_id}",
                exc,
            ) from exc

        return [
            CrosswalkEntry(
                client_employee_id=record.client_employee_id,
                internal_employee_id=record.internal_employee_id,
            )
            for record in records
        ]
