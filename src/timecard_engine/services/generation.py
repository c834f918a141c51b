"""Payroll and invoice generation runs.

Awaits every configuration lookup up front, then runs the synchronous
transformation core to completion.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Mapping, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from timecard_engine.exceptions import (
    InvalidInputError,
    MissingInputError,
    TimecardEngineError,
    TransformError,
)
from timecard_engine.services.config_resolver import ConfigResolver, apply_incentive_overrides
from timecard_engine.transformers.configuration import IncentiveRule
from timecard_engine.transformers.crosswalk import CrosswalkResolver
from timecard_engine.transformers.ingestion import FieldMapping
from timecard_engine.transformers.invoice import InvoiceTransformer
from timecard_engine.transformers.payroll import PayrollTransformer
from timecard_engine.transformers.types import (
    InvoiceGenerationResult,
    PayrollTransformResult,
    Row,
)

logger = logging.getLogger(__name__)

INVOICE_DETAIL_EXTRACTS = 4


class GenerationService:
    """Runs one payroll or invoice generation for a client."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.resolver = ConfigResolver(session)

    async def generate_payroll(
        self,
        client_id: str,
        raw_timecards: Sequence[Row] | None,
        manual_adds: Sequence[Row] | None,
        crosswalk: Sequence[Row] | None = None,
        facility_crosswalk: Sequence[Row] | None = None,
        shifts: Sequence[Row] | None = None,
        pay_period: tuple[date, date] | None = None,
        incentive_rules: Sequence[IncentiveRule] | None = None,
        incentives_enabled: bool | None = None,
        incentive_valid_through: date | None = None,
        field_overrides: Mapping[str, str] | None = None,
        run_date: date | None = None,
    ) -> PayrollTransformResult:
        """Generate payroll output for one uploaded extract set.

        Args:
            client_id: Client whose configuration applies
            raw_timecards: Timeclock extract rows
            manual_adds: Manual-add extract rows
            crosswalk: Employee crosswalk rows; the persisted crosswalk is
                used when omitted
            pay_period: Selected Sunday-Saturday period, if any

        Raises:
            MissingInputError: If a required extract was not supplied
            TransformError: If the run fails
        """
        missing = [
            name
            for name, rows in (("raw_timecards", raw_timecards), ("manual_adds", manual_adds))
            if rows is None
        ]
        if missing:
            raise MissingInputError(missing)

        configuration = await self.resolver.resolve(client_id)
        configuration = apply_incentive_overrides(
            configuration,
            incentive_rules=incentive_rules,
            incentives_enabled=incentives_enabled,
            incentive_valid_through=incentive_valid_through,
        )

        if crosswalk is not None:
            resolver = CrosswalkResolver.from_rows(crosswalk, facility_crosswalk or (), shifts or ())
        else:
            entries = await self.resolver.load_crosswalk(client_id)
            if not entries:
                raise MissingInputError(["crosswalk"])
            resolver = CrosswalkResolver.from_entries(
                entries, facility_crosswalk or (), shifts or ()
            )

        try:
            field_mapping = FieldMapping().with_overrides(field_overrides)
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from exc

        try:
            transformer = PayrollTransformer(
                configuration.payroll,
                configuration.incentive_rules,
                run_date=run_date,
                pay_period=pay_period,
                field_mapping=field_mapping,
            )
            return transformer.transform(raw_timecards, manual_adds, resolver)
        except TimecardEngineError:
            raise
        except Exception as exc:
            logger.exception("Payroll generation failed for client %s", client_id)
            raise TransformError(
                "Failed to generate payroll file",
                f"Payroll run failed for client {client_id}",
                exc,
            ) from exc

    async def generate_invoice(
        self,
        client_id: str,
        previous_payroll: Sequence[Row] | None,
        current_payroll: Sequence[Row] | None,
        invoice_details: Sequence[Sequence[Row] | None] | None,
        run_date: date | None = None,
    ) -> InvoiceGenerationResult:
        """Generate main and micro-hospital invoices.

        Raises:
            MissingInputError: If either payroll extract or any of the four
                invoice detail extracts is missing
            TransformError: If the run fails
        """
        missing = [
            name
            for name, rows in (
                ("previous_payroll", previous_payroll),
                ("current_payroll", current_payroll),
            )
            if rows is None
        ]
        if missing:
            raise MissingInputError(missing, "Missing required payroll files")

        details = list(invoice_details or [])
        if len(details) != INVOICE_DETAIL_EXTRACTS or any(d is None for d in details):
            raise MissingInputError(
                [f"invoice_detail_period_{i}" for i in range(1, INVOICE_DETAIL_EXTRACTS + 1)],
                "Missing required FLEX Invoice Detail files",
            )

        configuration = await self.resolver.resolve(client_id)

        try:
            transformer = InvoiceTransformer(configuration.invoice, run_date=run_date)
            return transformer.transform(previous_payroll, current_payroll, details)
        except TimecardEngineError:
            raise
        except Exception as exc:
            logger.exception("Invoice generation failed for client %s", client_id)
            raise TransformError(
                "Failed to generate invoice file",
                f"Invoice run failed for client {client_id}",
                exc,
            ) from exc

