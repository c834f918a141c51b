"""Seed script for the LVHN client configuration.

Run with:
    python scripts/seed_client_config.py

Creates the configuration tables if needed, then the LVHN client with its
pay rates, invoice numbering and weekend/night incentive rules.
"""

from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timecard_engine.database import get_session, init_db
from timecard_engine.models import (
    Base,
    Client,
    IncentiveRuleRecord,
    InvoiceTransformerConfigRecord,
    PayrollTransformerConfigRecord,
)

LVHN_CLIENT_ID = "1"

CEDAR_CREST_COST_CENTERS = [
    "9343", "9353", "9358", "9363", "9359", "9345", "9366", "9357", "9356",
    "9350", "9440", "9354", "9386", "9387", "9352", "9349", "9417", "9362",
    "9361", "9360", "9370", "9364", "9375", "9372", "9373", "9369",
]


async def create_tables() -> None:
    engine, _ = init_db()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_client(session: AsyncSession) -> Client:
    result = await session.execute(select(Client).where(Client.client_id == LVHN_CLIENT_ID))
    client = result.scalar_one_or_none()
    if client is None:
        client = Client(client_id=LVHN_CLIENT_ID, name="LVHN", status="active")
        session.add(client)
        print("Created LVHN client")
    await session.flush()
    return client


async def seed_payroll_config(session: AsyncSession) -> None:
    result = await session.execute(
        select(PayrollTransformerConfigRecord).where(
            PayrollTransformerConfigRecord.client_id == LVHN_CLIENT_ID
        )
    )
    if result.scalar_one_or_none():
        print("Payroll config already exists, skipping...")
        return

    session.add(
        PayrollTransformerConfigRecord(
            client_id=LVHN_CLIENT_ID,
            day_pay_rate=Decimal("58"),
            night_pay_rate=Decimal("63"),
            day_pay_code="FXDY",
            night_pay_code="FXNT",
            approver_name="Jennifer Devine",
            lunch_time_hours=Decimal("0.5"),
            incentives_enabled=True,
            incentive_valid_through=date(2025, 11, 8),
        )
    )
    print("Created payroll config")


async def seed_incentive_rules(session: AsyncSession) -> None:
    result = await session.execute(
        select(IncentiveRuleRecord).where(IncentiveRuleRecord.client_id == LVHN_CLIENT_ID)
    )
    if result.scalars().first():
        print("Incentive rules already exist, skipping...")
        return

    rules = [
        IncentiveRuleRecord(
            client_id=LVHN_CLIENT_ID,
            company="100402",
            cost_centers=CEDAR_CREST_COST_CENTERS,
            day_of_week=[0, 6],
            shift_type="Day",
            time_range_start=7 * 60,
            time_range_end=19 * 60,
            amount=Decimal("5"),
            description="Cedar Crest: Sat/Sun days 7a-7p - $5 extra per hour",
            sort_order=1,
        ),
        IncentiveRuleRecord(
            client_id=LVHN_CLIENT_ID,
            company="100402",
            cost_centers=CEDAR_CREST_COST_CENTERS,
            day_of_week=[5, 6, 0],
            shift_type="Night",
            time_range_start=19 * 60,
            time_range_end=7 * 60,
            amount=Decimal("10"),
            description="Cedar Crest: Fri/Sat/Sun eve/nights 7p-7a - $10 extra per hour",
            sort_order=2,
        ),
        IncentiveRuleRecord(
            client_id=LVHN_CLIENT_ID,
            company="102970",
            cost_centers=["4055", "4006"],
            shift_type="Night",
            amount=Decimal("10"),
            description="Carbon: $10 extra per hour for eve/nights",
            sort_order=3,
        ),
        IncentiveRuleRecord(
            client_id=LVHN_CLIENT_ID,
            company="102462",
            cost_centers=["13", "15", "29", "33"],
            shift_type="Night",
            amount=Decimal("10"),
            description="Schuylkill: $10 extra per hour for eve/nights - All BH units",
            sort_order=4,
        ),
    ]
    session.add_all(rules)
    print(f"Created {len(rules)} incentive rules")


async def seed_invoice_config(session: AsyncSession) -> None:
    result = await session.execute(
        select(InvoiceTransformerConfigRecord).where(
            InvoiceTransformerConfigRecord.client_id == LVHN_CLIENT_ID
        )
    )
    if result.scalar_one_or_none():
        print("Invoice config already exists, skipping...")
        return

    session.add(
        InvoiceTransformerConfigRecord(
            client_id=LVHN_CLIENT_ID,
            flex_fee_rate=Decimal("25.00"),
            default_flex_fee_rate=Decimal("25.00"),
            invoice_number_prefix="LVFLEX",
            micro_invoice_number_prefix="MICFLEX",
            invoice_sequence_start=1112,
            micro_invoice_sequence_start=1012,
            micro_facility_ids=["1567", "1571", "1576", "1548"],
            facility_fee_rates={
                "100402": "25.00",  # Lehigh Valley Hospital
                "101751": "25.00",  # LVH Hazleton
                "102970": "25.00",  # LVH Pocono
                "102462": "25.00",  # LVH Schuylkill
            },
            pay_type_labels={"FXDY": "Day", "FXNT": "Night"},
        )
    )
    print("Created invoice config")


async def main():
    """Run seed script."""
    print("Seeding LVHN client configuration...")

    await create_tables()
    async with get_session() as session:
        await seed_client(session)
        await seed_payroll_config(session)
        await seed_incentive_rules(session)
        await seed_invoice_config(session)
        await session.commit()

    print("\nDone! Client configuration seeded successfully.")


if __name__ == "__main__":
    asyncio.run(main())
