"""Client and per-client transformer configuration models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timecard_engine.models.base import Base, JSONType, TimestampMixin


class Client(Base, TimestampMixin):
    """Client network whose extracts are transformed."""

    __tablename__ = "client"

    client_id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")

    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive')", name="client_status_check"),
    )

    # Relationships
    payroll_config: Mapped[PayrollTransformerConfigRecord | None] = relationship(
        back_populates="client"
    )
    invoice_config: Mapped[InvoiceTransformerConfigRecord | None] = relationship(
        back_populates="client"
    )
    incentive_rules: Mapped[list[IncentiveRuleRecord]] = relationship(back_populates="client")


class PayrollTransformerConfigRecord(Base, TimestampMixin):
    """Persisted payroll rates, codes and incentive settings for one client."""

    __tablename__ = "payroll_transformer_config"

    payroll_transformer_config_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    client_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("client.client_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    day_pay_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    night_pay_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    day_pay_code: Mapped[str] = mapped_column(String, nullable=False)
    night_pay_code: Mapped[str] = mapped_column(String, nullable=False)
    approver_name: Mapped[str] = mapped_column(String, nullable=False)
    lunch_time_hours: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    incentives_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    incentive_valid_through: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        CheckConstraint("lunch_time_hours >= 0", name="payroll_config_lunch_nonneg"),
    )

    client: Mapped[Client] = relationship(back_populates="payroll_config")


class IncentiveRuleRecord(Base, TimestampMixin):
    """Persisted incentive rule.

    ``cost_centers`` and ``day_of_week`` are JSON lists; the time range is
    stored as minute-of-day bounds and is absent unless both are set.
    """

    __tablename__ = "incentive_rule"

    incentive_rule_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("client.client_id", ondelete="CASCADE"),
        nullable=False,
    )
    company: Mapped[str] = mapped_column(String, nullable=False)
    cost_centers: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    day_of_week: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    shift_type: Mapped[str | None] = mapped_column(String, nullable=True)
    time_range_start: Mapped[int | None] = mapped_column(Integer, nullable=True)
    time_range_end: Mapped[int | None] = mapped_column(Integer, nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False, default="")
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(
            "shift_type IS NULL OR shift_type IN ('Day', 'Night', 'Both')",
            name="incentive_rule_shift_type_check",
        ),
        Index("incentive_rule_client_order", "client_id", "sort_order"),
    )

    client: Mapped[Client] = relationship(back_populates="incentive_rules")


class InvoiceTransformerConfigRecord(Base, TimestampMixin):
    """Persisted invoice fee and numbering settings for one client."""

    __tablename__ = "invoice_transformer_config"

    invoice_transformer_config_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    client_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("client.client_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    flex_fee_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    default_flex_fee_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    invoice_number_prefix: Mapped[str] = mapped_column(String, nullable=False)
    micro_invoice_number_prefix: Mapped[str] = mapped_column(String, nullable=False)
    invoice_sequence_start: Mapped[int | None] = mapped_column(Integer, nullable=True)
    micro_invoice_sequence_start: Mapped[int | None] = mapped_column(Integer, nullable=True)
    micro_facility_ids: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    # facility id -> fee rate as string
    facility_fee_rates: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    pay_type_labels: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    client: Mapped[Client] = relationship(back_populates="invoice_config")


class EmployeeCrosswalkRecord(Base, TimestampMixin):
    """Persisted client employee ID to internal employee ID mapping."""

    __tablename__ = "employee_crosswalk"

    employee_crosswalk_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    client_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("client.client_id", ondelete="CASCADE"),
        nullable=False,
    )
    client_employee_id: Mapped[str] = mapped_column(String, nullable=False)
    internal_employee_id: Mapped[str] = mapped_column(String, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        # At most one active mapping per client employee
        Index(
            "employee_crosswalk_active_unique",
            "client_id",
            "client_employee_id",
            unique=True,
            postgresql_where=text("active"),
            sqlite_where=text("active = 1"),
        ),
    )
