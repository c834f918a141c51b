"""SQLAlchemy ORM models for persisted client configuration."""

from timecard_engine.models.base import Base
from timecard_engine.models.client import (
    Client,
    EmployeeCrosswalkRecord,
    IncentiveRuleRecord,
    InvoiceTransformerConfigRecord,
    PayrollTransformerConfigRecord,
)

__all__ = [
    "Base",
    "Client",
    "EmployeeCrosswalkRecord",
    "IncentiveRuleRecord",
    "InvoiceTransformerConfigRecord",
    "PayrollTransformerConfigRecord",
]
