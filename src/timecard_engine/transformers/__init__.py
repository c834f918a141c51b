"""Payroll and invoice transformation core.

Pure functions and stage classes over in-memory row collections. Nothing in
this package touches the database or the network.
"""

from timecard_engine.transformers.configuration import (
    ClientConfiguration,
    IncentiveRule,
    InvoiceTransformerConfig,
    ShiftType,
    TimeRange,
    TransformerConfig,
    default_client_configuration,
    default_invoice_config,
    default_payroll_config,
)
from timecard_engine.transformers.crosswalk import CrosswalkEntry, CrosswalkResolver
from timecard_engine.transformers.incentives import IncentiveEngine, IncentiveResult
from timecard_engine.transformers.ingestion import FieldMapping, read_punches
from timecard_engine.transformers.invoice import InvoiceTransformer
from timecard_engine.transformers.output import records_to_rows, to_csv
from timecard_engine.transformers.payroll import PayrollTransformer
from timecard_engine.transformers.types import (
    INVOICE_DETAIL_COLUMNS,
    PAYROLL_COLUMNS,
    PRODUCTIVITY_COLUMNS,
    SUPPLIER_INVOICE_COLUMNS,
    InvoiceGenerationResult,
    InvoiceOutputRecord,
    PayrollOutputRecord,
    PayrollTransformResult,
    Punch,
    PunchSource,
    RejectionReason,
    RowRejection,
)

__all__ = [
    "ClientConfiguration",
    "CrosswalkEntry",
    "CrosswalkResolver",
    "FieldMapping",
    "INVOICE_DETAIL_COLUMNS",
    "IncentiveEngine",
    "IncentiveResult",
    "IncentiveRule",
    "InvoiceGenerationResult",
    "InvoiceOutputRecord",
    "InvoiceTransformer",
    "InvoiceTransformerConfig",
    "PAYROLL_COLUMNS",
    "PRODUCTIVITY_COLUMNS",
    "PayrollOutputRecord",
    "PayrollTransformResult",
    "PayrollTransformer",
    "Punch",
    "PunchSource",
    "RejectionReason",
    "RowRejection",
    "SUPPLIER_INVOICE_COLUMNS",
    "ShiftType",
    "TimeRange",
    "TransformerConfig",
    "default_client_configuration",
    "default_invoice_config",
    "default_payroll_config",
    "read_punches",
    "to_csv",
]
