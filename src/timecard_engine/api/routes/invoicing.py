"""Invoice generation endpoint."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, status

from timecard_engine.api.dependencies import Generation, resolve_client_id
from timecard_engine.api.schemas import (
    ErrorResponse,
    InvoiceGenerateRequest,
    InvoiceGenerateResponse,
    InvoiceOutputs,
)
from timecard_engine.transformers.output import records_to_rows

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoicing", tags=["invoicing"])


@router.post(
    "/generate",
    response_model=InvoiceGenerateResponse,
    status_code=status.HTTP_200_OK,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def generate_invoice(
    payload: InvoiceGenerateRequest,
    generation: Generation,
) -> InvoiceGenerateResponse:
    """Price un-invoiced shifts and split them into main and micro invoices."""
    client_id = resolve_client_id(payload.client_id)
    result = await generation.generate_invoice(
        client_id,
        payload.previous_payroll,
        payload.current_payroll,
        payload.invoice_details,
        run_date=payload.run_date,
    )
    logger.info(
        "Generated invoice %s for client %s: %d lines",
        result.invoice_number,
        client_id,
        result.record_count,
    )

    main_detail = records_to_rows(result.main_invoice_detail)
    return InvoiceGenerateResponse(
        data=main_detail,
        record_count=result.record_count,
        client_id=client_id,
        timestamp=datetime.now(timezone.utc),
        outputs=InvoiceOutputs(
            main_invoice_detail=main_detail,
            micro_invoice_detail=records_to_rows(result.micro_invoice_detail),
            main_invoice_csv=result.main_invoice_csv,
            micro_invoice_csv=result.micro_invoice_csv,
            main_productivity_csv=result.main_productivity_csv,
            micro_productivity_csv=result.micro_productivity_csv,
        ),
        has_microhospitals=result.has_microhospitals,
        invoice_number=result.invoice_number,
        micro_invoice_number=result.micro_invoice_number,
    )
