"""Payroll generation endpoint."""

import logging
from datetime import datetime, timezone
from typing import Annotated, Literal

from fastapi import APIRouter, Query, Response, status

from timecard_engine.api.dependencies import Generation, resolve_client_id
from timecard_engine.api.schemas import (
    ErrorResponse,
    PayrollGenerateRequest,
    PayrollGenerateResponse,
    RejectionResponse,
)
from timecard_engine.transformers.output import records_to_rows, to_csv
from timecard_engine.transformers.types import PAYROLL_COLUMNS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payroll", tags=["payroll"])


@router.post(
    "/generate",
    response_model=PayrollGenerateResponse,
    status_code=status.HTTP_200_OK,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def generate_payroll(
    payload: PayrollGenerateRequest,
    generation: Generation,
    output_format: Annotated[Literal["json", "csv"], Query(alias="format")] = "json",
) -> PayrollGenerateResponse | Response:
    """Transform timeclock extracts into payroll import lines."""
    client_id = resolve_client_id(payload.client_id)
    result = await generation.generate_payroll(
        client_id,
        payload.raw_timecards,
        payload.manual_adds,
        crosswalk=payload.crosswalk,
        facility_crosswalk=payload.facility_crosswalk,
        shifts=payload.shifts,
        pay_period=payload.pay_period,
        incentive_rules=(
            [rule.to_rule() for rule in payload.incentive_rules]
            if payload.incentive_rules is not None
            else None
        ),
        incentives_enabled=payload.incentives_enabled,
        incentive_valid_through=payload.incentive_valid_through,
        field_overrides=payload.field_mapping,
        run_date=payload.run_date,
    )
    logger.info(
        "Generated payroll for client %s: %d records, %d rejected",
        client_id,
        result.record_count,
        result.rejected_count,
    )

    if output_format == "csv":
        return Response(
            content=to_csv(records_to_rows(result.records), PAYROLL_COLUMNS),
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="payroll.csv"'},
        )

    return PayrollGenerateResponse(
        data=[record.to_dict() for record in result.records],
        record_count=result.record_count,
        rejected_count=result.rejected_count,
        rejections=[
            RejectionResponse.model_validate(rejection.to_dict())
            for rejection in result.rejections
        ],
        client_id=client_id,
        timestamp=datetime.now(timezone.utc),
    )
