"""Advance endpoints under /v1/advances"""

from typing import List

from fastapi import APIRouter, Depends

from advance_gateway.api.dependencies import get_lifecycle_service, get_owner_id
from advance_gateway.api.v1.schemas import (
    AdvanceResponse,
    AdvanceSummaryResponse,
    ErrorResponse,
    MarkPaidResponse,
)
from advance_gateway.domain.status import display_status
from advance_gateway.services.lifecycle import LifecycleService
from advance_gateway.utils.date_utils import days_until

router = APIRouter()


@router.get("/advances", response_model=List[AdvanceResponse])
def list_advances(
    owner_id: str = Depends(get_owner_id),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """
    Retrieve the caller's advances, newest first.

    Each item carries a display status ("active", "due_soon", "overdue",
    "paid") and days to due computed at read time.
    """
    now = service.now()
    return [
        AdvanceResponse(
            **advance.to_record(),
            display_status=display_status(advance, now),
            days_to_due=days_until(advance.due_date, now),
        )
        for advance in service.list_advances(owner_id)
    ]


@router.get("/advances/summary", response_model=AdvanceSummaryResponse)
def summarize_advances(
    owner_id: str = Depends(get_owner_id),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    return AdvanceSummaryResponse.model_validate(service.summarize_advances(owner_id))


@router.post(
    "/advances/{advance_id}/mark-paid",
    response_model=MarkPaidResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def mark_advance_paid(
    advance_id: str,
    owner_id: str = Depends(get_owner_id),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """Record buyer payment: the advance is closed and a settlement created"""
    settlement = service.mark_advance_paid(owner_id, advance_id)
    return MarkPaidResponse(success=True, settlement_id=settlement.id)
