"""GET /v1/settlements - settled advances and their totals"""

from typing import List

from fastapi import APIRouter, Depends

from advance_gateway.api.dependencies import get_lifecycle_service, get_owner_id
from advance_gateway.api.v1.schemas import SettlementResponse, SettlementSummaryResponse
from advance_gateway.services.lifecycle import LifecycleService

router = APIRouter()


@router.get("/settlements", response_model=List[SettlementResponse])
def list_settlements(
    owner_id: str = Depends(get_owner_id),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """Settlements for the caller, most recently paid first"""
    return [SettlementResponse.model_validate(s) for s in service.list_settlements(owner_id)]


@router.get("/settlements/summary", response_model=SettlementSummaryResponse)
def summarize_settlements(
    owner_id: str = Depends(get_owner_id),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    return SettlementSummaryResponse.model_validate(service.summarize_settlements(owner_id))
