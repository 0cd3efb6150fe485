"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from advance_gateway.domain.models import INVOICE_OFFERED

RiskBand = Literal["low", "medium", "high"]


class ManualInvoiceRequest(BaseModel):
    """Request body for POST /v1/invoices"""

    filename: str = Field(..., min_length=1, description="Original document name")
    amount: int = Field(..., gt=0, description="Invoice amount in minor currency units")
    buyer: str = Field(..., min_length=1, description="Buyer name")
    due_date: date
    risk_band: Optional[RiskBand] = Field(None, description="Scored from amount and term when omitted")


class AcceptOfferRequest(BaseModel):
    """Request body for POST /v1/invoices/{invoice_id}/accept-offer"""

    advance_percent: float = Field(..., gt=0, le=100)
    fee_percent: float = Field(..., gt=0, lt=100)
    advance_amount: int = Field(..., ge=0)


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    filename: str
    amount: int
    buyer: str
    due_date: date
    status: str
    risk_band: str
    risk_score: Optional[float] = None
    invoice_number: Optional[str] = None
    advance_percent: Optional[float] = None
    fee_percent: Optional[float] = None
    advance_amount: Optional[int] = None
    extraction: Optional[Dict[str, Any]] = None
    created_at: datetime


class OfferResponse(BaseModel):
    """Quoted terms for GET /v1/invoices/{invoice_id}/offer"""

    model_config = ConfigDict(from_attributes=True)

    invoice_id: str
    status: str = INVOICE_OFFERED
    risk_band: str
    advance_percent: float
    fee_percent: float
    advance_amount: int
    fee_amount: int
    net_received: int
    remaining_amount: int
    message: str


class AdvanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    invoice_id: str
    owner_id: str
    filename: str
    buyer: str
    invoice_amount: int
    advance_amount: int
    fee_percent: float
    due_date: date
    status: str
    risk_band: str
    created_at: datetime
    display_status: str
    days_to_due: int


class SettlementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    invoice_id: str
    owner_id: str
    filename: str
    buyer: str
    invoice_amount: int
    advance_amount: int
    fee_amount: int
    fee_percent: float
    remaining_amount: int
    settlement_amount: int
    paid_date: datetime
    created_at: datetime
    risk_band: str
    days_to_pay: int


class MarkPaidResponse(BaseModel):
    """Response for POST /v1/advances/{advance_id}/mark-paid"""

    success: bool
    settlement_id: Optional[str] = None


class AdvanceSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    advance_count: int
    total_advanced: int
    active_count: int
    overdue_count: int
    due_soon_count: int


class SettlementSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    settlement_count: int
    total_settled: int
    total_advanced: int
    total_fees: int
    total_remaining: int
    avg_days_to_pay: int
    risk_distribution: Dict[str, int]


class ErrorResponse(BaseModel):
    detail: str


class ExtractionFailedResponse(BaseModel):
    """422 body telling the client to switch to manual entry"""

    detail: str
    fallback: str = "manual_entry"
    draft: Optional[Dict[str, Any]] = None
