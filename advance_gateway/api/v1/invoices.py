"""Invoice intake and offer endpoints under /v1/invoices"""

from typing import List

from fastapi import APIRouter, Depends, File, UploadFile

from advance_gateway.api.dependencies import get_lifecycle_service, get_owner_id
from advance_gateway.api.v1.schemas import (
    AcceptOfferRequest,
    ErrorResponse,
    ExtractionFailedResponse,
    InvoiceResponse,
    ManualInvoiceRequest,
    OfferResponse,
)
from advance_gateway.domain.models import Document
from advance_gateway.domain.offers import offer_message
from advance_gateway.services.lifecycle import LifecycleService

router = APIRouter()


@router.post(
    "/invoices/extract",
    response_model=InvoiceResponse,
    responses={422: {"model": ExtractionFailedResponse}},
)
async def create_invoice_from_extraction(
    file: UploadFile = File(...),
    owner_id: str = Depends(get_owner_id),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """
    Upload an invoice document and ingest the extracted fields.

    Flow:
    1. Send the document to the extractor
    2. Score risk from amount, term and any buyer signals
    3. Persist the invoice as "uploaded"

    A failed or low-confidence extraction returns 422 with
    fallback="manual_entry" and whatever draft was recovered.
    """
    content = await file.read()
    document = Document(
        filename=file.filename or "document",
        content=content,
        content_type=file.content_type or "application/octet-stream",
    )
    invoice = await service.create_invoice_from_extraction(owner_id, document)
    return InvoiceResponse.model_validate(invoice)


@router.post("/invoices", response_model=InvoiceResponse)
def create_invoice_manual(
    request_body: ManualInvoiceRequest,
    owner_id: str = Depends(get_owner_id),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """Manual entry path, also the fallback after a failed extraction"""
    invoice = service.create_invoice_manual(
        owner_id,
        filename=request_body.filename,
        amount=request_body.amount,
        buyer=request_body.buyer,
        due_date=request_body.due_date,
        risk_band=request_body.risk_band,
    )
    return InvoiceResponse.model_validate(invoice)


@router.get("/invoices", response_model=List[InvoiceResponse])
def list_invoices(
    owner_id: str = Depends(get_owner_id),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    return [InvoiceResponse.model_validate(i) for i in service.list_invoices(owner_id)]


@router.get("/invoices/{invoice_id}", response_model=InvoiceResponse, responses={404: {"model": ErrorResponse}})
def get_invoice(
    invoice_id: str,
    owner_id: str = Depends(get_owner_id),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    return InvoiceResponse.model_validate(service.get_invoice(owner_id, invoice_id))


@router.get("/invoices/{invoice_id}/offer", response_model=OfferResponse, responses={404: {"model": ErrorResponse}})
def quote_offer(
    invoice_id: str,
    owner_id: str = Depends(get_owner_id),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """
    Quote advance terms for an invoice.

    Returns:
        Advance and fee percentages and amounts for the invoice's risk band
    """
    offer = service.quote_offer(owner_id, invoice_id)
    return OfferResponse(
        invoice_id=invoice_id,
        risk_band=offer.risk_band,
        advance_percent=offer.advance_percent,
        fee_percent=offer.fee_percent,
        advance_amount=offer.advance_amount,
        fee_amount=offer.fee_amount,
        net_received=offer.net_received,
        remaining_amount=offer.remaining_amount,
        message=offer_message(offer.risk_band),
    )


@router.post(
    "/invoices/{invoice_id}/accept-offer",
    response_model=InvoiceResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def accept_offer(
    invoice_id: str,
    request_body: AcceptOfferRequest,
    owner_id: str = Depends(get_owner_id),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """Accept offer terms; the invoice moves to "advanced" and an advance opens"""
    invoice = service.accept_offer(
        owner_id,
        invoice_id,
        advance_percent=request_body.advance_percent,
        fee_percent=request_body.fee_percent,
        advance_amount=request_body.advance_amount,
    )
    return InvoiceResponse.model_validate(invoice)
