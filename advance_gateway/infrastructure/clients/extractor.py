"""Document extraction HTTP client for turning uploaded invoices into drafts"""

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from advance_gateway.config import settings
from advance_gateway.domain.models import Document, ExtractedInvoice, ExtractionResult
from advance_gateway.utils.date_utils import parse_date


class Extractor(Protocol):
    """Anything that can turn a document into an extraction result"""

    async def extract(self, document: Document) -> ExtractionResult:
        ...


def _require_object(value: Any, name: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise TypeError(f"{name} must be a JSON object, got {type(value).__name__}")
    return value


def _parse_amount(value: Any) -> Optional[int]:
    """Whole minor units; fractional or non-numeric amounts are malformed"""
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError(f"amount must be a number, got {value!r}")
    if isinstance(value, int):
        return value
    number = float(value)
    if not number.is_integer():
        raise ValueError(f"amount must be a whole number of minor units, got {value!r}")
    return int(number)


def parse_extraction_payload(payload: Any) -> ExtractionResult:
    """
    Build a draft from the extraction service response.

    Accepts either a flat payload or one wrapped as
    {"success": ..., "extractedData": {...}, "confidence": ...}.
    Raises KeyError/ValueError/TypeError on malformed fields.
    """
    payload = _require_object(payload, "response")
    if payload.get("success") is False:
        return ExtractionResult.failure(payload.get("error") or "Extraction service reported failure")

    data = _require_object(payload.get("extractedData", payload), "extractedData")
    fields = _require_object(data.get("extractedFields") or {}, "extractedFields")
    field_confidence = _require_object(fields.get("confidence") or {}, "extractedFields.confidence")

    due_date = data.get("dueDate", data.get("due_date"))

    draft = ExtractedInvoice(
        buyer=data.get("buyer"),
        amount=_parse_amount(data.get("amount")),
        due_date=parse_date(due_date) if due_date else None,
        invoice_number=data.get("invoiceNumber", data.get("invoice_number")),
        confidence=float(payload.get("confidence", data.get("confidence", 0.0))),
        field_confidence={name: float(value) for name, value in field_confidence.items()},
    )
    return ExtractionResult.success(draft)


class HttpExtractorClient:
    """Client for the external document extraction service"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.extractor_base_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def extract(self, document: Document) -> ExtractionResult:
        """
        Submit a document for field extraction.

        Never raises: timeouts, HTTP errors and malformed responses come back
        as failed results so the caller can fall back to manual entry.
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/extract",
                    files={"file": (document.filename, document.content, document.content_type)},
                )
                response.raise_for_status()
                return parse_extraction_payload(response.json())

            except httpx.TimeoutException:
                error = f"Extractor timeout after {self.timeout}s"
            except httpx.HTTPStatusError as e:
                error = f"Extractor error: {e.response.status_code}"
            except httpx.RequestError as e:
                error = f"Extractor unreachable: {e}"
            except (KeyError, ValueError, TypeError) as e:
                error = f"Invalid extraction data: {e}"

        logging.warning(error, extra={"document": document.filename})
        return ExtractionResult.failure(error)
