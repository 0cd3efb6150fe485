"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Optional

from advance_gateway.utils.date_utils import parse_date, parse_datetime

RISK_BANDS = ("low", "medium", "high")

# Invoice status: "offered" exists only as a quote, never persisted
INVOICE_UPLOADED = "uploaded"
INVOICE_OFFERED = "offered"
INVOICE_ADVANCED = "advanced"
INVOICE_SETTLED = "settled"

ADVANCE_ACTIVE = "active"
ADVANCE_PAID = "paid"


@dataclass
class Document:
    """Raw document submitted for extraction"""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class ExtractedInvoice:
    """Structured draft returned by the extractor"""

    buyer: Optional[str]
    amount: Optional[int]
    due_date: Optional[date]
    invoice_number: Optional[str] = None
    confidence: float = 0.0
    field_confidence: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "buyer": self.buyer,
            "amount": self.amount,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "invoice_number": self.invoice_number,
            "confidence": self.confidence,
            "field_confidence": dict(self.field_confidence),
        }


@dataclass
class ExtractionResult:
    """Either a draft or an error message; extractors never raise"""

    draft: Optional[ExtractedInvoice] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.draft is not None

    @classmethod
    def success(cls, draft: ExtractedInvoice) -> "ExtractionResult":
        return cls(draft=draft)

    @classmethod
    def failure(cls, error: str, draft: Optional[ExtractedInvoice] = None) -> "ExtractionResult":
        return cls(draft=draft, error=error)


@dataclass
class RiskSignals:
    """Auxiliary ratios in (0, 1] that enable scored mode"""

    buyer_profile: float
    payment_history: float
    industry_factor: float

    def __post_init__(self) -> None:
        for name in ("buyer_profile", "payment_history", "industry_factor"):
            value = getattr(self, name)
            if not 0 < value <= 1:
                raise ValueError(f"{name} must be in (0, 1], got {value}")


@dataclass
class RiskAssessment:
    """Output of the risk scoring engine"""

    score: float
    band: str
    mode: str  # "simple" | "scored"
    days_to_due: Optional[int]
    confidence: Optional[Dict[str, float]] = None


@dataclass
class Offer:
    """Advance and fee terms for an invoice"""

    risk_band: str
    advance_percent: float
    fee_percent: float
    advance_amount: int
    fee_amount: int
    net_received: int
    remaining_amount: int


@dataclass
class Invoice:
    id: str
    owner_id: str
    filename: str
    amount: int
    buyer: str
    due_date: date
    status: str
    risk_band: str
    created_at: datetime
    risk_score: Optional[float] = None
    invoice_number: Optional[str] = None
    advance_percent: Optional[float] = None
    fee_percent: Optional[float] = None
    advance_amount: Optional[int] = None
    extraction: Optional[Dict[str, Any]] = None

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "filename": self.filename,
            "amount": self.amount,
            "buyer": self.buyer,
            "due_date": self.due_date.isoformat(),
            "status": self.status,
            "risk_band": self.risk_band,
            "created_at": self.created_at.isoformat(),
            "risk_score": self.risk_score,
            "invoice_number": self.invoice_number,
            "advance_percent": self.advance_percent,
            "fee_percent": self.fee_percent,
            "advance_amount": self.advance_amount,
            "extraction": self.extraction,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Invoice":
        return cls(
            id=record["id"],
            owner_id=record["owner_id"],
            filename=record["filename"],
            amount=record["amount"],
            buyer=record["buyer"],
            due_date=parse_date(record["due_date"]),
            status=record["status"],
            risk_band=record["risk_band"],
            created_at=parse_datetime(record["created_at"]),
            risk_score=record.get("risk_score"),
            invoice_number=record.get("invoice_number"),
            advance_percent=record.get("advance_percent"),
            fee_percent=record.get("fee_percent"),
            advance_amount=record.get("advance_amount"),
            extraction=record.get("extraction"),
        )


@dataclass
class Advance:
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

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "owner_id": self.owner_id,
            "filename": self.filename,
            "buyer": self.buyer,
            "invoice_amount": self.invoice_amount,
            "advance_amount": self.advance_amount,
            "fee_percent": self.fee_percent,
            "due_date": self.due_date.isoformat(),
            "status": self.status,
            "risk_band": self.risk_band,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Advance":
        return cls(
            id=record["id"],
            invoice_id=record["invoice_id"],
            owner_id=record["owner_id"],
            filename=record["filename"],
            buyer=record["buyer"],
            invoice_amount=record["invoice_amount"],
            advance_amount=record["advance_amount"],
            fee_percent=record["fee_percent"],
            due_date=parse_date(record["due_date"]),
            status=record["status"],
            risk_band=record["risk_band"],
            created_at=parse_datetime(record["created_at"]),
        )


@dataclass
class Settlement:
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
    status: str = "settled"

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "owner_id": self.owner_id,
            "filename": self.filename,
            "buyer": self.buyer,
            "invoice_amount": self.invoice_amount,
            "advance_amount": self.advance_amount,
            "fee_amount": self.fee_amount,
            "fee_percent": self.fee_percent,
            "remaining_amount": self.remaining_amount,
            "settlement_amount": self.settlement_amount,
            "paid_date": self.paid_date.isoformat(),
            "created_at": self.created_at.isoformat(),
            "risk_band": self.risk_band,
            "days_to_pay": self.days_to_pay,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Settlement":
        return cls(
            id=record["id"],
            invoice_id=record["invoice_id"],
            owner_id=record["owner_id"],
            filename=record["filename"],
            buyer=record["buyer"],
            invoice_amount=record["invoice_amount"],
            advance_amount=record["advance_amount"],
            fee_amount=record["fee_amount"],
            fee_percent=record["fee_percent"],
            remaining_amount=record["remaining_amount"],
            settlement_amount=record["settlement_amount"],
            paid_date=parse_datetime(record["paid_date"]),
            created_at=parse_datetime(record["created_at"]),
            risk_band=record["risk_band"],
            days_to_pay=record["days_to_pay"],
        )
