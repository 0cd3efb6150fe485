"""Invoice financing lifecycle: upload → advance → settlement"""

import logging
import uuid
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from advance_gateway.config import settings
from advance_gateway.domain.exceptions import (
    AlreadySettledError,
    ExtractionFailedError,
    NotFoundError,
    OfferAlreadyAcceptedError,
    ValidationError,
)
from advance_gateway.domain.models import (
    ADVANCE_ACTIVE,
    ADVANCE_PAID,
    INVOICE_ADVANCED,
    INVOICE_SETTLED,
    INVOICE_UPLOADED,
    RISK_BANDS,
    Advance,
    Document,
    ExtractedInvoice,
    Invoice,
    Offer,
    RiskSignals,
    Settlement,
)
from advance_gateway.domain.offers import calculate_offer, percent_of
from advance_gateway.domain.reporting import (
    AdvanceSummary,
    SettlementSummary,
    summarize_advances,
    summarize_settlements,
)
from advance_gateway.domain.scoring import BAND_SCORES, assess_invoice_risk
from advance_gateway.infrastructure.clients.extractor import Extractor
from advance_gateway.infrastructure.database.kv_store import KeyValueStore
from advance_gateway.infrastructure.database.repositories import (
    AdvanceRepository,
    InvoiceRepository,
    SettlementRepository,
)
from advance_gateway.infrastructure.database.retry import StoreRetryPolicy
from advance_gateway.infrastructure.observability.logging import log_transition
from advance_gateway.infrastructure.observability.metrics import (
    extraction_failure_counter,
    record_invoice_created,
    record_offer_accepted,
    rejected_transition_counter,
    resumed_transition_counter,
    settlement_counter,
)
from advance_gateway.utils.date_utils import days_between, parse_datetime, utc_now

# Claim keys make each transition happen at most once per entity. The claim
# value records the ids and timestamps the transition writes with.
ACCEPT_OFFER_CLAIM = "claim:accept-offer:{}"
MARK_PAID_CLAIM = "claim:mark-paid:{}"


class RiskSignalSource(Protocol):
    """Provides auxiliary risk ratios for a buyer, or None when unknown"""

    def get_signals(self, buyer: str) -> Optional[RiskSignals]:
        ...


class StaticRiskSignalSource:
    """Signals looked up from a fixed buyer mapping"""

    def __init__(self, signals_by_buyer: Dict[str, RiskSignals]):
        self.signals_by_buyer = signals_by_buyer

    def get_signals(self, buyer: str) -> Optional[RiskSignals]:
        return self.signals_by_buyer.get(buyer)


def _new_id() -> str:
    return str(uuid.uuid4())


class LifecycleService:
    """
    Orchestrates invoice state transitions and enforces their invariants.

    All collaborators are injected: the key-value store, the extractor, an
    optional risk signal source and the clock. Scoring and offer calculation
    are pure; every write goes through the indexed repositories.
    """

    def __init__(
        self,
        store: KeyValueStore,
        extractor: Optional[Extractor] = None,
        signal_source: Optional[RiskSignalSource] = None,
        clock: Callable[[], datetime] = utc_now,
        retry: Optional[StoreRetryPolicy] = None,
        confidence_threshold: Optional[float] = None,
        id_factory: Callable[[], str] = _new_id,
    ):
        self.store = store
        self.extractor = extractor
        self.signal_source = signal_source
        self.clock = clock
        self.retry = retry or StoreRetryPolicy()
        self.confidence_threshold = (
            settings.extraction_confidence_threshold if confidence_threshold is None else confidence_threshold
        )
        self.id_factory = id_factory

        self.invoices = InvoiceRepository(store, self.retry)
        self.advances = AdvanceRepository(store, self.retry)
        self.settlements = SettlementRepository(store, self.retry)

    def now(self) -> datetime:
        return self.clock()

    # Ingestion

    async def create_invoice_from_extraction(self, owner_id: str, document: Document) -> Invoice:
        """
        Run the extractor and ingest its draft.

        Raises ExtractionFailedError (carrying any partial draft) when the
        extractor errors, the draft is incomplete, or confidence is below the
        configured threshold; callers fall back to manual entry.
        """
        if self.extractor is None:
            extraction_failure_counter.labels(reason="error").inc()
            raise ExtractionFailedError("No extractor configured")

        result = await self.extractor.extract(document)
        if not result.ok:
            extraction_failure_counter.labels(reason="error").inc()
            draft = result.draft.to_dict() if result.draft else None
            raise ExtractionFailedError(result.error or "Extraction failed", draft=draft)

        draft = result.draft
        if draft.confidence < self.confidence_threshold:
            extraction_failure_counter.labels(reason="low_confidence").inc()
            raise ExtractionFailedError(
                f"Extraction confidence {draft.confidence:.2f} below threshold {self.confidence_threshold:.2f}",
                draft=draft.to_dict(),
            )

        missing = [name for name in ("buyer", "amount", "due_date") if getattr(draft, name) in (None, "")]
        if missing:
            extraction_failure_counter.labels(reason="incomplete").inc()
            raise ExtractionFailedError(
                f"Extracted draft is missing: {', '.join(missing)}",
                draft=draft.to_dict(),
            )

        try:
            return self._ingest(
                owner_id,
                filename=document.filename,
                amount=draft.amount,
                buyer=draft.buyer,
                due_date=draft.due_date,
                risk_band=None,
                source="extraction",
                draft=draft,
            )
        except ValidationError as e:
            extraction_failure_counter.labels(reason="invalid").inc()
            raise ExtractionFailedError(f"Extracted draft is invalid: {e}", draft=draft.to_dict()) from e

    def create_invoice_manual(
        self,
        owner_id: str,
        filename: str,
        amount: int,
        buyer: str,
        due_date: date,
        risk_band: Optional[str] = None,
    ) -> Invoice:
        """Ingest a manually entered invoice; band is scored when not supplied"""
        return self._ingest(
            owner_id,
            filename=filename,
            amount=amount,
            buyer=buyer,
            due_date=due_date,
            risk_band=risk_band,
            source="manual",
        )

    def _ingest(
        self,
        owner_id: str,
        filename: Any,
        amount: Any,
        buyer: Any,
        due_date: Any,
        risk_band: Optional[str],
        source: str,
        draft: Optional[ExtractedInvoice] = None,
    ) -> Invoice:
        now = self.clock()
        _validate_invoice_fields(filename, amount, buyer, due_date, risk_band, today=now.date())

        signals = self.signal_source.get_signals(buyer) if self.signal_source else None
        assessment = assess_invoice_risk(
            amount,
            due_date,
            now,
            signals=signals,
            confidence=draft.field_confidence if draft else None,
        )

        if risk_band is None:
            band, score = assessment.band, assessment.score
        else:
            band, score = risk_band, BAND_SCORES[risk_band]

        extraction = None
        if draft is not None:
            extraction = {
                "confidence": draft.confidence,
                "field_confidence": draft.field_confidence,
                "scoring_mode": assessment.mode,
                "days_to_due": assessment.days_to_due,
            }

        invoice = Invoice(
            id=self.id_factory(),
            owner_id=owner_id,
            filename=filename,
            amount=amount,
            buyer=buyer,
            due_date=due_date,
            status=INVOICE_UPLOADED,
            risk_band=band,
            risk_score=score,
            created_at=now,
            invoice_number=draft.invoice_number if draft else None,
            extraction=extraction,
        )
        self.invoices.create(owner_id, invoice.id, invoice)

        record_invoice_created(source, band)
        log_transition(
            "Invoice uploaded",
            owner_id,
            invoice.id,
            source=source,
            risk_band=band,
            risk_score=score,
            scoring_mode=assessment.mode if risk_band is None else "supplied",
        )
        return invoice

    # Reads

    def get_invoice(self, owner_id: str, invoice_id: str) -> Invoice:
        invoice = self.invoices.get(invoice_id)
        if invoice is None or invoice.owner_id != owner_id:
            raise NotFoundError("invoice", invoice_id)
        return invoice

    def get_advance(self, owner_id: str, advance_id: str) -> Advance:
        advance = self.advances.get(advance_id)
        if advance is None or advance.owner_id != owner_id:
            raise NotFoundError("advance", advance_id)
        return advance

    def list_invoices(self, owner_id: str) -> List[Invoice]:
        return sorted(self.invoices.list_by_owner(owner_id), key=lambda i: i.created_at, reverse=True)

    def list_advances(self, owner_id: str) -> List[Advance]:
        """Owner's advances, newest first"""
        return sorted(self.advances.list_by_owner(owner_id), key=lambda a: a.created_at, reverse=True)

    def list_settlements(self, owner_id: str) -> List[Settlement]:
        """Owner's settlements, most recently paid first"""
        return sorted(self.settlements.list_by_owner(owner_id), key=lambda s: s.paid_date, reverse=True)

    def quote_offer(self, owner_id: str, invoice_id: str) -> Offer:
        """Offer terms for an invoice; the "offered" state lives only in this quote"""
        invoice = self.get_invoice(owner_id, invoice_id)
        return calculate_offer(invoice.amount, invoice.risk_band)

    def summarize_advances(self, owner_id: str) -> AdvanceSummary:
        return summarize_advances(self.advances.list_by_owner(owner_id), self.clock())

    def summarize_settlements(self, owner_id: str) -> SettlementSummary:
        return summarize_settlements(self.settlements.list_by_owner(owner_id))

    # Transitions

    def _claim(self, claim_key: str, claim: Dict[str, Any], transition: str) -> Tuple[Any, bool]:
        """
        Take the claim for a transition, or pick up one an earlier attempt left.

        Returns (claim, resumed). Every write after the claim is keyed by the
        ids the claim holds, so finishing an interrupted attempt rewrites the
        same records instead of adding new ones.
        """
        if self.retry.call(lambda: self.store.add(claim_key, claim), f"claim.{transition}"):
            return claim, False
        return self.retry.call(lambda: self.store.get(claim_key), f"claim.{transition}"), True

    def accept_offer(
        self,
        owner_id: str,
        invoice_id: str,
        advance_percent: float,
        fee_percent: float,
        advance_amount: int,
    ) -> Invoice:
        """
        Accept offer terms: invoice becomes "advanced" and one active advance opens.

        Rejects with OfferAlreadyAcceptedError when the invoice is past
        "uploaded", or when another acceptance claimed it with different terms.
        A retry of an acceptance that failed partway completes it with the
        advance id recorded in the claim.
        """
        invoice = self.get_invoice(owner_id, invoice_id)
        _validate_offer_terms(invoice.amount, advance_percent, fee_percent, advance_amount)

        # The invoice update is the last write, so "advanced" means complete
        if invoice.status != INVOICE_UPLOADED:
            rejected_transition_counter.labels(transition="accept_offer").inc()
            raise OfferAlreadyAcceptedError(f"Invoice {invoice_id} is already {invoice.status}")

        terms = {"advance_percent": advance_percent, "fee_percent": fee_percent, "advance_amount": advance_amount}
        claim, resumed = self._claim(
            ACCEPT_OFFER_CLAIM.format(invoice_id),
            {"advance_id": self.id_factory(), "created_at": self.clock().isoformat(), **terms},
            "accept_offer",
        )
        if not _is_claim(claim, "advance_id", "created_at", *terms) or any(claim[n] != v for n, v in terms.items()):
            rejected_transition_counter.labels(transition="accept_offer").inc()
            raise OfferAlreadyAcceptedError(f"Offer for invoice {invoice_id} was already accepted")
        if resumed:
            resumed_transition_counter.labels(transition="accept_offer").inc()
            logging.warning(
                "Completing interrupted offer acceptance",
                extra={"invoice_id": invoice_id, "advance_id": claim["advance_id"]},
            )

        advance_id = claim["advance_id"]
        advance = Advance(
            id=advance_id,
            invoice_id=invoice_id,
            owner_id=owner_id,
            filename=invoice.filename,
            buyer=invoice.buyer,
            invoice_amount=invoice.amount,
            advance_amount=advance_amount,
            fee_percent=fee_percent,
            due_date=invoice.due_date,
            status=ADVANCE_ACTIVE,
            risk_band=invoice.risk_band,
            created_at=parse_datetime(claim["created_at"]),
        )
        self.advances.create(owner_id, advance_id, advance)
        updated = self.invoices.update(invoice_id, {"status": INVOICE_ADVANCED, **terms})

        record_offer_accepted(invoice.risk_band, advance_amount)
        log_transition(
            "Offer accepted",
            owner_id,
            invoice_id,
            advance_id=advance_id,
            advance_amount=advance_amount,
            fee_percent=fee_percent,
            resumed=resumed,
        )
        return updated

    def mark_advance_paid(self, owner_id: str, advance_id: str) -> Settlement:
        """
        Reconcile a paid advance into a settlement.

        Fee, remaining amount and days-to-pay come from the advance itself.
        Once the advance is "paid" a further call raises AlreadySettledError.
        A retry of a call that failed partway completes it with the settlement
        id and paid date recorded in the claim.
        """
        advance = self.get_advance(owner_id, advance_id)

        # Flipping the advance to "paid" is the last write, so "paid" means complete
        if advance.status == ADVANCE_PAID:
            rejected_transition_counter.labels(transition="mark_paid").inc()
            raise AlreadySettledError(f"Advance {advance_id} is already paid")

        claim, resumed = self._claim(
            MARK_PAID_CLAIM.format(advance_id),
            {"settlement_id": self.id_factory(), "paid_date": self.clock().isoformat()},
            "mark_paid",
        )
        if not _is_claim(claim, "settlement_id", "paid_date"):
            rejected_transition_counter.labels(transition="mark_paid").inc()
            raise AlreadySettledError(f"Advance {advance_id} was already settled")
        if resumed:
            resumed_transition_counter.labels(transition="mark_paid").inc()
            logging.warning(
                "Completing interrupted settlement",
                extra={"advance_id": advance_id, "settlement_id": claim["settlement_id"]},
            )

        settlement_id = claim["settlement_id"]
        paid_date = parse_datetime(claim["paid_date"])
        fee_amount = percent_of(advance.invoice_amount, advance.fee_percent)
        remaining_amount = advance.invoice_amount - advance.advance_amount - fee_amount

        settlement = Settlement(
            id=settlement_id,
            invoice_id=advance.invoice_id,
            owner_id=owner_id,
            filename=advance.filename,
            buyer=advance.buyer,
            invoice_amount=advance.invoice_amount,
            advance_amount=advance.advance_amount,
            fee_amount=fee_amount,
            fee_percent=advance.fee_percent,
            remaining_amount=remaining_amount,
            settlement_amount=remaining_amount,
            paid_date=paid_date,
            created_at=advance.created_at,
            risk_band=advance.risk_band,
            days_to_pay=days_between(advance.created_at, paid_date),
        )
        self.settlements.create(owner_id, settlement_id, settlement)

        invoice = self.invoices.get(advance.invoice_id)
        if invoice is not None and invoice.status == INVOICE_ADVANCED:
            self.invoices.update(invoice.id, {"status": INVOICE_SETTLED})
        elif invoice is None:
            logging.warning(
                "Source invoice missing at settlement",
                extra={"advance_id": advance_id, "invoice_id": advance.invoice_id},
            )

        self.advances.update(advance_id, {"status": ADVANCE_PAID})

        settlement_counter.labels(risk_band=advance.risk_band).inc()
        log_transition(
            "Advance settled",
            owner_id,
            advance_id,
            settlement_id=settlement_id,
            fee_amount=fee_amount,
            remaining_amount=remaining_amount,
            days_to_pay=settlement.days_to_pay,
            resumed=resumed,
        )
        return settlement


def _validate_invoice_fields(
    filename: Any,
    amount: Any,
    buyer: Any,
    due_date: Any,
    risk_band: Optional[str],
    today: date,
) -> None:
    missing = [
        name
        for name, value in (("filename", filename), ("amount", amount), ("buyer", buyer), ("due_date", due_date))
        if value is None or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    if not isinstance(filename, str) or not isinstance(buyer, str):
        raise ValidationError("filename and buyer must be strings")
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError(f"amount must be a positive integer in minor units, got {amount!r}")
    if isinstance(due_date, datetime) or not isinstance(due_date, date):
        raise ValidationError(f"due_date must be a calendar date, got {due_date!r}")
    if due_date < today:
        raise ValidationError(f"due_date {due_date.isoformat()} is before {today.isoformat()}")
    if risk_band is not None and risk_band not in RISK_BANDS:
        raise ValidationError(f"risk_band must be one of {', '.join(RISK_BANDS)}, got {risk_band!r}")


def _validate_offer_terms(amount: int, advance_percent: float, fee_percent: float, advance_amount: int) -> None:
    if not 0 < fee_percent < 100:
        raise ValidationError(f"fee_percent must be in (0, 100), got {fee_percent}")
    if not 0 < advance_percent <= 100:
        raise ValidationError(f"advance_percent must be in (0, 100], got {advance_percent}")

    expected = percent_of(amount, advance_percent)
    if advance_amount != expected:
        raise ValidationError(
            f"advance_amount {advance_amount} does not match {advance_percent}% of {amount} ({expected})"
        )
    if advance_amount + percent_of(amount, fee_percent) > amount:
        raise ValidationError("advance and fee exceed the invoice amount")


def _is_claim(value: Any, *fields: str) -> bool:
    """True when a stored claim carries every field the transition needs"""
    return isinstance(value, dict) and all(name in value for name in fields)
