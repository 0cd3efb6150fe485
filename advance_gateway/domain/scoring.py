"""Risk scoring engine - core business logic for invoice risk bands"""

from datetime import date, datetime
from typing import Dict, Optional

from advance_gateway.domain.models import RiskAssessment, RiskSignals
from advance_gateway.utils.date_utils import days_until

BASE_SCORE = 0.8
MIN_SCORE = 0.1
MAX_SCORE = 1.0

# Representative score for a band decided without auxiliary signals.
# Each one bands back to itself through determine_risk_band().
BAND_SCORES = {"low": 0.9, "medium": 0.7, "high": 0.4}
DEFAULT_BAND = "medium"


def classify_simple(amount: int, days_to_due: int) -> str:
    """
    Structural banding from amount and term only.

    - amount < 25,000 and due within 60 days: low
    - amount < 40,000 and due within 45 days: medium
    - everything else: high

    Larger amounts or longer terms never move an invoice to a better band.
    """
    if amount < 25_000 and days_to_due < 60:
        return "low"
    elif amount < 40_000 and days_to_due < 45:
        return "medium"
    else:
        return "high"


def calculate_risk_score(amount: int, days_to_due: int, signals: RiskSignals) -> float:
    """
    Calculate risk score from 0.1 (highest risk) to 1.0 (lowest risk).

    Starts from a 0.8 base, takes a flat penalty for large amounts and long
    terms, then scales by buyer profile, payment history and industry factor.
    """
    score = BASE_SCORE

    # Amount penalty: larger exposure is riskier
    if amount > 50_000:
        score -= 0.10
    elif amount > 30_000:
        score -= 0.05

    # Term penalty: longer terms are riskier
    if days_to_due > 60:
        score -= 0.10
    elif days_to_due > 45:
        score -= 0.05

    score *= signals.buyer_profile
    score *= signals.payment_history
    score *= signals.industry_factor

    return max(MIN_SCORE, min(MAX_SCORE, score))


def determine_risk_band(score: float) -> str:
    """
    Map risk score to a band.

    - 0.8+:      low
    - 0.6 - 0.8: medium
    - below 0.6: high
    """
    if score >= 0.8:
        return "low"
    elif score >= 0.6:
        return "medium"
    else:
        return "high"


def assess_invoice_risk(
    amount: Optional[int],
    due_date: Optional[date | datetime],
    now: datetime,
    signals: Optional[RiskSignals] = None,
    confidence: Optional[Dict[str, float]] = None,
) -> RiskAssessment:
    """
    Main entry point: pick scoring mode and produce a band.

    Scored mode runs when auxiliary signals are available, simple mode
    otherwise. Never raises: a missing amount or due date yields the default
    medium band. Extractor confidence is carried through for the record.
    """
    if amount is None or due_date is None:
        return RiskAssessment(
            score=BAND_SCORES[DEFAULT_BAND],
            band=DEFAULT_BAND,
            mode="default",
            days_to_due=None,
            confidence=confidence,
        )

    days_to_due = days_until(due_date, now)

    if signals is not None:
        score = calculate_risk_score(amount, days_to_due, signals)
        return RiskAssessment(
            score=score,
            band=determine_risk_band(score),
            mode="scored",
            days_to_due=days_to_due,
            confidence=confidence,
        )

    band = classify_simple(amount, days_to_due)
    return RiskAssessment(
        score=BAND_SCORES[band],
        band=band,
        mode="simple",
        days_to_due=days_to_due,
        confidence=confidence,
    )
