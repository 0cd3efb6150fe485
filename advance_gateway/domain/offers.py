"""Advance offer terms derived from the invoice risk band"""

import logging
from decimal import ROUND_FLOOR, Decimal

from advance_gateway.domain.models import Offer

logger = logging.getLogger(__name__)

# band -> (advance percent, fee percent)
OFFER_TERMS = {
    "low": (90, 2.5),
    "medium": (85, 3.0),
    "high": (80, 3.5),
}
FALLBACK_BAND = "medium"

OFFER_MESSAGES = {
    "low": "Excellent risk profile. Recommended for maximum advance.",
    "medium": "Good risk profile with standard terms.",
    "high": "Higher risk profile requires conservative advance terms.",
}


def percent_of(amount: int, percent: float) -> int:
    """floor(amount * percent / 100) in exact decimal arithmetic"""
    value = Decimal(amount) * Decimal(str(percent)) / Decimal(100)
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def calculate_offer(amount: int, risk_band: str) -> Offer:
    """
    Compute advance terms for an invoice.

    Requirements:
    - Banded advance/fee percentages (low 90/2.5, medium 85/3.0, high 80/3.5)
    - Amounts floored to whole minor units
    - Unknown bands get medium terms rather than an error

    Example:
        25,000 at low → advance 22,500, fee 625, remaining 1,875
    """
    terms = OFFER_TERMS.get(risk_band)
    if terms is None:
        logger.warning(
            "Unknown risk band, using fallback terms",
            extra={"risk_band": risk_band, "fallback_band": FALLBACK_BAND},
        )
        terms = OFFER_TERMS[FALLBACK_BAND]

    advance_percent, fee_percent = terms
    advance_amount = percent_of(amount, advance_percent)
    fee_amount = percent_of(amount, fee_percent)

    return Offer(
        risk_band=risk_band,
        advance_percent=advance_percent,
        fee_percent=fee_percent,
        advance_amount=advance_amount,
        fee_amount=fee_amount,
        net_received=advance_amount,
        remaining_amount=amount - advance_amount - fee_amount,
    )


def offer_message(risk_band: str) -> str:
    return OFFER_MESSAGES.get(risk_band, OFFER_MESSAGES[FALLBACK_BAND])
