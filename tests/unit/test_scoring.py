"""Unit tests for risk scoring logic"""

import pytest

from advance_gateway.domain.models import RiskSignals
from advance_gateway.domain.scoring import (
    BAND_SCORES,
    assess_invoice_risk,
    calculate_risk_score,
    classify_simple,
    determine_risk_band,
)
from conftest import FIXED_NOW, due_in

BAND_RANK = {"low": 0, "medium": 1, "high": 2}
NEUTRAL = RiskSignals(buyer_profile=1.0, payment_history=1.0, industry_factor=1.0)


def test_classify_simple_bands():
    """Test simple-mode thresholds on amount and term"""
    assert classify_simple(24_999, 59) == "low"
    assert classify_simple(24_999, 44) == "low"
    assert classify_simple(30_000, 44) == "medium"
    assert classify_simple(39_999, 30) == "medium"
    assert classify_simple(40_000, 10) == "high"
    assert classify_simple(24_999, 60) == "high"  # Short amount but long term
    assert classify_simple(30_000, 45) == "high"


def test_classify_simple_thresholds_are_strict():
    """Test that 25,000 is not below the 25,000 low-risk ceiling"""
    assert classify_simple(25_000, 59) == "high"
    assert classify_simple(25_000, 44) == "medium"


def test_classify_simple_monotonic():
    """Test larger amounts or longer terms never improve the band"""
    amounts = [1_000, 10_000, 24_999, 25_000, 30_000, 39_999, 40_000, 60_000]
    terms = [0, 10, 44, 45, 59, 60, 90, 180]

    for amount in amounts:
        ranks = [BAND_RANK[classify_simple(amount, days)] for days in terms]
        assert ranks == sorted(ranks), f"term monotonicity broken at amount={amount}"

    for days in terms:
        ranks = [BAND_RANK[classify_simple(amount, days)] for amount in amounts]
        assert ranks == sorted(ranks), f"amount monotonicity broken at days={days}"


def test_calculate_risk_score_penalties():
    """Test base score with amount and term penalties under neutral signals"""
    assert calculate_risk_score(20_000, 30, NEUTRAL) == pytest.approx(0.8)
    assert calculate_risk_score(35_000, 30, NEUTRAL) == pytest.approx(0.75)
    assert calculate_risk_score(35_000, 50, NEUTRAL) == pytest.approx(0.7)
    assert calculate_risk_score(60_000, 90, NEUTRAL) == pytest.approx(0.6)


def test_calculate_risk_score_applies_signals():
    """Test each auxiliary ratio scales the score"""
    signals = RiskSignals(buyer_profile=0.9, payment_history=0.9, industry_factor=0.8)
    assert calculate_risk_score(20_000, 30, signals) == pytest.approx(0.8 * 0.9 * 0.9 * 0.8)


def test_calculate_risk_score_clamped():
    """Test score never drops below 0.1"""
    weak = RiskSignals(buyer_profile=0.3, payment_history=0.3, industry_factor=0.3)
    assert calculate_risk_score(60_000, 90, weak) == 0.1


def test_determine_risk_band_boundaries():
    """Test band mapping at score thresholds"""
    assert determine_risk_band(1.0) == "low"
    assert determine_risk_band(0.8) == "low"
    assert determine_risk_band(0.79) == "medium"
    assert determine_risk_band(0.6) == "medium"
    assert determine_risk_band(0.59) == "high"
    assert determine_risk_band(0.1) == "high"


def test_band_scores_agree_with_thresholds():
    """Test simple-mode representative scores band back to the same band"""
    for band, score in BAND_SCORES.items():
        assert determine_risk_band(score) == band


def test_risk_signals_reject_out_of_range():
    with pytest.raises(ValueError):
        RiskSignals(buyer_profile=0.0, payment_history=0.9, industry_factor=0.9)
    with pytest.raises(ValueError):
        RiskSignals(buyer_profile=0.9, payment_history=1.2, industry_factor=0.9)


def test_assess_invoice_risk_simple_mode():
    """Test simple mode with days-to-due rounded up from the clock"""
    assessment = assess_invoice_risk(20_000, due_in(59), FIXED_NOW)

    # Due at midnight 59 days out, clock at 10:00: 58.6 days → 59
    assert assessment.days_to_due == 59
    assert assessment.mode == "simple"
    assert assessment.band == "low"
    assert assessment.score == BAND_SCORES["low"]


def test_assess_invoice_risk_scored_mode():
    """Test scored mode when auxiliary signals are supplied"""
    signals = RiskSignals(buyer_profile=0.9, payment_history=0.95, industry_factor=0.85)
    assessment = assess_invoice_risk(45_000, due_in(30), FIXED_NOW, signals=signals)

    assert assessment.mode == "scored"
    assert assessment.score == pytest.approx(0.75 * 0.9 * 0.95 * 0.85)
    assert assessment.band == "high"


def test_assess_invoice_risk_missing_inputs_default_medium():
    """Test missing amount or due date never raises"""
    assert assess_invoice_risk(None, due_in(10), FIXED_NOW).band == "medium"

    assessment = assess_invoice_risk(10_000, None, FIXED_NOW)
    assert assessment.band == "medium"
    assert assessment.mode == "default"
    assert assessment.days_to_due is None


def test_assess_invoice_risk_carries_confidence():
    """Test extractor confidence is recorded without moving the score"""
    confidence = {"amount": 0.4, "buyer": 0.99}
    with_conf = assess_invoice_risk(20_000, due_in(20), FIXED_NOW, confidence=confidence)
    without = assess_invoice_risk(20_000, due_in(20), FIXED_NOW)

    assert with_conf.confidence == confidence
    assert with_conf.score == without.score
