"""Unit tests for read-time display labels"""

from datetime import timedelta

import pytest

from advance_gateway.domain.models import Advance, Invoice
from advance_gateway.domain.status import display_status
from conftest import FIXED_NOW, OWNER, due_in


def make_advance(due_days: int, status: str = "active") -> Advance:
    return Advance(
        id="adv-1",
        invoice_id="inv-1",
        owner_id=OWNER,
        filename="INV-1.pdf",
        buyer="Acme Corporation",
        invoice_amount=20_000,
        advance_amount=18_000,
        fee_percent=2.5,
        due_date=due_in(due_days),
        status=status,
        risk_band="low",
        created_at=FIXED_NOW,
    )


@pytest.mark.parametrize(
    "due_days,expected",
    [
        (-30, "overdue"),
        (-1, "overdue"),
        (0, "due_soon"),
        (3, "due_soon"),
        (7, "due_soon"),
        (8, "active"),
        (45, "active"),
    ],
)
def test_active_advance_labels(due_days, expected):
    assert display_status(make_advance(due_days), FIXED_NOW) == expected


def test_paid_advance_is_always_paid():
    """Test paid label wins even when the due date has passed"""
    assert display_status(make_advance(-10, status="paid"), FIXED_NOW) == "paid"


def test_label_moves_with_the_clock():
    advance = make_advance(10)
    later = FIXED_NOW + timedelta(days=5)

    assert display_status(advance, FIXED_NOW) == "active"
    assert display_status(advance, later) == "due_soon"


def test_label_is_not_persisted():
    advance = make_advance(-2)
    display_status(advance, FIXED_NOW)
    assert advance.status == "active"


def test_invoice_shows_stored_status():
    invoice = Invoice(
        id="inv-1",
        owner_id=OWNER,
        filename="INV-1.pdf",
        amount=20_000,
        buyer="Acme Corporation",
        due_date=due_in(-5),
        status="advanced",
        risk_band="low",
        created_at=FIXED_NOW,
    )
    assert display_status(invoice, FIXED_NOW) == "advanced"
