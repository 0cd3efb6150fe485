"""Read-time display labels; derived from stored fields and never persisted"""

from datetime import datetime
from typing import Union

from advance_gateway.domain.models import ADVANCE_PAID, Advance, Invoice, Settlement
from advance_gateway.utils.date_utils import days_until

DUE_SOON_DAYS = 7


def display_status(entity: Union[Invoice, Advance, Settlement], now: datetime) -> str:
    """
    Label an entity for presentation.

    Advances: "paid" once paid, otherwise "overdue" past the due date,
    "due_soon" within 7 days of it, else "active". Invoices and settlements
    show their stored status.
    """
    if not isinstance(entity, Advance):
        return entity.status

    if entity.status == ADVANCE_PAID:
        return "paid"

    days_to_due = days_until(entity.due_date, now)
    if days_to_due < 0:
        return "overdue"
    elif days_to_due <= DUE_SOON_DAYS:
        return "due_soon"
    return "active"
