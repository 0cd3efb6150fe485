"""Portfolio summaries over advances and settlements"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List

from advance_gateway.domain.models import ADVANCE_ACTIVE, RISK_BANDS, Advance, Settlement
from advance_gateway.domain.status import display_status


@dataclass
class AdvanceSummary:
    advance_count: int
    total_advanced: int
    active_count: int
    overdue_count: int
    due_soon_count: int


@dataclass
class SettlementSummary:
    settlement_count: int
    total_settled: int
    total_advanced: int
    total_fees: int
    total_remaining: int
    avg_days_to_pay: int
    risk_distribution: Dict[str, int] = field(default_factory=dict)


def summarize_advances(advances: List[Advance], now: datetime) -> AdvanceSummary:
    labels = [display_status(a, now) for a in advances]
    return AdvanceSummary(
        advance_count=len(advances),
        total_advanced=sum(a.advance_amount for a in advances),
        active_count=sum(1 for a in advances if a.status == ADVANCE_ACTIVE),
        overdue_count=labels.count("overdue"),
        due_soon_count=labels.count("due_soon"),
    )


def summarize_settlements(settlements: List[Settlement]) -> SettlementSummary:
    count = len(settlements)
    avg_days = round(sum(s.days_to_pay for s in settlements) / count) if count else 0

    distribution = {band: 0 for band in RISK_BANDS}
    for s in settlements:
        distribution[s.risk_band] = distribution.get(s.risk_band, 0) + 1

    return SettlementSummary(
        settlement_count=count,
        total_settled=sum(s.invoice_amount for s in settlements),
        total_advanced=sum(s.advance_amount for s in settlements),
        total_fees=sum(s.fee_amount for s in settlements),
        total_remaining=sum(s.remaining_amount for s in settlements),
        avg_days_to_pay=avg_days,
        risk_distribution=distribution,
    )
