"""Prometheus metrics for monitoring intake, offer acceptance, settlements, and store health"""

from prometheus_client import Counter, Histogram

# Lifecycle metrics
invoice_created_counter = Counter(
    "advance_invoices_created_total",
    "Invoices ingested",
    ["source", "risk_band"],  # source: extraction | manual
)

offer_accepted_counter = Counter(
    "advance_offers_accepted_total",
    "Offers accepted and advances opened",
    ["risk_band"],
)

advance_amount_histogram = Histogram(
    "advance_amount_minor_units",
    "Advanced amounts in minor currency units",
    buckets=[5_000, 10_000, 25_000, 40_000, 50_000, 75_000, 100_000],
)

settlement_counter = Counter(
    "advance_settlements_total",
    "Advances marked paid and settled",
    ["risk_band"],
)

rejected_transition_counter = Counter(
    "advance_rejected_transitions_total",
    "State transitions refused because they already happened",
    ["transition"],  # accept_offer | mark_paid
)

resumed_transition_counter = Counter(
    "advance_resumed_transitions_total",
    "Transitions completed on retry after an earlier attempt failed partway",
    ["transition"],
)

# Extraction metrics
extraction_failure_counter = Counter(
    "advance_extraction_failures_total",
    "Extractions that fell back to manual entry",
    ["reason"],  # error | low_confidence | incomplete | invalid
)

# Store metrics
dangling_index_counter = Counter(
    "advance_dangling_index_entries_total",
    "Owner index entries pointing at missing primary records",
    ["kind"],
)

store_unavailable_counter = Counter(
    "advance_store_unavailable_total",
    "Requests answered 503 after store retries were exhausted",
)

store_retry_counter = Counter(
    "advance_store_retries_total",
    "Key-value store calls retried after a transient failure",
    ["operation"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_invoice_created(source: str, risk_band: str) -> None:
    invoice_created_counter.labels(source=source, risk_band=risk_band).inc()


def record_offer_accepted(risk_band: str, advance_amount: int) -> None:
    """Record acceptance by band and the size of the advance for exposure analysis"""
    offer_accepted_counter.labels(risk_band=risk_band).inc()
    advance_amount_histogram.observe(advance_amount)
