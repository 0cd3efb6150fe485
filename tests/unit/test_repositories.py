"""Unit tests for the owner-indexed repositories"""

from typing import Any, List

import pytest

from advance_gateway.domain.exceptions import NotFoundError, StoreUnavailableError
from advance_gateway.domain.models import Invoice
from advance_gateway.infrastructure.database.kv_store import InMemoryKeyValueStore
from advance_gateway.infrastructure.database.repositories import AdvanceRepository, InvoiceRepository
from advance_gateway.infrastructure.database.retry import StoreRetryPolicy
from conftest import FIXED_NOW, OTHER_OWNER, OWNER, due_in, no_sleep


def make_invoice(invoice_id: str, owner_id: str = OWNER, amount: int = 20_000) -> Invoice:
    return Invoice(
        id=invoice_id,
        owner_id=owner_id,
        filename=f"{invoice_id}.pdf",
        amount=amount,
        buyer="Acme Corporation",
        due_date=due_in(30),
        status="uploaded",
        risk_band="low",
        created_at=FIXED_NOW,
        risk_score=0.9,
    )


class FlakyStore(InMemoryKeyValueStore):
    """Fails the first `failures` reads with a transient error"""

    def __init__(self, failures: int):
        super().__init__()
        self.failures = failures
        self.calls = 0

    def get(self, key: str) -> Any:
        self.calls += 1
        if self.calls <= self.failures:
            raise StoreUnavailableError("connection reset")
        return super().get(key)


def test_create_writes_primary_record_and_index_pointer(store, retry_policy):
    repo = InvoiceRepository(store, retry_policy)
    repo.create(OWNER, "inv-1", make_invoice("inv-1"))

    assert store.get("invoice:inv-1")["amount"] == 20_000
    assert store.get(f"owner:{OWNER}:invoice:inv-1") == "inv-1"


def test_get_round_trips_entity(store, retry_policy):
    repo = InvoiceRepository(store, retry_policy)
    invoice = make_invoice("inv-1")
    repo.create(OWNER, "inv-1", invoice)

    assert repo.get("inv-1") == invoice
    assert repo.get("inv-missing") is None


def test_update_patches_primary_only(store, retry_policy):
    """Test update rewrites the record but leaves the index pointer alone"""
    repo = InvoiceRepository(store, retry_policy)
    repo.create(OWNER, "inv-1", make_invoice("inv-1"))

    updated = repo.update("inv-1", {"status": "advanced", "advance_amount": 18_000})

    assert updated.status == "advanced"
    assert repo.get("inv-1").advance_amount == 18_000
    assert store.get(f"owner:{OWNER}:invoice:inv-1") == "inv-1"


def test_update_missing_raises_not_found(store, retry_policy):
    repo = InvoiceRepository(store, retry_policy)
    with pytest.raises(NotFoundError):
        repo.update("inv-missing", {"status": "advanced"})


def test_list_by_owner_is_scoped(store, retry_policy):
    repo = InvoiceRepository(store, retry_policy)
    repo.create(OWNER, "inv-1", make_invoice("inv-1"))
    repo.create(OWNER, "inv-2", make_invoice("inv-2"))
    repo.create(OTHER_OWNER, "inv-3", make_invoice("inv-3", owner_id=OTHER_OWNER))

    assert sorted(i.id for i in repo.list_by_owner(OWNER)) == ["inv-1", "inv-2"]
    assert [i.id for i in repo.list_by_owner(OTHER_OWNER)] == ["inv-3"]


def test_list_by_owner_kinds_do_not_mix(store, retry_policy):
    InvoiceRepository(store, retry_policy).create(OWNER, "inv-1", make_invoice("inv-1"))
    assert AdvanceRepository(store, retry_policy).list_by_owner(OWNER) == []


def test_list_by_owner_skips_dangling_index_entries(store, retry_policy):
    """Test an owner with only dangling pointers lists nothing and does not error"""
    store.set(f"owner:{OWNER}:invoice:ghost-1", "ghost-1")
    store.set(f"owner:{OWNER}:invoice:ghost-2", "ghost-2")

    assert InvoiceRepository(store, retry_policy).list_by_owner(OWNER) == []


def test_list_by_owner_keeps_live_records_next_to_dangling_ones(store, retry_policy):
    repo = InvoiceRepository(store, retry_policy)
    repo.create(OWNER, "inv-1", make_invoice("inv-1"))
    store.set(f"owner:{OWNER}:invoice:ghost", "ghost")

    assert [i.id for i in repo.list_by_owner(OWNER)] == ["inv-1"]


def test_transient_failures_are_retried_with_backoff():
    """Test exponential backoff on StoreUnavailableError"""
    delays: List[float] = []
    store = FlakyStore(failures=2)
    repo = InvoiceRepository(store, StoreRetryPolicy(max_retries=3, backoff_base=0.1, sleep=delays.append))
    store.set("invoice:inv-1", make_invoice("inv-1").to_record())

    assert repo.get("inv-1").id == "inv-1"
    assert delays == pytest.approx([0.1, 0.2])


def test_exhausted_retries_raise_store_unavailable():
    """Test persistent failure is reported, never treated as a missing record"""
    store = FlakyStore(failures=10)
    repo = InvoiceRepository(store, StoreRetryPolicy(max_retries=3, backoff_base=0.0, sleep=no_sleep))

    with pytest.raises(StoreUnavailableError):
        repo.get("inv-1")
    assert store.calls == 3
