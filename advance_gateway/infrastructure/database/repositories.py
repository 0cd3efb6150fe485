"""Data access layer for invoices, advances and settlements"""

import dataclasses
import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from advance_gateway.domain.exceptions import NotFoundError
from advance_gateway.domain.models import Advance, Invoice, Settlement
from advance_gateway.infrastructure.database.kv_store import KeyValueStore
from advance_gateway.infrastructure.database.retry import StoreRetryPolicy
from advance_gateway.infrastructure.observability.metrics import dangling_index_counter

E = TypeVar("E", Invoice, Advance, Settlement)


class IndexedRepository(Generic[E]):
    """
    CRUD over a key-value store with a per-owner secondary index.

    Key layout:
        <kind>:<id>                   primary record
        owner:<owner_id>:<kind>:<id>  index pointer, value is <id>

    Primary and index writes are independent; listings skip pointers whose
    primary record is missing.
    """

    kind: str
    entity_type: Type[E]

    def __init__(self, store: KeyValueStore, retry: Optional[StoreRetryPolicy] = None):
        self.store = store
        self.retry = retry or StoreRetryPolicy()

    def primary_key(self, entity_id: str) -> str:
        return f"{self.kind}:{entity_id}"

    def index_prefix(self, owner_id: str) -> str:
        return f"owner:{owner_id}:{self.kind}:"

    def index_key(self, owner_id: str, entity_id: str) -> str:
        return f"{self.index_prefix(owner_id)}{entity_id}"

    def create(self, owner_id: str, entity_id: str, entity: E) -> E:
        """Persist primary record, then the owner index pointer"""
        record = entity.to_record()
        self.retry.call(lambda: self.store.set(self.primary_key(entity_id), record), f"{self.kind}.create")
        self.retry.call(
            lambda: self.store.set(self.index_key(owner_id, entity_id), entity_id),
            f"{self.kind}.index",
        )
        return entity

    def get(self, entity_id: str) -> Optional[E]:
        record = self.retry.call(lambda: self.store.get(self.primary_key(entity_id)), f"{self.kind}.get")
        if record is None:
            return None
        return self.entity_type.from_record(record)

    def update(self, entity_id: str, patch: Dict[str, Any]) -> E:
        """Read-modify-write of the primary record; index pointers never change"""
        current = self.get(entity_id)
        if current is None:
            raise NotFoundError(self.kind, entity_id)

        updated = dataclasses.replace(current, **patch)
        record = updated.to_record()
        self.retry.call(lambda: self.store.set(self.primary_key(entity_id), record), f"{self.kind}.update")
        return updated

    def list_by_owner(self, owner_id: str) -> List[E]:
        """Resolve every index pointer for the owner, dropping dangling ones"""
        entity_ids = self.retry.call(
            lambda: self.store.get_by_prefix(self.index_prefix(owner_id)),
            f"{self.kind}.scan",
        )

        entities = []
        for entity_id in entity_ids:
            entity = self.get(entity_id)
            if entity is None:
                dangling_index_counter.labels(kind=self.kind).inc()
                logging.warning(
                    f"{self.kind.capitalize()} not found for index entry",
                    extra={"kind": self.kind, "owner_id": owner_id, "entity_id": entity_id},
                )
                continue
            entities.append(entity)

        return entities


class InvoiceRepository(IndexedRepository[Invoice]):
    """Repository for invoices"""

    kind = "invoice"
    entity_type = Invoice


class AdvanceRepository(IndexedRepository[Advance]):
    """Repository for advances"""

    kind = "advance"
    entity_type = Advance


class SettlementRepository(IndexedRepository[Settlement]):
    """Repository for settlements"""

    kind = "settlement"
    entity_type = Settlement
