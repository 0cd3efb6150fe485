"""Pytest fixtures for testing"""

from datetime import date, datetime, timedelta, timezone
from typing import Generator, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from advance_gateway.api.main import create_app
from advance_gateway.domain.models import Document, ExtractedInvoice, ExtractionResult
from advance_gateway.infrastructure.database.kv_store import InMemoryKeyValueStore, SqlKeyValueStore
from advance_gateway.infrastructure.database.models import Base
from advance_gateway.infrastructure.database.retry import StoreRetryPolicy
from advance_gateway.services.lifecycle import LifecycleService

OWNER = "supplier-1"
OTHER_OWNER = "supplier-2"
FIXED_NOW = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)


def due_in(days: int) -> date:
    """Calendar date `days` after the fixed clock's date"""
    return FIXED_NOW.date() + timedelta(days=days)


class FakeClock:
    """Settable clock; call it to read the current time"""

    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class StubExtractor:
    """Returns a canned result and remembers what it was given"""

    def __init__(self, result: ExtractionResult):
        self.result = result
        self.documents: List[Document] = []

    async def extract(self, document: Document) -> ExtractionResult:
        self.documents.append(document)
        return self.result


def no_sleep(seconds: float) -> None:
    pass


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(FIXED_NOW)


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def retry_policy() -> StoreRetryPolicy:
    """Three attempts with no real waiting"""
    return StoreRetryPolicy(max_retries=3, backoff_base=0.0, sleep=no_sleep)


@pytest.fixture
def good_draft() -> ExtractedInvoice:
    return ExtractedInvoice(
        buyer="Acme Corporation",
        amount=18_000,
        due_date=due_in(30),
        invoice_number="INV-2026-014",
        confidence=0.95,
        field_confidence={"buyer": 0.98, "amount": 0.96, "dueDate": 0.94, "invoiceNumber": 0.99},
    )


@pytest.fixture
def extractor(good_draft: ExtractedInvoice) -> StubExtractor:
    return StubExtractor(ExtractionResult.success(good_draft))


@pytest.fixture
def service(store, extractor, clock, retry_policy) -> LifecycleService:
    """Lifecycle service over an in-memory store with a fixed clock"""
    return LifecycleService(
        store=store,
        extractor=extractor,
        clock=clock,
        retry=retry_policy,
        confidence_threshold=0.7,
    )


@pytest.fixture
def sql_store(tmp_path) -> Generator[SqlKeyValueStore, None, None]:
    """Key-value store on a throwaway SQLite database"""
    engine = create_engine(f"sqlite:///{tmp_path / 'kv.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    try:
        yield SqlKeyValueStore(sessionmaker(autocommit=False, autoflush=False, bind=engine))
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(service: LifecycleService) -> TestClient:
    """Create FastAPI test client bound to the in-memory service"""
    return TestClient(create_app(lifecycle=service))
