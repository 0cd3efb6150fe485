"""Dependency injection for FastAPI endpoints"""

from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException, Request

from advance_gateway.infrastructure.clients.extractor import HttpExtractorClient
from advance_gateway.infrastructure.database.kv_store import SqlKeyValueStore
from advance_gateway.infrastructure.database.models import Base
from advance_gateway.infrastructure.database.session import get_session_factory
from advance_gateway.services.lifecycle import LifecycleService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_owner_id(x_owner_id: Optional[str] = Header(None)) -> str:
    """Caller identity, already authenticated upstream"""
    if not x_owner_id or not x_owner_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-Owner-ID header")
    return x_owner_id.strip()


@lru_cache
def build_default_lifecycle_service() -> LifecycleService:
    """SQL-backed service with the HTTP extractor, built on first use"""
    session_factory = get_session_factory()
    Base.metadata.create_all(bind=session_factory.kw["bind"])
    return LifecycleService(store=SqlKeyValueStore(session_factory), extractor=HttpExtractorClient())


def get_lifecycle_service(request: Request) -> LifecycleService:
    """Provide the lifecycle service configured on the app"""
    service = getattr(request.app.state, "lifecycle", None)
    if service is None:
        service = build_default_lifecycle_service()
        request.app.state.lifecycle = service
    return service
