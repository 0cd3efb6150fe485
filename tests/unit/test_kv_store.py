"""Unit tests for the key-value store backends"""

import pytest
from sqlalchemy.exc import OperationalError

from advance_gateway.domain.exceptions import StoreUnavailableError
from advance_gateway.infrastructure.database.kv_store import InMemoryKeyValueStore, SqlKeyValueStore


@pytest.fixture(params=["memory", "sql"])
def kv(request, sql_store):
    """Run each contract test against both backends"""
    if request.param == "memory":
        return InMemoryKeyValueStore()
    return sql_store


def test_get_absent_key_returns_none(kv):
    assert kv.get("invoice:missing") is None


def test_set_overwrites(kv):
    kv.set("invoice:1", {"amount": 100})
    kv.set("invoice:1", {"amount": 200})

    assert kv.get("invoice:1") == {"amount": 200}


def test_plain_string_values(kv):
    """Test index pointers store a bare id"""
    kv.set("owner:o1:invoice:1", "1")
    assert kv.get("owner:o1:invoice:1") == "1"


def test_get_by_prefix(kv):
    kv.set("owner:o1:advance:a", "a")
    kv.set("owner:o1:advance:b", "b")
    kv.set("owner:o1:settlement:c", "c")
    kv.set("owner:o2:advance:d", "d")

    assert sorted(kv.get_by_prefix("owner:o1:advance:")) == ["a", "b"]
    assert kv.get_by_prefix("owner:o3:") == []


def test_get_by_prefix_treats_wildcards_literally(kv):
    """Test LIKE wildcard characters in owner ids do not widen the scan"""
    kv.set("owner:a_b:invoice:1", "1")
    kv.set("owner:axb:invoice:2", "2")
    kv.set("owner:a%:invoice:3", "3")

    assert kv.get_by_prefix("owner:a_b:") == ["1"]
    assert kv.get_by_prefix("owner:a%:") == ["3"]


def test_add_only_when_absent(kv):
    """Test conditional insert used for transition claims"""
    assert kv.add("claim:accept-offer:1", "advance-a") is True
    assert kv.add("claim:accept-offer:1", "advance-b") is False
    assert kv.get("claim:accept-offer:1") == "advance-a"


def test_in_memory_store_copies_values():
    """Test callers cannot mutate stored records through returned values"""
    store = InMemoryKeyValueStore()
    record = {"status": "uploaded"}
    store.set("invoice:1", record)

    record["status"] = "advanced"
    fetched = store.get("invoice:1")
    fetched["status"] = "settled"

    assert store.get("invoice:1") == {"status": "uploaded"}


class _BrokenSession:
    """Session whose every query fails as if the connection dropped"""

    def __init__(self):
        self.rolled_back = False
        self.closed = False

    def get(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    def execute(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


def test_sql_store_translates_connection_errors():
    """Test transient database failures surface as StoreUnavailableError, not as absent keys"""
    session = _BrokenSession()
    store = SqlKeyValueStore(lambda: session)

    with pytest.raises(StoreUnavailableError):
        store.get("invoice:1")
    with pytest.raises(StoreUnavailableError):
        store.get_by_prefix("owner:o1:invoice:")

    assert session.rolled_back is True
    assert session.closed is True
