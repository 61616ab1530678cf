"""
Registry Store — Abstract record/counter store and its backends.

The scoring, optimizer and orchestrator code reads and writes the registry
only through this interface, so it can be unit-tested against the in-memory
backend without a database.

Interface:
  get(kind, key)          → record or None
  put(kind, key, record)  → stage a record write
  next_id(counter)        → allocate the current value and advance by one
  count(counter)          → read a scalar counter
  set_count(counter, v)   → overwrite a scalar counter
  scan(kind)              → all records of a kind, ordered by key
  commit() / rollback()   → end the current unit of work

Backends:
  - SqlRegistryStore       — async SQLAlchemy session (production)
  - InMemoryRegistryStore  — dict maps with a staged write set (tests, replays)
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import (
    COUNTER_DEFAULTS,
    Counter,
    DemandPrediction,
    Product,
    RegistryCounter,
    Shipment,
    Supplier,
)


class RecordKind(str, Enum):
    """Record maps held by the registry."""

    PRODUCT = "product"
    SUPPLIER = "supplier"
    SHIPMENT = "shipment"
    DEMAND_PREDICTION = "demand_prediction"  # key: (product_id, forecast_period)


RECORD_MODELS = {
    RecordKind.PRODUCT: Product,
    RecordKind.SUPPLIER: Supplier,
    RecordKind.SHIPMENT: Shipment,
    RecordKind.DEMAND_PREDICTION: DemandPrediction,
}


def record_key(kind: RecordKind, record: Any) -> Any:
    """Return the map key a record is stored under."""
    if kind == RecordKind.PRODUCT:
        return record.product_id
    if kind == RecordKind.SUPPLIER:
        return record.supplier_id
    if kind == RecordKind.SHIPMENT:
        return record.shipment_id
    return (record.product_id, record.forecast_period)


def _sort_key(key: Any) -> tuple:
    return key if isinstance(key, tuple) else (key,)


class RegistryStore(ABC):
    """Keyed record maps plus scalar counters."""

    @abstractmethod
    async def get(self, kind: RecordKind, key: Any) -> Any | None:
        ...

    @abstractmethod
    async def put(self, kind: RecordKind, key: Any, record: Any) -> None:
        ...

    @abstractmethod
    async def next_id(self, counter: RegistryCounter) -> int:
        ...

    @abstractmethod
    async def count(self, counter: RegistryCounter) -> int:
        ...

    @abstractmethod
    async def set_count(self, counter: RegistryCounter, value: int) -> None:
        ...

    @abstractmethod
    async def scan(self, kind: RecordKind) -> list[Any]:
        ...

    @abstractmethod
    async def commit(self) -> None:
        ...

    @abstractmethod
    async def rollback(self) -> None:
        ...

    async def add_to_count(self, counter: RegistryCounter, delta: int) -> int:
        value = await self.count(counter) + delta
        await self.set_count(counter, value)
        return value

    @staticmethod
    def _check_key(kind: RecordKind, key: Any, record: Any) -> None:
        if record_key(kind, record) != key:
            raise ValueError(f"{kind.value} record stored under mismatched key {key!r}")


# ── SQLAlchemy backend ────────────────────────────────────────────────────


class SqlRegistryStore(RegistryStore):
    """Registry store over one async SQLAlchemy session (one unit of work)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, kind: RecordKind, key: Any) -> Any | None:
        return await self.db.get(RECORD_MODELS[kind], key)

    async def put(self, kind: RecordKind, key: Any, record: Any) -> None:
        self._check_key(kind, key, record)
        self.db.add(record)
        # Flush so a follow-up get() by primary key sees the row.
        await self.db.flush()

    async def next_id(self, counter: RegistryCounter) -> int:
        return await self.add_to_count(counter, 1) - 1

    async def count(self, counter: RegistryCounter) -> int:
        result = await self.db.execute(select(Counter.value).where(Counter.name == counter.value))
        value = result.scalar_one_or_none()
        if value is None:
            raise self._missing_counter(counter)
        return value

    async def set_count(self, counter: RegistryCounter, value: int) -> None:
        await self._update_counter(counter, value)

    async def add_to_count(self, counter: RegistryCounter, delta: int) -> int:
        # Single UPDATE ... RETURNING: the row lock makes read-and-increment atomic
        # across sessions and processes.
        return await self._update_counter(counter, Counter.value + delta)

    async def scan(self, kind: RecordKind) -> list[Any]:
        model = RECORD_MODELS[kind]
        pk_columns = list(model.__table__.primary_key.columns)
        result = await self.db.execute(select(model).order_by(*pk_columns))
        return list(result.scalars().all())

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()

    async def _update_counter(self, counter: RegistryCounter, value: Any) -> int:
        result = await self.db.execute(
            update(Counter)
            .where(Counter.name == counter.value)
            .values(value=value)
            .returning(Counter.value),
            execution_options={"synchronize_session": False},
        )
        new_value = result.scalar_one_or_none()
        if new_value is None:
            raise self._missing_counter(counter)
        return new_value

    @staticmethod
    def _missing_counter(counter: RegistryCounter) -> RuntimeError:
        return RuntimeError(
            f"Registry counter '{counter.value}' is not seeded; create the schema with create_registry_schema"
        )


# ── In-memory backend ─────────────────────────────────────────────────────


class InMemoryRegistryStore(RegistryStore):
    """
    Dict-backed registry store.

    put() and counter changes are staged until commit(); rollback() drops
    them. Records handed out by get() are live objects, so callers must
    validate before mutating them in place (the registry service always does).
    """

    def __init__(self):
        self._records: dict[RecordKind, dict[Any, Any]] = {kind: {} for kind in RecordKind}
        self._counters: dict[RegistryCounter, int] = dict(COUNTER_DEFAULTS)
        self._staged_records: dict[RecordKind, dict[Any, Any]] = {kind: {} for kind in RecordKind}
        self._staged_counters: dict[RegistryCounter, int] = {}

    async def get(self, kind: RecordKind, key: Any) -> Any | None:
        staged = self._staged_records[kind]
        if key in staged:
            return staged[key]
        return self._records[kind].get(key)

    async def put(self, kind: RecordKind, key: Any, record: Any) -> None:
        self._check_key(kind, key, record)
        self._staged_records[kind][key] = record

    async def next_id(self, counter: RegistryCounter) -> int:
        allocated = await self.count(counter)
        self._staged_counters[counter] = allocated + 1
        return allocated

    async def count(self, counter: RegistryCounter) -> int:
        if counter in self._staged_counters:
            return self._staged_counters[counter]
        return self._counters[counter]

    async def set_count(self, counter: RegistryCounter, value: int) -> None:
        self._staged_counters[counter] = value

    async def scan(self, kind: RecordKind) -> list[Any]:
        merged = {**self._records[kind], **self._staged_records[kind]}
        return [merged[key] for key in sorted(merged, key=_sort_key)]

    async def commit(self) -> None:
        for kind, staged in self._staged_records.items():
            self._records[kind].update(staged)
            staged.clear()
        self._counters.update(self._staged_counters)
        self._staged_counters.clear()

    async def rollback(self) -> None:
        for staged in self._staged_records.values():
            staged.clear()
        self._staged_counters.clear()
