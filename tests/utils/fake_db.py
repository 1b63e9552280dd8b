"""
In-memory stand-in for a pooled SQLAlchemy engine.

Records every insert, can fail chosen rows or connection acquisitions, and
tracks how many connections are checked out at once so tests can assert the
writer pool stays bounded.
"""

import threading
import time
from contextlib import nullcontext
from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError, TimeoutError as PoolTimeoutError


class FakeConnection:
    def __init__(self, engine: "FakeEngine"):
        self.engine = engine

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.engine._release()
        return False

    def begin(self):
        return nullcontext(self)

    def execute(self, statement, params):
        self.engine._record(str(statement), params)


class FakeEngine:
    def __init__(
        self,
        fail_waybills: Iterable[str] = (),
        fail_acquire_count: int = 0,
        insert_delay: float = 0.0,
    ):
        self.fail_waybills = set(fail_waybills)
        self.fail_acquire_count = fail_acquire_count
        self.insert_delay = insert_delay
        self.inserted: List[dict] = []
        self.statements: List[str] = []
        self.active = 0
        self.max_active = 0
        self.connect_calls = 0
        self.disposed = False
        self._lock = threading.Lock()

    def connect(self) -> FakeConnection:
        with self._lock:
            self.connect_calls += 1
            if self.fail_acquire_count:
                self.fail_acquire_count -= 1
                raise PoolTimeoutError("QueuePool limit of size 4 overflow 46 reached")
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        return FakeConnection(self)

    def dispose(self) -> None:
        self.disposed = True

    def _release(self) -> None:
        with self._lock:
            self.active -= 1

    def _record(self, statement: str, params: dict) -> None:
        if self.insert_delay:
            time.sleep(self.insert_delay)
        if params.get("no_waybill") in self.fail_waybills:
            raise IntegrityError(statement, params, Exception("duplicate key value violates unique constraint"))
        with self._lock:
            self.statements.append(statement)
            self.inserted.append(dict(params))

    def waybills(self, schema_name: Optional[str] = None) -> List[str]:
        with self._lock:
            return sorted(
                params["no_waybill"]
                for statement, params in zip(self.statements, self.inserted)
                if schema_name is None or f"INSERT INTO {schema_name}.domain" in statement
            )


def pool_factory(engine: FakeEngine):
    """Return a callable with the same shape as ``open_ingest_pool``."""
    def _open(*args, **kwargs):
        return engine
    return _open
