"""Pytest configuration and fixtures"""
import os
from typing import Any, Dict, List, Optional

import pytest

# Set test environment variables before storefront.config is imported
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test_key")
os.environ.setdefault("SUPABASE_ANON_KEY", "test_anon_key")
os.environ.setdefault("CRON_SECRET", "test_cron_secret")
os.environ.setdefault("HYPAY_SECRET_KEY", "")


class _Result:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """
    In-memory stand-in for a postgrest request builder.

    Supports the filters the storefront uses. `or_` and `ilike` are only
    recorded (tests assert on the recorded calls), `eq`, `in_` and
    `not_.is_(col, "null")` really filter.
    """

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.calls: List[tuple] = []
        self._mode = "select"
        self._payload: Any = None
        self._filters: List[tuple] = []
        self._order: Optional[tuple] = None
        self._range: Optional[tuple] = None
        self._limit: Optional[int] = None
        self._negate = False
        db.queries.append(self)

    def _record(self, name: str, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        return self

    # ---- verbs ----
    def select(self, *columns, **kwargs):
        self._mode = "select"
        return self._record("select", *columns, **kwargs)

    def insert(self, data):
        self._mode, self._payload = "insert", data
        return self._record("insert", data)

    def update(self, data):
        self._mode, self._payload = "update", data
        return self._record("update", data)

    def upsert(self, data, **kwargs):
        self._mode, self._payload = "upsert", data
        return self._record("upsert", data, **kwargs)

    def delete(self):
        self._mode = "delete"
        return self._record("delete")

    # ---- filters ----
    def eq(self, column, value):
        self._filters.append(("eq", column, value))
        return self._record("eq", column, value)

    def in_(self, column, values):
        self._filters.append(("in", column, list(values)))
        return self._record("in_", column, list(values))

    def or_(self, expression):
        return self._record("or_", expression)

    def ilike(self, column, pattern):
        return self._record("ilike", column, pattern)

    @property
    def not_(self):
        self._negate = True
        return self

    def is_(self, column, value):
        self._filters.append(("not_is" if self._negate else "is", column, value))
        self._negate = False
        return self._record("is_", column, value)

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self._record("order", column, desc=desc)

    def range(self, start, end):
        self._range = (start, end)
        return self._record("range", start, end)

    def limit(self, count):
        self._limit = count
        return self._record("limit", count)

    # ---- execution ----
    def _matches(self, row: Dict[str, Any]) -> bool:
        for kind, column, value in self._filters:
            if kind == "eq" and row.get(column) != value:
                return False
            if kind == "in" and row.get(column) not in value:
                return False
            if kind == "is" and value == "null" and row.get(column) is not None:
                return False
            if kind == "not_is" and value == "null" and row.get(column) is None:
                return False
        return True

    async def execute(self):
        error = self.db.next_error(self.table)
        if error is not None:
            raise error

        rows = self.db.tables.setdefault(self.table, [])

        if self._mode == "insert":
            new_rows = self._payload if isinstance(self._payload, list) else [self._payload]
            stored = []
            for data in new_rows:
                row = dict(data)
                row.setdefault("id", f"{self.table}-{len(rows) + 1}")
                row.setdefault("created_at", "2025-01-01T00:00:00+00:00")
                rows.append(row)
                stored.append(dict(row))
            return _Result(stored)

        if self._mode == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self._payload)
                    updated.append(dict(row))
            return _Result(updated)

        if self._mode == "upsert":
            key = "product_ref" if "product_ref" in self._payload else "id"
            for row in rows:
                if row.get(key) == self._payload.get(key):
                    row.update(self._payload)
                    return _Result([dict(row)])
            rows.append(dict(self._payload))
            return _Result([dict(self._payload)])

        if self._mode == "delete":
            removed = [row for row in rows if self._matches(row)]
            self.db.tables[self.table] = [row for row in rows if not self._matches(row)]
            return _Result(removed)

        selected = [dict(row) for row in rows if self._matches(row)]
        if self._order:
            column, desc = self._order
            selected.sort(key=lambda r: str(r.get(column) or ""), reverse=desc)
        if self._range:
            start, end = self._range
            selected = selected[start:end + 1]
        if self._limit is not None:
            selected = selected[: self._limit]
        return _Result(selected)


class _FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params):
        self.db = db
        self.name = name
        self.params = params

    async def execute(self):
        self.db.rpc_calls.append((self.name, self.params))
        return _Result(self.db.rpc_results.get(self.name))


class FakeSupabase:
    """Async Supabase client double backed by dict tables."""

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        self.queries: List[FakeQuery] = []
        self.errors: Dict[str, List[Exception]] = {}
        self.rpc_calls: List[tuple] = []
        self.rpc_results: Dict[str, Any] = {}

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params=None) -> _FakeRpc:
        return _FakeRpc(self, name, params)

    def fail(self, table: str, error: Exception, times: int = 1) -> None:
        """Make the next `times` executions against `table` raise `error`."""
        self.errors.setdefault(table, []).extend([error] * times)

    def next_error(self, table: str) -> Optional[Exception]:
        pending = self.errors.get(table)
        return pending.pop(0) if pending else None

    def queries_for(self, table: str) -> List[FakeQuery]:
        return [q for q in self.queries if q.table == table]


@pytest.fixture
def fake_supabase():
    """Empty fake Supabase client"""
    return FakeSupabase()


@pytest.fixture
def sample_product_rows():
    """Product rows as stored in the `products` table"""
    return [
        {
            "ref": "A100",
            "hebrew_name": "קרם לחות",
            "english_name": "Moisturizing Cream",
            "short_description_he": "קרם יום",
            "main_pic": "a100.jpg",
            "size": "50ml",
            "product_line": "Hydra",
            "type": "cream",
            "product_type": "Face, Cream",
            "skin_type_he": "יבש",
            "qty": 12,
        },
        {
            "ref": "A200",
            "hebrew_name": "סרום",
            "english_name": "Serum",
            "main_pic": "a200.jpg",
            "size": "30ml",
            "product_line": "Hydra, Glow",
            "type": "serum",
            "product_type": "Face",
            "skin_type_he": "רגיל",
            "qty": 0,
        },
        {
            "ref": "A300",
            "hebrew_name": "מסכה",
            "english_name": "Mask",
            "product_line": "Glow",
            "type": "mask",
            "product_type": "Mask",
            "qty": None,
        },
        {
            "ref": "A400",
            "hebrew_name": "ג'ל",
            "english_name": "Gel",
            "product_line": "Pure",
            "type": "gel",
            "product_type": "Cleanser",
            "qty": "  ",
        },
    ]


@pytest.fixture
def sample_price_rows():
    """Rows of the RLS-protected `prices` table"""
    return [
        {
            "product_ref": "A100",
            "unit_price": 120.0,
            "currency": "ILS",
            "discount_price": 99.9,
            "price_tier": "standard",
            "updated_at": "2025-01-01T00:00:00+00:00",
        },
        {
            "product_ref": "A200",
            "unit_price": 80,
            "currency": None,
            "discount_price": None,
            "price_tier": None,
            "updated_at": None,
        },
    ]


@pytest.fixture
def sample_product():
    """Catalog product payload as the UI sends it"""
    return {
        "ref": "A100",
        "productName": "קרם לחות",
        "productName2": "Moisturizing Cream",
        "mainPic": "a100.jpg",
        "size": "50ml",
        "qty": 12,
    }


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_supabase():
    """Factory for fake clients preloaded with table rows"""
    return FakeSupabase
