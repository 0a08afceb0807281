"""
In-memory stand-in for the slice of the Supabase query builder the
services use (table/select/insert/update/filters/order/range/limit/rpc).

Used for end-to-end route tests where chained MagicMocks would hide
whether a filter was actually applied.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set, Tuple
from unittest.mock import MagicMock


class FakeResult:
    def __init__(self, data: Any):
        self.data = data


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self._db = db
        self._table = table
        self._op = "select"
        self._payload: Any = None
        self._filters: List[Callable[[Dict[str, Any]], bool]] = []
        self._order: Optional[Tuple[str, bool]] = None
        self._range: Optional[Tuple[int, int]] = None
        self._limit: Optional[int] = None
        self._negate_next = False

    # Operations

    def select(self, *columns: str, **kwargs: Any) -> "FakeQuery":
        self._op = "select"
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self._op = "insert"
        self._payload = payload
        return self

    def update(self, payload: Dict[str, Any]) -> "FakeQuery":
        self._op = "update"
        self._payload = payload
        return self

    # Filters

    def _add(self, predicate: Callable[[Dict[str, Any]], bool]) -> "FakeQuery":
        if self._negate_next:
            self._negate_next = False
            self._filters.append(lambda row: not predicate(row))
        else:
            self._filters.append(predicate)
        return self

    @property
    def not_(self) -> "FakeQuery":
        self._negate_next = True
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        return self._add(lambda row: row.get(column) == value)

    def neq(self, column: str, value: Any) -> "FakeQuery":
        return self._add(lambda row: row.get(column) != value)

    def gt(self, column: str, value: Any) -> "FakeQuery":
        return self._add(lambda row: row.get(column) is not None and row.get(column) > value)

    def gte(self, column: str, value: Any) -> "FakeQuery":
        return self._add(lambda row: row.get(column) is not None and row.get(column) >= value)

    def lt(self, column: str, value: Any) -> "FakeQuery":
        return self._add(lambda row: row.get(column) is not None and row.get(column) < value)

    def lte(self, column: str, value: Any) -> "FakeQuery":
        return self._add(lambda row: row.get(column) is not None and row.get(column) <= value)

    def in_(self, column: str, values: List[Any]) -> "FakeQuery":
        return self._add(lambda row: row.get(column) in values)

    def ilike(self, column: str, pattern: str) -> "FakeQuery":
        needle = pattern.strip("%").lower()
        return self._add(lambda row: needle in str(row.get(column) or "").lower())

    def is_(self, column: str, value: str) -> "FakeQuery":
        assert value == "null", "fake only supports is_(column, 'null')"
        return self._add(lambda row: row.get(column) is None)

    # Shaping

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order = (column, desc)
        return self

    def range(self, start: int, end: int) -> "FakeQuery":
        self._range = (start, end)
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def execute(self) -> FakeResult:
        self._db.calls.append((self._table, self._op))
        if (self._table, self._op) in self._db.failures:
            raise Exception(f"simulated failure: {self._op} on {self._table}")

        rows = self._db.tables.setdefault(self._table, [])

        if self._op == "insert":
            payloads = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = [self._db._with_defaults(self._table, dict(p)) for p in payloads]
            rows.extend(inserted)
            return FakeResult([dict(r) for r in inserted])

        matched = [row for row in rows if all(f(row) for f in self._filters)]

        if self._op == "update":
            for row in matched:
                row.update(self._payload)
            return FakeResult([dict(r) for r in matched])

        if self._order:
            column, desc = self._order
            matched = sorted(matched, key=lambda r: str(r.get(column) or ""), reverse=desc)
        if self._range:
            start, end = self._range
            matched = matched[start:end + 1]
        if self._limit is not None:
            matched = matched[:self._limit]
        return FakeResult([dict(r) for r in matched])


class FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params: Dict[str, Any]):
        self._db = db
        self._name = name
        self._params = params

    def execute(self) -> FakeResult:
        self._db.calls.append((self._name, "rpc"))
        if (self._name, "rpc") in self._db.failures:
            raise Exception(f"simulated failure: rpc {self._name}")
        handler = self._db.rpc_handlers[self._name]
        return FakeResult(handler(self._params))


class FakeSupabase:
    """Tables are plain lists of dicts keyed by table name."""

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.rpc_handlers: Dict[str, Callable[[Dict[str, Any]], Any]] = {}
        self.failures: Set[Tuple[str, str]] = set()
        self.calls: List[Tuple[str, str]] = []
        self.auth = MagicMock()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: Dict[str, Any]) -> FakeRpc:
        return FakeRpc(self, name, params)

    def fail(self, table: str, op: str) -> None:
        """Make every subsequent `op` on `table` raise."""
        self.failures.add((table, op))

    def _with_defaults(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        now = datetime.now(timezone.utc).isoformat()
        row.setdefault("id", str(uuid.uuid4()))
        if table == "impersonation_sessions":
            row.setdefault("started_at", now)
            row.setdefault("ended_at", None)
        else:
            row.setdefault("created_at", now)
        return row


# Seed data used by the fake_db fixture
ADMIN_ID = "admin-a"
ADMIN_EMAIL = "ops@example.com"
ADMIN_PASSWORD = "correct horse battery staple"
PRACTITIONER_ID = "prac-p"
PRACTITIONER_USER_ID = "user-u"
PRACTITIONER_EMAIL = "dana@example.com"
PRACTITIONER_NAME = "Dana Reyes"
UNLINKED_PRACTITIONER_ID = "prac-unlinked"


def set_cookie_headers(response) -> List[str]:
    # httpx responses expose get_list, Starlette responses getlist
    headers = response.headers
    if hasattr(headers, "get_list"):
        return headers.get_list("set-cookie")
    return headers.getlist("set-cookie")


def cleared_cookies(response) -> Set[str]:
    """Names of cookies the response expires."""
    return {
        header.split("=", 1)[0]
        for header in set_cookie_headers(response)
        if "max-age=0" in header.lower()
    }


def set_cookies(response) -> Set[str]:
    """Names of cookies the response sets to a live value."""
    return {
        header.split("=", 1)[0]
        for header in set_cookie_headers(response)
        if "max-age=0" not in header.lower()
    }


def cookie_header(cookies: Dict[str, str]) -> Dict[str, str]:
    """Request headers carrying exactly these cookies (bypasses the client jar)."""
    return {"Cookie": "; ".join(f"{name}={value}" for name, value in cookies.items())}
