import logging

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from pgbridge.core.executor import DB
from pgbridge.core.schemas import FieldSpec, SchemaDescriptor
from pgbridge.main import app


# =========================
# Fakes for the pooled connection
# =========================
class FakeResult:
    """Buffered result shaped like SQLAlchemy's CursorResult."""

    def __init__(self, rows=None, rowcount=None):
        self._rows = [dict(r) for r in rows] if rows is not None else []
        self.returns_rows = rows is not None
        self.rowcount = rowcount if rowcount is not None else len(self._rows)

    def mappings(self):
        return [dict(r) for r in self._rows]

    def all(self):
        return [tuple(r.values()) for r in self._rows]


class FakeConnection:
    """Records every statement; answers from a queue of results or exceptions."""

    def __init__(self, responses=None):
        self.executed = []
        self.responses = list(responses or [])
        self.closed = 0

    def respond(self, *items):
        self.responses.extend(items)

    async def exec_driver_sql(self, sql, parameters=None):
        self.executed.append((sql, parameters))
        item = self.responses.pop(0) if self.responses else FakeResult()
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self):
        self.closed += 1

    @property
    def statements(self):
        return [sql for sql, _ in self.executed]


class FakeEngine:
    """Hands out a fresh FakeConnection per connect(), like a pool checkout."""

    def __init__(self, responses=None, fail_with=None):
        self.connections = []
        self.responses = list(responses or [])
        self.fail_with = fail_with

    async def connect(self):
        if self.fail_with is not None:
            raise self.fail_with
        conn = FakeConnection(self.responses)
        self.connections.append(conn)
        return conn


# =========================
# Fixtures
# =========================
@pytest.fixture
def conn():
    return FakeConnection()


@pytest.fixture
def db_logger():
    return logging.getLogger("tests.db")


@pytest.fixture
def db(conn, db_logger):
    return DB(conn, db_logger)


@pytest.fixture
def engine():
    return FakeEngine()


# id is the key; nickname is virtual, notes is metadata only
@pytest.fixture
def users_schema():
    return SchemaDescriptor(
        fields=[
            FieldSpec(name="id", type=int),
            FieldSpec(name="name", type=str),
            FieldSpec(name="email", column="email_address", type=str),
            FieldSpec(name="tags", type=list),
            FieldSpec(name="nickname", column=None, type=str),
            FieldSpec(name="notes"),
        ],
        keys=["id"],
    )


@pytest.fixture
def stock_schema():
    return SchemaDescriptor(
        fields=[
            FieldSpec(name="warehouse", type=str),
            FieldSpec(name="sku", type=str),
            FieldSpec(name="quantity", type=int),
        ],
        keys=["warehouse", "sku"],
    )


# Client talking to the app with a fake pool on app.state
@pytest_asyncio.fixture(scope="function")
async def client(engine, monkeypatch):
    monkeypatch.setattr(app.state, "engine", engine, raising=False)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
