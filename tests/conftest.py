"""
Shared fixtures: in-memory stand-ins for the database session and tenants.

No PostgreSQL is needed: ``FakeSession`` implements the handful of
AsyncSession methods the services use, and ``execute`` is answered by a
handler each test installs.
"""
import uuid
from datetime import date

import pytest

from kost.models.tenant import Tenant


class FakeResult:
    def __init__(self, rows=None, scalar=None):
        self._rows = list(rows or [])
        self._scalar = scalar

    def scalars(self):
        return self

    def all(self):
        return list(self._rows)

    def scalar(self):
        return self._scalar

    def one(self):
        return self._rows[0]


class _Nested:
    def __init__(self, session):
        self.session = session

    async def __aenter__(self):
        self.session.savepoints += 1
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.session.rollbacks += 1
            self.session.pending.clear()
        return False


class FakeSession:
    def __init__(self):
        self.pending: list = []
        self.stored: list = []
        self.objects: dict = {}
        self.savepoints = 0
        self.rollbacks = 0
        self.flush_error: Exception | None = None
        self.handler = lambda stmt: FakeResult()
        self.statements: list[str] = []

    def begin_nested(self):
        return _Nested(self)

    def add(self, obj):
        self.pending.append(obj)

    async def flush(self):
        if self.flush_error is not None:
            raise self.flush_error
        for obj in self.pending:
            if getattr(obj, "id", None) is None:
                obj.id = uuid.uuid4()
            self.stored.append(obj)
            self.objects[obj.id] = obj
        self.pending.clear()

    async def refresh(self, obj):
        return None

    async def get(self, model, key):
        obj = self.objects.get(key)
        return obj if isinstance(obj, model) else None

    async def execute(self, stmt):
        self.statements.append(str(stmt))
        return self.handler(stmt)


def make_tenant(**overrides) -> Tenant:
    values = dict(
        id=uuid.uuid4(),
        name="Budi Santoso",
        room_number="A1",
        phone="081234567890",
        email=None,
        checkin_date=date(2024, 1, 1),
        monthly_rent=500000,
    )
    values.update(overrides)
    return Tenant(**values)


@pytest.fixture
def fake_db() -> FakeSession:
    return FakeSession()


@pytest.fixture
def tenant() -> Tenant:
    return make_tenant()
