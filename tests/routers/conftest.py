"""
Router fixtures: a TestClient with the database, balance, submitter and
WhatsApp sender overridden.
"""
import pytest
from fastapi.testclient import TestClient

from kost.core.database import get_db
from kost.core.deps import get_balance_calculator, get_notifier, get_submitter
from kost.main import app
from kost.services.messaging import WhatsAppNotifier, default_whatsapp_settings
from kost.services.submission import PaymentSubmitter, SubmissionGuard
from tests.conftest import FakeSession


class _FixedBalance:
    def __init__(self, value):
        self.value = value

    async def outstanding(self, tenant, as_of=None):
        return self.value


@pytest.fixture
def guard() -> SubmissionGuard:
    return SubmissionGuard()


@pytest.fixture
def api(guard):
    db = FakeSession()
    sent: list[tuple[str, str]] = []
    notifier = WhatsAppNotifier(
        default_whatsapp_settings(),
        sender=lambda to, msg: sent.append((to, msg)) or True,
    )

    async def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_balance_calculator] = lambda: _FixedBalance(1000000)
    app.dependency_overrides[get_submitter] = lambda: PaymentSubmitter(db, guard)
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app), db, sent
    finally:
        app.dependency_overrides.clear()
