"""
HTTP tests for the payment endpoints, with the database and WhatsApp overridden.
"""
import uuid
from datetime import date

from sqlalchemy.exc import IntegrityError

from kost.models.expense import Expense
from tests.conftest import FakeResult, make_tenant


class TestHealth:
    def test_health(self, api):
        client, _, _ = api
        assert client.get("/health").json() == {"status": "ok"}

    def test_db_reports_balance_functions(self, api):
        client, db, _ = api
        db.handler = lambda stmt: FakeResult(rows=[(True, True)])
        body = client.get("/health/db").json()
        assert body["status"] == "ok"
        assert body["balance_functions"] == {
            "calculate_outstanding_balance": True,
            "update_tenant_balance": True,
        }

    def test_missing_refresh_function_is_degraded(self, api):
        client, db, _ = api
        db.handler = lambda stmt: FakeResult(rows=[(True, False)])
        resp = client.get("/health/db")
        assert resp.status_code == 200
        assert resp.json()["status"] == "degraded"


class TestCalculate:
    def test_preview(self, api):
        client, _, _ = api
        resp = client.post("/api/v1/payments/calculate", json={
            "rent_amount": 500000,
            "previous_balance": 0,
            "discount_amount": 100000,
            "payment_amount": 300000,
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["total_after_discount"] == 400000
        assert body["remaining_balance"] == 100000
        assert body["status"] == "under_paid"

    def test_negative_amount_rejected_by_schema(self, api):
        client, _, _ = api
        resp = client.post("/api/v1/payments/calculate", json={
            "rent_amount": 500000, "payment_amount": -1,
        })
        assert resp.status_code == 422


class TestSubmit:
    def _payload(self, tenant_id, **overrides):
        body = {
            "tenant_id": str(tenant_id) if tenant_id else None,
            "period_month": 3,
            "period_year": 2024,
            "payment_amount": 1500000,
            "discount_amount": 0,
            "payment_method": "cash",
        }
        body.update(overrides)
        return body

    def test_records_payment_and_confirms(self, api):
        client, db, sent = api
        tenant = make_tenant(checkin_date=date(2024, 1, 1), monthly_rent=500000)
        db.objects[tenant.id] = tenant

        resp = client.post("/api/v1/payments/", json=self._payload(tenant.id))
        assert resp.status_code == 201
        payment = resp.json()["payment"]
        assert payment["previous_balance"] == 1000000
        assert payment["remaining_balance"] == 0
        assert payment["payment_status"] == "paid_in_full"
        assert payment["notes"] == "Pembayaran sewa bulan Maret 2024"
        assert resp.json()["warnings"] == []
        assert len(sent) == 1 and payment["receipt_number"] in sent[0][1]

    def test_missing_tenant_is_validation_error(self, api):
        client, db, _ = api
        resp = client.post("/api/v1/payments/", json=self._payload(None))
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Pilih penghuni terlebih dahulu"
        assert db.statements == []

    def test_missing_method_is_validation_error(self, api):
        client, _, _ = api
        resp = client.post("/api/v1/payments/", json=self._payload(uuid.uuid4(), payment_method=None))
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Pilih metode pembayaran"

    def test_unknown_tenant_is_404(self, api):
        client, _, _ = api
        resp = client.post("/api/v1/payments/", json=self._payload(uuid.uuid4()))
        assert resp.status_code == 404

    def test_submit_while_tenant_in_flight_is_409(self, api, guard):
        client, db, _ = api
        tenant = make_tenant()
        db.objects[tenant.id] = tenant
        with guard.hold(tenant.id):
            resp = client.post("/api/v1/payments/", json=self._payload(tenant.id))
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Pembayaran sedang diproses, harap tunggu"
        assert db.stored == []


class TestReceipt:
    def test_receipt_formats_amounts(self, api):
        client, db, _ = api
        tenant = make_tenant(name="Ani", room_number="B2")
        db.objects[tenant.id] = tenant
        created = client.post("/api/v1/payments/", json={
            "tenant_id": str(tenant.id),
            "period_month": 3,
            "period_year": 2024,
            "payment_amount": 1500000,
            "payment_method": "transfer",
        }).json()["payment"]

        resp = client.get(f"/api/v1/payments/{created['id']}/receipt")
        assert resp.status_code == 200
        receipt = resp.json()
        assert receipt["tenant_name"] == "Ani"
        assert receipt["period"] == "Maret 2024"
        assert receipt["payment_amount"] == "Rp 1.500.000"
        assert receipt["payment_amount_words"] == "satu juta lima ratus ribu rupiah"
        assert receipt["status"] == "Lunas"


def _record_payment(client, db, **overrides) -> dict:
    tenant = make_tenant()
    db.objects[tenant.id] = tenant
    body = {
        "tenant_id": str(tenant.id),
        "period_month": 3,
        "period_year": 2024,
        "payment_amount": 1500000,
        "payment_method": "cash",
    }
    body.update(overrides)
    resp = client.post("/api/v1/payments/", json=body)
    assert resp.status_code == 201
    return resp.json()["payment"]


class TestCorrection:
    def test_correction_keeps_recorded_balance_and_status(self, api):
        client, db, _ = api
        created = _record_payment(client, db)
        assert created["payment_status"] == "paid_in_full"

        resp = client.patch(f"/api/v1/payments/{created['id']}", json={
            "payment_amount": 1000000, "notes": "koreksi",
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["payment_amount"] == 1000000
        assert body["notes"] == "koreksi"
        assert body["remaining_balance"] == 0
        assert body["payment_status"] == "paid_in_full"

    def test_null_amount_is_rejected(self, api):
        client, db, _ = api
        created = _record_payment(client, db)
        for field in ("payment_amount", "discount_amount"):
            resp = client.patch(f"/api/v1/payments/{created['id']}", json={field: None})
            assert resp.status_code == 422
        stored = db.objects[uuid.UUID(created["id"])]
        assert stored.payment_amount == 1500000
        assert stored.discount_amount == 0

    def test_database_rejection_is_translated(self, api):
        client, db, _ = api
        created = _record_payment(client, db)
        db.flush_error = IntegrityError(
            "UPDATE payments", {},
            Exception('new row violates check constraint "ck_payments_amount_positive"'),
        )
        resp = client.patch(f"/api/v1/payments/{created['id']}", json={"notes": "x"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Data pembayaran tidak valid"

    def test_unknown_payment_is_404(self, api):
        client, _, _ = api
        resp = client.patch(f"/api/v1/payments/{uuid.uuid4()}", json={"notes": "x"})
        assert resp.status_code == 404


class TestUpdateNulls:
    def test_tenant_required_fields_cannot_be_nulled(self, api):
        client, db, _ = api
        tenant = make_tenant()
        db.objects[tenant.id] = tenant
        for field in ("name", "room_number", "checkin_date", "monthly_rent"):
            resp = client.patch(f"/api/v1/tenants/{tenant.id}", json={field: None})
            assert resp.status_code == 422
        assert tenant.name == "Budi Santoso"
        assert tenant.monthly_rent == 500000

    def test_expense_required_fields_cannot_be_nulled(self, api):
        client, db, _ = api
        expense = Expense(
            id=uuid.uuid4(),
            date=date(2024, 3, 1),
            category="listrik",
            description="Token listrik",
            amount=250000,
        )
        db.objects[expense.id] = expense
        for field in ("date", "category", "description", "amount"):
            resp = client.patch(f"/api/v1/expenses/{expense.id}", json={field: None})
            assert resp.status_code == 422
        assert expense.amount == 250000
