from decimal import Decimal

from sqlalchemy.exc import OperationalError

from treasurer.constants import ROLE_FINANCE_DIRECTOR, ROLE_VIEWER
from treasurer.models.models import Payment
from treasurer.services import ledger


def _payload(member_id, amount="100.00", month=1, year=2024, **extra):
    body = {"memberId": member_id, "month": month, "year": year, "amount": amount, "paid": True}
    body.update(extra)
    return body


def test_create_update_delete_keep_balance_in_step(db_session, create_member, api_client):
    director = create_member("Diretora", role=ROLE_FINANCE_DIRECTOR)
    member = create_member("Alice", role=ROLE_VIEWER)
    client = api_client(director)

    response = client.put("/api/settings/balance", json={"value": "20"})
    assert response.status_code == 200
    assert response.json()["currentBalance"] == 20

    created = client.post("/api/payments", json=_payload(member.id, paidAt="2024-01-08", notes="pix"))
    assert created.status_code == 200
    body = created.json()
    assert body["member_name"] == member.name
    assert body["paid_at"] == "2024-01-08"

    replaced = client.post("/api/payments", json=_payload(member.id, amount="150.00"))
    assert replaced.status_code == 200
    assert replaced.json()["id"] == body["id"]
    assert db_session.query(Payment).count() == 1

    settings = client.get("/api/settings").json()
    assert settings["currentBalance"] == 170

    updated = client.put(f"/api/payments/{body['id']}", json={"amount": "90.00", "paid": True})
    assert updated.status_code == 200
    assert client.get("/api/settings").json()["currentBalance"] == 110

    deleted = client.delete(f"/api/payments/{body['id']}")
    assert deleted.status_code == 200
    assert deleted.json()["ok"] is True
    assert client.get("/api/settings").json()["currentBalance"] == 20


def test_payment_without_paid_flag_is_recorded_as_unpaid(db_session, create_member, api_client):
    admin = create_member()
    client = api_client(admin)

    response = client.post("/api/payments", json={"memberId": admin.id, "month": 3, "year": 2024, "amount": 40})

    assert response.status_code == 200
    assert response.json()["paid"] is False
    assert db_session.query(Payment).one().paid is False
    assert [entry["type"] for entry in client.get("/api/extrato").json()["entries"]] == []


def test_missing_required_fields_return_400(create_member, api_client):
    admin = create_member()
    client = api_client(admin)

    response = client.post("/api/payments", json={"month": 1, "year": 2024, "amount": "10"})
    assert response.status_code == 400
    assert "required" in response.json()["detail"]

    response = client.post("/api/payments", json=_payload(admin.id, month=13))
    assert response.status_code == 400

    response = client.post("/api/payments", json=_payload(admin.id, amount="abc"))
    assert response.status_code == 400
    assert response.json()["detail"] == "Validation failed."


def test_unknown_ids_return_404(create_member, api_client):
    admin = create_member()
    client = api_client(admin)

    assert client.post("/api/payments", json=_payload(9999)).status_code == 404
    assert client.put("/api/payments/9999", json={"amount": "10"}).status_code == 404
    assert client.delete("/api/payments/9999").status_code == 404
    assert client.get("/api/payments/9999/receipt").status_code == 404


def test_viewer_cannot_mutate_and_only_sees_own_payments(db_session, create_member, api_client):
    admin = create_member()
    viewer = create_member("Viewer", role=ROLE_VIEWER)
    other = create_member("Outro", role=ROLE_VIEWER)
    for member in (viewer, other):
        ledger.create_or_replace_payment(
            db_session,
            ledger.PaymentInput(member_id=member.id, month=3, year=2024, amount=Decimal("40")),
        )
    db_session.commit()

    client = api_client(viewer)
    assert client.post("/api/payments", json=_payload(viewer.id)).status_code == 403

    listed = client.get("/api/payments", params={"memberId": other.id})
    assert listed.status_code == 200
    assert [row["member_id"] for row in listed.json()] == [viewer.id]

    assert client.get(f"/api/payments/history/{other.id}").status_code == 403
    assert client.get(f"/api/payments/history/{viewer.id}").status_code == 200

    admin_client = api_client(admin)
    assert len(admin_client.get("/api/payments", params={"month": 3}).json()) == 2


def test_requests_without_token_are_rejected(api_client):
    client = api_client()

    response = client.get("/api/payments")

    assert response.status_code == 401


def test_receipt_is_a_pdf_download(db_session, create_member, api_client):
    admin = create_member()
    payment = ledger.create_or_replace_payment(
        db_session,
        ledger.PaymentInput(member_id=admin.id, month=5, year=2024, amount=Decimal("75"), notes="Obrigado"),
    )
    db_session.commit()

    response = api_client(admin).get(f"/api/payments/{payment.id}/receipt")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert f'filename="recibo-{payment.id}.pdf"' in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


def test_storage_failure_returns_500_and_leaves_no_payment(db_session, create_member, api_client, monkeypatch):
    admin = create_member()

    def _boom(session, delta):
        raise OperationalError("UPDATE settings", {}, Exception("database is locked"))

    monkeypatch.setattr(ledger, "adjust_current_balance", _boom)

    response = api_client(admin).post("/api/payments", json=_payload(admin.id))

    assert response.status_code == 500
    assert response.json()["detail"] == "database is locked"
    db_session.rollback()
    assert db_session.query(Payment).count() == 0
