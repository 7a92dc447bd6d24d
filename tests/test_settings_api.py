from datetime import date
from decimal import Decimal

from treasurer.constants import ROLE_VIEWER
from treasurer.models.models import Expense
from treasurer.services.settings_store import get_setting


def test_public_settings_need_no_login(api_client):
    response = api_client().get("/api/settings/public")

    assert response.status_code == 200
    body = response.json()
    assert body["orgName"] == "Tesoureiro Assistente"
    assert body["paymentDueDay"] is None
    assert "currentBalance" not in body


def test_reading_settings_seeds_the_balance(db_session, create_member, api_client):
    admin = create_member()

    response = api_client(admin).get("/api/settings")

    assert response.status_code == 200
    assert response.json()["currentBalance"] == 0
    assert get_setting(db_session, "current_balance") is not None


def test_update_settings_merges_partial_values(db_session, create_member, api_client):
    admin = create_member()
    client = api_client(admin)

    response = client.put(
        "/api/settings",
        json={"orgName": "Clã do Lobo", "paymentDueDay": 10, "pixKey": "lobo@pix", "currentBalance": "250.5"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["settings"]["orgName"] == "Clã do Lobo"
    assert body["settings"]["paymentDueDay"] == 10
    assert body["settings"]["pixKey"] == "lobo@pix"
    assert body["settings"]["orgTagline"].startswith("Controle completo")
    assert isinstance(body["currentBalance"], (int, float))
    assert body["currentBalance"] == 250.50

    response = client.put("/api/settings", json={"dashboardNote": "Reunião sexta"})
    body = response.json()
    assert body["settings"]["orgName"] == "Clã do Lobo"
    assert body["currentBalance"] == 250.50


def test_invalid_due_day_is_rejected(create_member, api_client):
    admin = create_member()

    response = api_client(admin).put("/api/settings", json={"paymentDueDay": 40})

    assert response.status_code == 400


def test_balance_endpoint_overwrites_the_scalar(create_member, api_client):
    admin = create_member()
    client = api_client(admin)

    client.put("/api/settings/balance", json={"value": "80"})
    response = client.put("/api/settings/balance", json={"value": "-12.5"})

    assert response.status_code == 200
    assert response.json()["currentBalance"] == -12.50


def test_viewers_cannot_change_settings(create_member, api_client):
    viewer = create_member("Viewer", role=ROLE_VIEWER)
    client = api_client(viewer)

    assert client.get("/api/settings").status_code == 403
    assert client.put("/api/settings", json={"orgName": "X"}).status_code == 403
    assert client.put("/api/settings/balance", json={"value": "1"}).status_code == 403


def test_update_settings_persists_a_freshly_seeded_balance(db_session, create_member, api_client):
    admin = create_member()
    db_session.add(Expense(title="Servidor", amount=Decimal("30"), expense_date=date(2024, 1, 10)))
    db_session.commit()

    response = api_client(admin).put("/api/settings", json={"orgName": "Clã do Lobo"})

    assert response.status_code == 200
    assert response.json()["currentBalance"] == -30
    db_session.rollback()
    assert get_setting(db_session, "current_balance") == "-30.00"
