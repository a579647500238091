from __future__ import annotations

from decimal import Decimal

import pytest

from crediario.api.routers import visits as visits_router
from crediario.infra.storage_s3 import S3StorageError

JPEG = b"\xff\xd8\xff\xe0" + b"0" * 64


@pytest.fixture
def fake_storage(monkeypatch):
    state = {"uploaded": [], "deleted": []}

    def upload(*, data, content_type, client_id):
        key = f"visits/{client_id}/foto.jpg"
        state["uploaded"].append(key)
        return key

    def delete(key):
        state["deleted"].append(key)

    monkeypatch.setattr(visits_router, "upload_visit_photo", upload)
    monkeypatch.setattr(visits_router, "delete_object_best_effort", delete)
    monkeypatch.setattr(
        visits_router, "presign_get_url", lambda key, expires_seconds=3600: f"https://cdn.teste/{key}"
    )
    return state


def test_visit_with_payment(client, auth, new_client):
    c = new_client()
    inst = c["installments"][0]

    r = client.post(
        "/visits",
        data={
            "client_id": str(c["id"]),
            "status": "pago",
            "amount_received": "50",
            "installment_id": str(inst["id"]),
            "latitude": "-3.73",
            "longitude": "-38.52",
        },
        headers=auth,
    )
    assert r.status_code == 201, r.text
    body = r.json()

    assert body["visit"]["status"] == "PAID"
    assert Decimal(body["visit"]["amount_received"]) == Decimal("50")
    assert body["visit"]["photo_url"] is None
    assert body["payment"]["kind"] == "full"
    assert body["payment"]["installment"]["status"] == "PAID"


def test_partial_visit_splits_installment(client, auth, new_client):
    c = new_client()
    inst = c["installments"][0]
    r = client.post(
        "/visits",
        data={
            "client_id": str(c["id"]),
            "status": "PARTIAL",
            "amount_received": "15",
            "installment_id": str(inst["id"]),
        },
        headers=auth,
    )
    assert r.status_code == 201, r.text
    assert Decimal(r.json()["payment"]["remainder"]["amount"]) == Decimal("35")


def test_visit_without_payment(client, auth, new_client):
    c = new_client()
    r = client.post("/visits", data={"client_id": str(c["id"]), "status": "nao_estava", "notes": "Portão fechado"}, headers=auth)
    assert r.status_code == 201, r.text
    assert r.json()["visit"]["status"] == "NOT_HOME"
    assert r.json()["visit"]["notes"] == "Portão fechado"
    assert r.json()["payment"] is None


def test_visit_validation(client, auth, new_client):
    c = new_client()

    no_amount = client.post("/visits", data={"client_id": str(c["id"]), "status": "PAID"}, headers=auth)
    assert no_amount.status_code == 400
    assert no_amount.json()["detail"] == "Informe o valor recebido."

    bad_status = client.post("/visits", data={"client_id": str(c["id"]), "status": "sumiu"}, headers=auth)
    assert bad_status.status_code == 400

    missing = client.post("/visits", data={"client_id": "999", "status": "VISITED"}, headers=auth)
    assert missing.status_code == 404

    too_much = client.post(
        "/visits",
        data={
            "client_id": str(c["id"]),
            "status": "PAID",
            "amount_received": "70",
            "installment_id": str(c["installments"][0]["id"]),
        },
        headers=auth,
    )
    assert too_much.status_code == 400

    huge = client.post(
        "/visits",
        data={"client_id": str(c["id"]), "status": "PAID", "amount_received": "1e30"},
        headers=auth,
    )
    assert huge.status_code == 422
    assert client.get("/visits", headers=auth).json() == []


def test_visit_with_photo(client, auth, new_client, fake_storage):
    c = new_client()
    r = client.post(
        "/visits",
        data={"client_id": str(c["id"]), "status": "VISITED"},
        files={"photo": ("fachada.jpg", JPEG, "image/jpeg")},
        headers=auth,
    )
    assert r.status_code == 201, r.text
    assert r.json()["visit"]["photo_url"] == f"https://cdn.teste/visits/{c['id']}/foto.jpg"
    assert fake_storage["deleted"] == []

    listed = client.get("/visits", params={"client_id": c["id"]}, headers=auth).json()
    assert listed[0]["photo_url"].startswith("https://cdn.teste/")


def test_photo_is_removed_when_visit_fails(client, auth, fake_storage):
    r = client.post(
        "/visits",
        data={"client_id": "999", "status": "VISITED"},
        files={"photo": ("fachada.jpg", JPEG, "image/jpeg")},
        headers=auth,
    )
    assert r.status_code == 404
    assert fake_storage["deleted"] == fake_storage["uploaded"] == ["visits/999/foto.jpg"]


def test_photo_type_is_checked(client, auth, new_client, fake_storage):
    c = new_client()
    r = client.post(
        "/visits",
        data={"client_id": str(c["id"]), "status": "VISITED"},
        files={"photo": ("nota.txt", b"texto", "text/plain")},
        headers=auth,
    )
    assert r.status_code == 400
    assert fake_storage["uploaded"] == []


def test_storage_failure_is_502(client, auth, new_client, monkeypatch):
    def broken(**kwargs):
        raise S3StorageError("Erro upload S3: timeout")

    monkeypatch.setattr(visits_router, "upload_visit_photo", broken)
    c = new_client()
    r = client.post(
        "/visits",
        data={"client_id": str(c["id"]), "status": "VISITED"},
        files={"photo": ("fachada.jpg", JPEG, "image/jpeg")},
        headers=auth,
    )
    assert r.status_code == 502
    assert "sem foto" in r.json()["detail"]


def test_productivity_report(client, auth, new_client):
    c = new_client()
    client.post(
        "/visits",
        data={
            "client_id": str(c["id"]),
            "status": "PAID",
            "amount_received": "50",
            "installment_id": str(c["installments"][0]["id"]),
        },
        headers=auth,
    )
    client.post("/visits", data={"client_id": str(c["id"]), "status": "NOT_HOME"}, headers=auth)

    r = client.get("/reports/productivity", params={"period": "today"}, headers=auth)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["total_visits"] == 2
    assert body["successful_visits"] == 1
    assert Decimal(body["total_collected"]) == Decimal("50")
    assert body["time_spent_minutes"] == 30
    assert body["conversion_rate"] == 50.0
    assert body["goal_progress"] == 10.0

    week = client.get("/reports/productivity", params={"period": "week"}, headers=auth).json()
    assert len(week["daily"]) == 7

    assert client.get("/reports/productivity", params={"period": "ano"}, headers=auth).status_code == 400
