from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal


def test_create_client_with_schedule(client, new_client, today):
    body = new_client(total_amount="500", payment_type="semanal")

    assert body["payment_type"] == "WEEKLY"
    assert body["phone"] == "85988887777"
    assert Decimal(body["remaining_amount"]) == Decimal("500")
    assert len(body["installments"]) == 10
    assert body["installments"][0]["due_date"] == today.isoformat()
    assert body["installments"][1]["due_date"] == (today + timedelta(days=7)).isoformat()
    assert all(i["status"] == "PENDING" for i in body["installments"])


def test_create_client_validation(client, auth, today):
    payload = {
        "name": "Sem forma",
        "phone": "85988887777",
        "address": "Rua X, 1",
        "total_amount": "100",
        "payment_type": "anual",
        "first_payment_date": today.isoformat(),
    }
    assert client.post("/clients", json=payload, headers=auth).status_code == 422

    payload["payment_type"] = "MONTHLY"
    payload["total_amount"] = "0"
    assert client.post("/clients", json=payload, headers=auth).status_code == 422


def test_preview_schedule(client, auth):
    r = client.post(
        "/clients/preview-schedule",
        json={"total_amount": "250", "payment_type": "quinzenal", "first_payment_date": "2025-01-01"},
        headers=auth,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["count"] == 3
    assert Decimal(body["installment_amount"]) == Decimal("83.33")
    assert [i["due_date"] for i in body["installments"]] == ["2025-01-01", "2025-01-16", "2025-01-31"]


def test_preview_rejects_oversized_totals(client, auth):
    base = {"payment_type": "WEEKLY", "first_payment_date": "2025-01-01"}

    # acima de Numeric(12,2)
    r = client.post("/clients/preview-schedule", json={**base, "total_amount": "1e15"}, headers=auth)
    assert r.status_code == 422

    # cabe na coluna mas gera parcelas demais
    r = client.post("/clients/preview-schedule", json={**base, "total_amount": "30000"}, headers=auth)
    assert r.status_code == 400
    assert "máximo é 520" in r.json()["detail"]

    new = {**base, "name": "Grande", "phone": "85 90000-1111", "address": "Rua X, 1", "total_amount": "30000"}
    r = client.post("/clients", json=new, headers=auth)
    assert r.status_code == 400
    assert client.get("/clients", headers=auth).json() == []


def test_list_is_sorted_for_collection(client, auth, new_client, today):
    later = new_client(name="Depois", first_payment_date=today + timedelta(days=9))
    now = new_client(name="Hoje", first_payment_date=today)
    soon = new_client(name="Logo", first_payment_date=today + timedelta(days=1))

    rows = client.get("/clients", headers=auth).json()
    assert [r["id"] for r in rows] == [now["id"], soon["id"], later["id"]]
    assert rows[0]["due_today"] is True
    assert rows[1]["next_due_date"] == (today + timedelta(days=1)).isoformat()

    found = client.get("/clients", params={"q": "logo"}, headers=auth).json()
    assert [r["id"] for r in found] == [soon["id"]]


def test_get_update_delete(client, auth, new_client):
    created = new_client()
    cid = created["id"]

    r = client.get(f"/clients/{cid}", headers=auth)
    assert r.status_code == 200
    assert len(r.json()["installments"]) == 2

    r = client.put(
        f"/clients/{cid}",
        json={"address": "Av. Nova, 500", "latitude": -3.73, "longitude": -38.52},
        headers=auth,
    )
    assert r.status_code == 200, r.text
    assert r.json()["address"] == "Av. Nova, 500"
    assert r.json()["latitude"] == -3.73

    assert client.delete(f"/clients/{cid}", headers=auth).status_code == 204
    assert client.get(f"/clients/{cid}", headers=auth).status_code == 404
    assert client.get(f"/installments?client_id={cid}", headers=auth).json() == []


def test_update_needs_both_coordinates(client, auth, new_client):
    cid = new_client()["id"]
    r = client.put(f"/clients/{cid}", json={"latitude": -3.7}, headers=auth)
    assert r.status_code == 400


def test_missing_client(client, auth):
    assert client.get("/clients/999", headers=auth).status_code == 404
    assert client.delete("/clients/999", headers=auth).status_code == 404


def test_first_payment_in_the_past_is_allowed(client, new_client):
    body = new_client(first_payment_date=date(2024, 1, 1))
    assert body["installments"][0]["due_date"] == "2024-01-01"
