from __future__ import annotations

from datetime import timedelta
from decimal import Decimal


def test_partial_payment(client, auth, new_client, today):
    c = new_client()
    inst = c["installments"][0]

    r = client.post(f"/installments/{inst['id']}/pay", json={"amount": "20"}, headers=auth)
    assert r.status_code == 200, r.text
    body = r.json()

    assert body["kind"] == "partial"
    assert Decimal(body["paid_amount"]) == Decimal("20")
    assert Decimal(body["client_paid_amount"]) == Decimal("20")
    assert body["installment"]["status"] == "PAID"
    assert Decimal(body["installment"]["amount"]) == Decimal("20")
    assert body["installment"]["payment_date"] == today.isoformat()

    rest = body["remainder"]
    assert Decimal(rest["amount"]) == Decimal("30")
    assert rest["number"] == inst["number"]
    assert rest["split_index"] == 1
    assert rest["parent_id"] == inst["id"]
    assert rest["due_date"] == inst["due_date"]

    detail = client.get(f"/clients/{c['id']}", headers=auth).json()
    assert len(detail["installments"]) == 3
    assert Decimal(detail["remaining_amount"]) == Decimal("80")
    assert sum(Decimal(i["amount"]) for i in detail["installments"]) == Decimal("100")


def test_partial_payment_with_new_due_date(client, auth, new_client, today):
    inst = new_client()["installments"][0]
    new_due = (today + timedelta(days=3)).isoformat()
    r = client.post(
        f"/installments/{inst['id']}/pay",
        json={"amount": "10", "new_due_date": new_due},
        headers=auth,
    )
    assert r.json()["remainder"]["due_date"] == new_due


def test_payment_out_of_range(client, auth, new_client):
    c = new_client()
    inst = c["installments"][0]

    for amount in ("0", "50.01", "-1"):
        r = client.post(f"/installments/{inst['id']}/pay", json={"amount": amount}, headers=auth)
        assert r.status_code == 400
        assert r.json()["detail"] == "O valor deve ser entre R$ 0,01 e R$50,00."

    after = client.get(f"/installments/{inst['id']}", headers=auth).json()
    assert after["status"] == "PENDING"
    assert Decimal(after["amount"]) == Decimal("50")
    assert Decimal(client.get(f"/clients/{c['id']}", headers=auth).json()["paid_amount"]) == 0


def test_huge_amount_is_a_range_error(client, auth, new_client):
    inst = new_client()["installments"][0]

    r = client.post(f"/installments/{inst['id']}/pay", json={"amount": "1e30"}, headers=auth)
    assert r.status_code == 400, r.text
    assert r.json()["detail"] == "O valor deve ser entre R$ 0,01 e R$50,00."
    assert client.get(f"/installments/{inst['id']}", headers=auth).json()["status"] == "PENDING"


def test_pay_twice_and_missing(client, auth, new_client):
    inst = new_client()["installments"][0]
    assert client.post(f"/installments/{inst['id']}/pay", json={"amount": "50"}, headers=auth).json()["kind"] == "full"

    again = client.post(f"/installments/{inst['id']}/pay", json={"amount": "1"}, headers=auth)
    assert again.status_code == 400
    assert again.json()["detail"] == "Parcela já está paga."

    assert client.post("/installments/999/pay", json={"amount": "1"}, headers=auth).status_code == 404
    assert client.get("/installments/999", headers=auth).status_code == 404


def test_mark_paid(client, auth, new_client):
    inst = new_client()["installments"][1]
    r = client.post(f"/installments/{inst['id']}/mark-paid", headers=auth)
    assert r.status_code == 200
    assert r.json()["kind"] == "full"
    assert r.json()["remainder"] is None


def test_mark_overdue_and_filters(client, auth, staff_auth, new_client, today):
    old = new_client(first_payment_date=today - timedelta(days=30), total_amount="200")
    new_client(first_payment_date=today + timedelta(days=1))

    assert client.post("/installments/mark-overdue", headers=staff_auth).status_code == 403

    r = client.post("/installments/mark-overdue", headers=auth)
    assert r.status_code == 200
    assert r.json() == {"updated": 4}

    overdue = client.get("/installments", params={"status": "overdue"}, headers=auth).json()
    assert {i["client_id"] for i in overdue} == {old["id"]}
    assert len(overdue) == 4

    # parcela atrasada continua aceitando pagamento
    paid = client.post(f"/installments/{overdue[0]['id']}/pay", json={"amount": "50"}, headers=auth)
    assert paid.json()["installment"]["status"] == "PAID"

    by_date = client.get("/installments", params={"due_date": (today + timedelta(days=1)).isoformat()}, headers=auth)
    assert len(by_date.json()) == 1

    assert client.get("/installments", params={"status": "nada"}, headers=auth).status_code == 400
