from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import func, select

from crediario.infra.models import (
    ClientORM,
    InstallmentORM,
    InstallmentStatus,
    SyncReceiptORM,
    VisitORM,
)
from crediario.schemas.sync import SyncItem
from crediario.services.sync_service import APPLIED, DUPLICATE, REJECTED, apply_sync_batch

CLIENT_DATA = {
    "name": "Offline Cliente",
    "phone": "85 97777-6666",
    "address": "Rua Offline, 1",
    "total_amount": "100",
    "payment_type": "semanal",
    "first_payment_date": "2025-06-02",
}


def _item(key, type_, data):
    return SyncItem(key=key, type=type_, data=data, timestamp=1717200000000)


def test_client_is_applied_once(db):
    first = apply_sync_batch(db, [_item("c-1", "client", CLIENT_DATA)])
    db.commit()
    again = apply_sync_batch(db, [_item("c-1", "client", CLIENT_DATA)])
    db.commit()

    assert first[0].status == APPLIED
    assert again[0].status == DUPLICATE
    assert again[0].result_id == first[0].result_id
    assert db.scalar(select(func.count(ClientORM.id))) == 1


def test_rejected_item_does_not_undo_others(db):
    results = apply_sync_batch(
        db,
        [
            _item("c-1", "client", CLIENT_DATA),
            _item("c-2", "client", {**CLIENT_DATA, "total_amount": "0"}),
            _item("v-1", "visit", {"client_id": 999, "status": "visitado"}),
            _item("c-3", "client", {**CLIENT_DATA, "name": "Outro"}),
        ],
    )
    db.commit()

    assert [r.status for r in results] == [APPLIED, REJECTED, REJECTED, APPLIED]
    assert results[1].error
    assert "Cliente não encontrado" in results[2].error
    assert db.scalar(select(func.count(ClientORM.id))) == 2
    assert db.scalar(select(func.count(SyncReceiptORM.key))) == 2


def test_rejected_key_can_be_retried(db):
    client_id = apply_sync_batch(db, [_item("c-1", "client", CLIENT_DATA)])[0].result_id
    db.commit()
    client = db.get(ClientORM, client_id)
    inst_id = client.installments[0].id

    bad = apply_sync_batch(db, [_item("p-1", "payment", {"installment_id": inst_id, "amount": "80"})])
    db.commit()
    assert bad[0].status == REJECTED
    assert db.get(SyncReceiptORM, "p-1") is None

    ok = apply_sync_batch(
        db,
        [_item("p-1", "payment", {"installment_id": inst_id, "amount": "20", "paid_on": "2025-06-02"})],
    )
    db.commit()
    assert ok[0].status == APPLIED

    assert client.paid_amount == Decimal("20.00")
    count = db.scalar(select(func.count(InstallmentORM.id)).where(InstallmentORM.client_id == client_id))
    assert count == 3


def test_visit_item_reconciles_payment(db):
    client_id = apply_sync_batch(db, [_item("c-1", "client", CLIENT_DATA)])[0].result_id
    db.commit()
    inst_id = db.get(ClientORM, client_id).installments[0].id

    results = apply_sync_batch(
        db,
        [
            _item(
                "v-1",
                "visit",
                {
                    "client_id": client_id,
                    "status": "pago",
                    "amount_received": "50",
                    "installment_id": inst_id,
                    "visited_at": "2025-06-02T10:30:00",
                },
            )
        ],
        user_id=None,
    )
    db.commit()

    assert results[0].status == APPLIED
    visit = db.get(VisitORM, results[0].result_id)
    assert visit.amount_received == Decimal("50.00")
    assert visit.installment_id == inst_id

    inst = db.get(InstallmentORM, inst_id)
    assert inst.status == InstallmentStatus.PAID
    assert inst.payment_date == date(2025, 6, 2)


def test_malformed_payload_is_rejected(db):
    results = apply_sync_batch(db, [_item("p-9", "payment", {"amount": "10"})])
    assert results[0].status == REJECTED
    assert "installment_id" in results[0].error


def test_oversized_amounts_reject_only_their_item(db):
    client_id = apply_sync_batch(db, [_item("c-1", "client", CLIENT_DATA)])[0].result_id
    db.commit()
    inst_id = db.get(ClientORM, client_id).installments[0].id

    results = apply_sync_batch(
        db,
        [
            _item("p-1", "payment", {"installment_id": inst_id, "amount": "1e30"}),
            _item("v-1", "visit", {"client_id": client_id, "status": "PAID", "amount_received": "1e30"}),
            _item("p-2", "payment", {"installment_id": inst_id, "amount": "50"}),
        ],
    )
    db.commit()

    assert [r.status for r in results] == [REJECTED, REJECTED, APPLIED]
    assert db.get(InstallmentORM, inst_id).status == InstallmentStatus.PAID
    assert db.get(ClientORM, client_id).paid_amount == Decimal("50.00")
    assert db.scalar(select(func.count(VisitORM.id))) == 0
