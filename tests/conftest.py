from __future__ import annotations

import os

# precisa estar no ambiente antes de importar crediario.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "segredo-de-teste"
os.environ.pop("UAZAPI_TOKEN", None)

from datetime import date

import pytest
from fastapi.testclient import TestClient

from crediario.infra.db import SessionLocal, engine
from crediario.infra.models import Base, UserORM, UserRole
from crediario.services.auth_service import hash_password

ADMIN_EMAIL = "admin@teste.com"
STAFF_EMAIL = "cobrador@teste.com"
PASSWORD = "senha-forte-123"

# bcrypt é lento; um hash só pra todos os testes
_PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture(autouse=True)
def _tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def _add_user(email: str, role: UserRole) -> int:
    with SessionLocal() as s:
        user = UserORM(name=email.split("@")[0], email=email, password_hash=_PASSWORD_HASH, role=role)
        s.add(user)
        s.commit()
        return user.id


@pytest.fixture
def admin_id() -> int:
    return _add_user(ADMIN_EMAIL, UserRole.ADMIN)


@pytest.fixture
def staff_id() -> int:
    return _add_user(STAFF_EMAIL, UserRole.STAFF)


@pytest.fixture
def client():
    from crediario.main import app

    return TestClient(app)


def _login(client: TestClient, email: str) -> dict:
    r = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def auth(client, admin_id) -> dict:
    return _login(client, ADMIN_EMAIL)


@pytest.fixture
def staff_auth(client, staff_id) -> dict:
    return _login(client, STAFF_EMAIL)


@pytest.fixture
def today() -> date:
    return date.today()


@pytest.fixture
def new_client(client, auth, today):
    """Cadastra um cliente pela API e devolve o JSON de detalhe."""

    def _make(**overrides):
        payload = {
            "name": "Maria da Silva",
            "phone": "(85) 98888-7777",
            "address": "Rua das Flores, 123",
            "total_amount": "100",
            "payment_type": "WEEKLY",
            "first_payment_date": today.isoformat(),
        }
        payload.update(overrides)
        if isinstance(payload["first_payment_date"], date):
            payload["first_payment_date"] = payload["first_payment_date"].isoformat()
        r = client.post("/clients", json=payload, headers=auth)
        assert r.status_code == 201, r.text
        return r.json()

    return _make


