from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crediario.config import settings
from crediario.infra.db import SessionLocal
from crediario.init_db import create_tables, ensure_admin

from crediario.api.routers.auth import router as auth_router
from crediario.api.routers.users import router as users_router
from crediario.api.routers.clients import router as clients_router
from crediario.api.routers.installments import router as installments_router
from crediario.api.routers.boletos import router as boletos_router
from crediario.api.routers.expenses import router as expenses_router
from crediario.api.routers.dashboard import router as dashboard_router
from crediario.api.routers.route import router as route_router
from crediario.api.routers.visits import router as visits_router
from crediario.api.routers.reports import router as reports_router
from crediario.api.routers.sync import router as sync_router
from crediario.api.routers.health import router as health_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# origens liberadas via env, separadas por vírgula
_env_origins = os.environ.get("FRONTEND_URLS") or os.environ.get("ALLOWED_ORIGINS")
if _env_origins:
    ALLOW_ORIGINS_LIST = [o.strip() for o in _env_origins.split(",") if o.strip()]
else:
    ALLOW_ORIGINS_LIST = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]


app = FastAPI(title="Crediário API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS_LIST,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

logger.info("CORS allow_origins=%s", ALLOW_ORIGINS_LIST)


@app.on_event("startup")
def _startup() -> None:
    create_tables()

    db = SessionLocal()
    try:
        ensure_admin(db)
    finally:
        db.close()


app.include_router(health_router, tags=["health"])
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(users_router, prefix="/users", tags=["users"])
app.include_router(clients_router, prefix="/clients", tags=["clients"])
app.include_router(installments_router, prefix="/installments", tags=["installments"])
app.include_router(boletos_router, prefix="/boletos", tags=["boletos"])
app.include_router(expenses_router, prefix="/expenses", tags=["expenses"])
app.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"])
app.include_router(route_router, prefix="/route", tags=["route"])
app.include_router(visits_router, prefix="/visits", tags=["visits"])
app.include_router(reports_router, prefix="/reports", tags=["reports"])
app.include_router(sync_router, prefix="/sync", tags=["sync"])
