# crediario/scripts/create_admin.py
import logging

from dotenv import load_dotenv

load_dotenv()

from crediario.infra.db import SessionLocal
from crediario.init_db import create_tables, ensure_admin

logging.basicConfig(level=logging.INFO)

create_tables()
with SessionLocal() as db:
    created = ensure_admin(db)
print("Admin criado" if created else "Admin já existia")
