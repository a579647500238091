# crediario/scripts/mark_overdue.py
# uso: python -m crediario.scripts.mark_overdue (cron diário)
import logging
from datetime import datetime

from dotenv import load_dotenv

load_dotenv()

from crediario.infra.db import SessionLocal
from crediario.services.overdue_service import mark_overdue_installments

logging.basicConfig(level=logging.INFO)

with SessionLocal() as db:
    updated = mark_overdue_installments(db, today=datetime.now().date())
    db.commit()
print(f"Parcelas marcadas como atrasadas: {updated}")
