from __future__ import annotations

import enum
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List

from sqlalchemy import (
    String, Integer, DateTime, Date, Numeric, ForeignKey, Text, Float,
    Enum as SAEnum, UniqueConstraint, Index, func
)

from sqlalchemy.orm import (
    DeclarativeBase, Mapped, mapped_column, relationship
)


# base
class Base(DeclarativeBase):
    pass

# enums = status
class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"

class PaymentType(str, enum.Enum):
    WEEKLY = "WEEKLY"        # semanal
    BIWEEKLY = "BIWEEKLY"    # quinzenal
    MONTHLY = "MONTHLY"      # mensal

class InstallmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"

class BoletoStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"

class ExpenseCategory(str, enum.Enum):
    GASOLINA = "gasolina"
    ALIMENTACAO = "alimentacao"
    TRANSPORTE = "transporte"
    MANUTENCAO = "manutencao"
    ESCRITORIO = "escritorio"
    MARKETING = "marketing"
    OUTROS = "outros"

class VisitStatus(str, enum.Enum):
    VISITED = "VISITED"          # visitado, sem pagamento
    NOT_HOME = "NOT_HOME"        # não estava
    RESCHEDULED = "RESCHEDULED"  # reagendado
    PAID = "PAID"
    PARTIAL = "PARTIAL"

class WppSendStatus(str, enum.Enum):
    PENDING = "PENDING"
    SENDING = "SENDING"
    SENT = "SENT"
    FAILED = "FAILED"

# models
class UserORM(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(160), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[UserRole] = mapped_column(
        SAEnum(UserRole, name="user_role"), nullable=False, default=UserRole.STAFF
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    visits: Mapped[List["VisitORM"]] = relationship(back_populates="user")

class ClientORM(Base):
    __tablename__ = "clients"
    __table_args__ = (
        Index("ix_clients_phone", "phone"),
        Index("ix_clients_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(140), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)

    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    payment_type: Mapped[PaymentType] = mapped_column(
        SAEnum(PaymentType, name="payment_type"), nullable=False
    )
    first_payment_date: Mapped[date] = mapped_column(Date, nullable=False)

    # coordenadas do endereço (rota de cobrança); opcionais
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    installments: Mapped[List["InstallmentORM"]] = relationship(
        back_populates="client",
        cascade="all, delete-orphan",
        order_by=lambda: [InstallmentORM.number, InstallmentORM.split_index],
    )
    visits: Mapped[List["VisitORM"]] = relationship(
        back_populates="client", cascade="all, delete-orphan"
    )


class InstallmentORM(Base):
    __tablename__ = "installments"
    __table_args__ = (
        # number = número exibido; split_index diferencia o saldo de um pagamento parcial
        UniqueConstraint("client_id", "number", "split_index", name="uq_installments_client_number_split"),
        Index("ix_installments_due", "due_date", "status"),
        Index("ix_installments_wpp_today", "wa_today_status", "wa_today_next_retry_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)

    number: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..N
    split_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    parent_id: Mapped[Optional[int]] = mapped_column(ForeignKey("installments.id", ondelete="SET NULL"), nullable=True)

    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    status: Mapped[InstallmentStatus] = mapped_column(
        SAEnum(InstallmentStatus, name="installment_status"),
        nullable=False,
        default=InstallmentStatus.PENDING,
    )

    payment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # cobrança no dia do vencimento (whatsapp pro cliente)
    wa_today_status: Mapped[WppSendStatus] = mapped_column(
        SAEnum(WppSendStatus, name="wpp_installment_today_status"),
        nullable=False,
        default=WppSendStatus.PENDING,
    )
    wa_today_tries: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    wa_today_last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    wa_today_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    wa_today_next_retry_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    client: Mapped["ClientORM"] = relationship(back_populates="installments")


class BoletoORM(Base):
    __tablename__ = "boletos"
    __table_args__ = (
        Index("ix_boletos_due_status", "due_date", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    description: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[BoletoStatus] = mapped_column(
        SAEnum(BoletoStatus, name="boleto_status"),
        nullable=False,
        default=BoletoStatus.PENDING,
    )
    payment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class ExpenseORM(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        Index("ix_expenses_date", "expense_date"),
        Index("ix_expenses_category", "category"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    description: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    category: Mapped[ExpenseCategory] = mapped_column(
        SAEnum(ExpenseCategory, name="expense_category", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    expense_date: Mapped[date] = mapped_column(Date, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class VisitORM(Base):
    __tablename__ = "visits"
    __table_args__ = (
        Index("ix_visits_user_visited_at", "user_id", "visited_at"),
        Index("ix_visits_client", "client_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
    installment_id: Mapped[Optional[int]] = mapped_column(ForeignKey("installments.id", ondelete="SET NULL"), nullable=True)

    status: Mapped[VisitStatus] = mapped_column(
        SAEnum(VisitStatus, name="visit_status"), nullable=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    amount_received: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # chave no bucket (S3); a URL é presignada na saída
    photo_key: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    visited_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    client: Mapped["ClientORM"] = relationship(back_populates="visits")
    user: Mapped[Optional["UserORM"]] = relationship(back_populates="visits")


class SyncReceiptORM(Base):
    """Itens da fila offline já aplicados (dedup pela chave gerada no aparelho)."""
    __tablename__ = "sync_receipts"

    key: Mapped[str] = mapped_column(String(120), primary_key=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    result_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
