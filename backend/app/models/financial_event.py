"""
Modelo SQLAlchemy para o Evento Financeiro
Projeto: Guardiões Financeiro (Eventos Financeiros)

Contém:
- FinancialEvent: Despesa ligada a um veículo
- PaymentSlip: Boleto (documento a pagar com vencimento)
- PaymentReceipt: Comprovante de pagamento (com data de pagamento)
"""

from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from typing import List

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin


class FinancialEvent(Base, UUIDMixin, TimestampMixin):
    """
    Modelo do evento financeiro.

    Registra uma despesa de veículo com fornecedor, placa, valor, datas,
    status e documentos de suporte. A exclusão é definitiva e remove
    também boletos e comprovantes.

    Attributes:
        id: UUID primary key, gerado na primeira persistência
        supplier: Fornecedor (obrigatório)
        vehicle_plate: Placa do veículo, sempre em maiúsculas
        amount: Valor com duas casas decimais (não negativo)
        event_date: Data do evento
        reason: Motivo do evento
        payment_date: Data de pagamento
        status: Pendente | Pago | Cancelado
        invoice_url: URL pública da nota fiscal (NFe), opcional
        created_at: Data/hora de criação
        updated_at: Data/hora da última atualização

    Relationships:
        payment_slips: Boletos anexados
        receipts: Comprovantes anexados
    """

    __tablename__ = "financial_events"

    # ------------------------------------------------------------
    # Dados do evento
    # ------------------------------------------------------------
    supplier: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Fornecedor",
    )

    vehicle_plate: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="Placa do veículo (maiúsculas)",
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        doc="Valor do evento",
    )

    event_date: Mapped[datetime.date] = mapped_column(
        Date,
        nullable=False,
        doc="Data do evento",
    )

    reason: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Motivo do evento",
    )

    payment_date: Mapped[datetime.date] = mapped_column(
        Date,
        nullable=False,
        doc="Data de pagamento",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="Pendente",
        doc="Status do pagamento",
    )

    # ------------------------------------------------------------
    # Documentos
    # ------------------------------------------------------------
    invoice_url: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        doc="URL pública da nota fiscal",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    payment_slips: Mapped[List["PaymentSlip"]] = relationship(
        "PaymentSlip",
        back_populates="event",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PaymentSlip.due_date",
        doc="Boletos do evento",
    )

    receipts: Mapped[List["PaymentReceipt"]] = relationship(
        "PaymentReceipt",
        back_populates="event",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PaymentReceipt.payment_date",
        doc="Comprovantes do evento",
    )

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_financial_events_amount_non_negative"),
        CheckConstraint(
            "status IN ('Pendente', 'Pago', 'Cancelado')",
            name="ck_financial_events_status",
        ),
        # Ordenação padrão da lista e filtros mais usados
        Index("ix_financial_events_event_date", "event_date"),
        Index("ix_financial_events_vehicle_plate", "vehicle_plate"),
        Index("ix_financial_events_supplier", "supplier"),
    )

    def __repr__(self) -> str:
        return (
            f"<FinancialEvent(id={self.id}, supplier={self.supplier}, "
            f"plate={self.vehicle_plate}, amount={self.amount})>"
        )


class PaymentSlip(Base, UUIDMixin):
    """Boleto anexado a um evento, com a própria data de vencimento."""

    __tablename__ = "event_payment_slips"

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("financial_events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    due_date: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)

    event: Mapped["FinancialEvent"] = relationship(
        "FinancialEvent",
        back_populates="payment_slips",
    )


class PaymentReceipt(Base, UUIDMixin):
    """Comprovante de pagamento anexado a um evento."""

    __tablename__ = "event_receipts"

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("financial_events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    payment_date: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)

    event: Mapped["FinancialEvent"] = relationship(
        "FinancialEvent",
        back_populates="receipts",
    )
