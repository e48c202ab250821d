"""
Schemas Pydantic do painel
Projeto: Guardiões Financeiro (Eventos Financeiros)
"""

import datetime
from typing import Optional

from pydantic import Field

from app.schemas.financial_event import CamelModel, EventStatus, FinancialEventRead


class StatusTotals(CamelModel):
    """Quantidade e soma de um status."""

    status: EventStatus
    count: int = 0
    amount: float = 0.0


class SupplierTotal(CamelModel):
    """Soma por fornecedor, para o gráfico agrupado."""

    supplier: str
    amount: float
    count: int


class DailyTotal(CamelModel):
    """Ponto da série diária (valor e quantidade por data do evento)."""

    date: datetime.date
    total: float
    count: int


class DashboardSummary(CamelModel):
    """
    Resumo do painel, sempre recalculado sobre o conjunto completo.

    total_amount é soma em ponto flutuante.
    """

    total_count: int = 0
    total_amount: float = 0.0
    paid_count: int = 0
    paid_amount: float = 0.0
    pending_count: int = 0
    pending_amount: float = 0.0
    cancelled_count: int = 0
    cancelled_amount: float = 0.0
    paid_percentage: int = 0
    by_status: list[StatusTotals] = Field(default_factory=list)
    by_supplier: list[SupplierTotal] = Field(default_factory=list)
    by_date: list[DailyTotal] = Field(default_factory=list)
    recent_events: list[FinancialEventRead] = Field(default_factory=list)
    generated_at: Optional[datetime.datetime] = None
