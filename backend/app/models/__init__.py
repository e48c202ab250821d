"""
Modelos SQLAlchemy
Projeto: Guardiões Financeiro (Eventos Financeiros)

Import centralizado dos modelos para create_all e uso geral.

Modelos:
- FinancialEvent: Evento financeiro (despesa de veículo)
- PaymentSlip: Boleto anexado a um evento
- PaymentReceipt: Comprovante de pagamento anexado a um evento
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Classe base de todos os modelos SQLAlchemy."""
    pass


from app.models.financial_event import FinancialEvent, PaymentReceipt, PaymentSlip

__all__ = [
    "Base",
    "FinancialEvent",
    "PaymentSlip",
    "PaymentReceipt",
]
