"""
Schemas Pydantic do projeto Guardiões Financeiro

Este módulo reúne os schemas usados na validação da entrada e na
serialização das respostas da API.
"""

# Import dos schemas para uso direto
# ex: from app.schemas import FinancialEventRead, EventFilter

from app.schemas.financial_event import (
    DocumentKind,
    EventFilter,
    EventStatus,
    EventStatusUpdate,
    FilterOptions,
    FinancialEventCreate,
    FinancialEventRead,
    FinancialEventUpdate,
    PaymentSlipData,
    ReceiptData,
)
from app.schemas.dashboard import (
    DailyTotal,
    DashboardSummary,
    StatusTotals,
    SupplierTotal,
)
from app.schemas.event_form import (
    FormState,
    Notification,
    NotificationLevel,
    SubmissionResult,
)
from app.schemas.report import ReportConfig, ReportOrientation
from app.schemas.session import LoginRequest, SessionRead

__all__ = [
    # Evento financeiro
    "DocumentKind",
    "EventFilter",
    "EventStatus",
    "EventStatusUpdate",
    "FilterOptions",
    "FinancialEventCreate",
    "FinancialEventRead",
    "FinancialEventUpdate",
    "PaymentSlipData",
    "ReceiptData",
    # Painel
    "DailyTotal",
    "DashboardSummary",
    "StatusTotals",
    "SupplierTotal",
    # Formulário
    "FormState",
    "Notification",
    "NotificationLevel",
    "SubmissionResult",
    # Relatório
    "ReportConfig",
    "ReportOrientation",
    # Sessão
    "LoginRequest",
    "SessionRead",
]
