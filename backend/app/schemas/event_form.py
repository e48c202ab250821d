"""
Schemas Pydantic do formulário de evento
Projeto: Guardiões Financeiro (Eventos Financeiros)

Estados do formulário, notificações ao usuário e resultado do envio.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from app.schemas.financial_event import CamelModel, FinancialEventRead


class FormState(str, Enum):
    """Ciclo de vida de uma instância de formulário."""
    EMPTY = "empty"
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


class Notification(CamelModel):
    """Notificação transitória exibida ao usuário."""

    level: NotificationLevel
    title: str
    description: str = ""


class SubmissionResult(CamelModel):
    """Resultado de um envio bem-sucedido do formulário."""

    success: bool = True
    state: FormState = FormState.SUCCESS
    created: bool = Field(False, description="True se o registro foi criado neste envio")
    event: Optional[FinancialEventRead] = None
    notifications: list[Notification] = Field(default_factory=list)
    failed_uploads: int = Field(0, description="Anexos que não puderam ser enviados")
