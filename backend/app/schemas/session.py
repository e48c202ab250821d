"""
Schemas Pydantic da sessão
Projeto: Guardiões Financeiro (Eventos Financeiros)
"""

from datetime import datetime

from pydantic import Field

from app.schemas.financial_event import CamelModel


class LoginRequest(CamelModel):
    """Senha compartilhada de acesso."""

    password: str = Field(..., min_length=1, description="Senha de acesso")


class SessionRead(CamelModel):
    """Sessão admitida pelo portão."""

    authenticated: bool = True
    authenticated_at: datetime
    expires_at: datetime
