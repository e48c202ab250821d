"""
Router da sessão (senha compartilhada)
Projeto: Guardiões Financeiro (Eventos Financeiros)

Endpoints de login, logout e consulta da sessão corrente.
"""

import logging

from fastapi import APIRouter, Depends, Response, status

from app.core.deps import CurrentSession, get_session_gate, write_session_cookie
from app.core.exceptions import AuthenticationError
from app.core.session import Session, SessionGate
from app.schemas.session import LoginRequest, SessionRead

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/session",
    tags=["Sessão"],
)


def _to_read(session: Session) -> SessionRead:
    return SessionRead(
        authenticated_at=session.authenticated_at_dt,
        expires_at=session.expires_at_dt,
    )


@router.post(
    "/login",
    response_model=SessionRead,
    status_code=status.HTTP_200_OK,
    summary="Login com a senha compartilhada",
)
async def login(
    data: LoginRequest,
    response: Response,
    gate: SessionGate = Depends(get_session_gate),
) -> SessionRead:
    """
    Autentica pela senha compartilhada e grava o cookie de sessão.

    Raises:
        AuthenticationError: Senha incorreta
    """
    if not gate.login(data.password):
        raise AuthenticationError(
            "A senha fornecida está incorreta",
            error_code="INVALID_PASSWORD",
        )

    write_session_cookie(response, gate)
    return _to_read(gate.check())


@router.post(
    "/logout",
    status_code=status.HTTP_200_OK,
    summary="Logout",
)
async def logout(
    response: Response,
    gate: SessionGate = Depends(get_session_gate),
) -> dict[str, bool]:
    """Remove a sessão (as duas chaves e o cookie)."""
    gate.logout()
    write_session_cookie(response, gate)
    return {"authenticated": False}


@router.get(
    "",
    response_model=SessionRead,
    summary="Sessão corrente",
)
async def get_session(session: CurrentSession) -> SessionRead:
    """Devolve a sessão admitida pelo portão (401 se ausente ou expirada)."""
    return _to_read(session)
