"""
Dependency Injection para o portão de sessão
Projeto: Guardiões Financeiro (Eventos Financeiros)

Lê o cookie de sessão, monta o SessionGate e expõe a Session admitida
no contexto da requisição.
"""

from typing import Annotated

from fastapi import Depends, Request, Response

from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.core.security import decode_session, encode_session
from app.core.session import Session, SessionGate, SessionState


def get_session_gate(request: Request) -> SessionGate:
    """
    Monta o portão a partir do cookie da requisição.

    Args:
        request: Requisição corrente

    Returns:
        SessionGate sobre o mapa plano decodificado do cookie
    """
    token = request.cookies.get(settings.session_cookie_name)
    storage = decode_session(token) if token else {}
    return SessionGate(storage)


def write_session_cookie(response: Response, gate: SessionGate) -> None:
    """
    Regrava (ou remove) o cookie de sessão conforme o estado do portão.

    Args:
        response: Resposta onde o cookie é escrito
        gate: Portão cujo storage será serializado
    """
    if gate.storage:
        response.set_cookie(
            key=settings.session_cookie_name,
            value=encode_session(gate.storage),
            max_age=settings.session_expiry_hours * 60 * 60,
            httponly=True,
            samesite="lax",
            secure=settings.is_production,
        )
    else:
        response.delete_cookie(settings.session_cookie_name)


async def require_session(
    request: Request,
    gate: SessionGate = Depends(get_session_gate),
) -> Session:
    """
    Dependency das rotas protegidas.

    Guarda a Session em request.state.session.

    Raises:
        AuthenticationError: Sessão ausente ou expirada
            (extra["expired"] indica expiração)
    """
    session = gate.check()
    if session is None:
        expired = gate.state == SessionState.EXPIRED
        raise AuthenticationError(
            "Sessão expirada, faça login novamente" if expired else "Autenticação necessária",
            extra={"expired": expired},
        )

    request.state.session = session
    return session


# Type alias de uso comum
CurrentSession = Annotated[Session, Depends(require_session)]


__all__ = [
    "get_session_gate",
    "write_session_cookie",
    "require_session",
    "CurrentSession",
]
