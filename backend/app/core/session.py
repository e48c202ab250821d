"""
Portão de sessão (senha compartilhada)
Projeto: Guardiões Financeiro (Eventos Financeiros)

O estado persistido são duas chaves planas: a flag de autenticação e o
timestamp (epoch em milissegundos) do login. O portão admite ou recusa o
acesso comparando o tempo decorrido com a janela de expiração.

Não é uma fronteira de segurança: uma única senha compartilhada, sem
usuários nem validação server-side de sessões individuais.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, MutableMapping, Optional

from app.core.config import settings
from app.core.security import verify_shared_secret

logger = logging.getLogger(__name__)

AUTH_FLAG_KEY = "guardAuthenticated"
AUTH_TIMESTAMP_KEY = "authTimestamp"


def now_ms() -> int:
    """Epoch atual em milissegundos."""
    return int(time.time() * 1000)


class SessionState(str, Enum):
    """Estados do portão de sessão."""
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"


@dataclass(frozen=True)
class Session:
    """Sessão admitida, passada explicitamente no contexto da requisição."""

    authenticated_at: int
    expires_at: int

    @property
    def authenticated_at_dt(self) -> datetime:
        return datetime.fromtimestamp(self.authenticated_at / 1000, tz=timezone.utc)

    @property
    def expires_at_dt(self) -> datetime:
        return datetime.fromtimestamp(self.expires_at / 1000, tz=timezone.utc)


class SessionGate:
    """
    Admite ou recusa acesso com base na flag e no timestamp armazenados.

    Transições: Unauthenticated -> Authenticated -> (Expired -> Unauthenticated).

    Args:
        storage: Mapa plano onde ficam as duas chaves
        expiry_ms: Janela de validade (padrão: settings.session_expiry_hours)
        clock: Função que devolve o epoch atual em ms
    """

    def __init__(
        self,
        storage: MutableMapping[str, str],
        expiry_ms: Optional[int] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.storage = storage
        self.expiry_ms = expiry_ms if expiry_ms is not None else settings.session_expiry_ms
        self.clock = clock
        self.state = (
            SessionState.AUTHENTICATED if self._flag_set() else SessionState.UNAUTHENTICATED
        )
        # True quando o portão alterou o storage e o transporte deve ser regravado
        self.changed = False

    def _flag_set(self) -> bool:
        return self.storage.get(AUTH_FLAG_KEY) == "true"

    def _timestamp(self) -> int:
        try:
            return int(self.storage.get(AUTH_TIMESTAMP_KEY) or "0")
        except ValueError:
            return 0

    def _clear(self) -> None:
        self.storage.pop(AUTH_FLAG_KEY, None)
        self.storage.pop(AUTH_TIMESTAMP_KEY, None)
        self.changed = True

    def login(self, password: str) -> bool:
        """
        Autentica pela senha compartilhada.

        Em caso de sucesso grava a flag e o timestamp atual.

        Returns:
            True se a senha confere
        """
        if not verify_shared_secret(password):
            logger.warning("Tentativa de login com senha incorreta")
            return False

        self.storage[AUTH_FLAG_KEY] = "true"
        self.storage[AUTH_TIMESTAMP_KEY] = str(self.clock())
        self.state = SessionState.AUTHENTICATED
        self.changed = True
        logger.info("Sessão autenticada")
        return True

    def check(self) -> Optional[Session]:
        """
        Verifica o acesso a uma rota protegida.

        Se a janela expirou, limpa as duas chaves e volta a Unauthenticated.

        Returns:
            Session se admitido, None caso contrário
        """
        authenticated = self._flag_set()
        timestamp = self._timestamp()
        expired = self.clock() - timestamp > self.expiry_ms

        if not authenticated or expired:
            if authenticated and expired:
                # As chaves somem já aqui; a próxima verificação vê Unauthenticated
                logger.info("Sessão expirada; chaves de autenticação removidas")
                self._clear()
                self.state = SessionState.EXPIRED
            else:
                self.state = SessionState.UNAUTHENTICATED
            return None

        self.state = SessionState.AUTHENTICATED
        return Session(authenticated_at=timestamp, expires_at=timestamp + self.expiry_ms)

    def logout(self) -> None:
        """Encerra a sessão removendo as duas chaves."""
        self._clear()
        self.state = SessionState.UNAUTHENTICATED
        logger.info("Sessão encerrada")
