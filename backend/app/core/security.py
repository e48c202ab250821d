"""
Módulo de segurança
Projeto: Guardiões Financeiro (Eventos Financeiros)

Hash da senha compartilhada e assinatura do cookie de sessão.
"""

import logging
import secrets
from typing import Mapping

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

logger = logging.getLogger(__name__)

# Context para hash de senha; bcrypt continua aceito para hashes existentes
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Gera o hash de uma senha em texto puro.

    Args:
        password: Senha em texto puro

    Returns:
        Hash da senha (formato passlib)
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifica uma senha em texto puro contra um hash.

    Args:
        plain_password: Senha em texto puro
        hashed_password: Hash armazenado

    Returns:
        True se a senha confere, False caso contrário
    """
    return pwd_context.verify(plain_password, hashed_password)


def verify_shared_secret(candidate: str) -> bool:
    """
    Confere a senha compartilhada de acesso.

    Usa access_password_hash quando configurado; senão compara com
    access_password em tempo constante.
    """
    if settings.access_password_hash:
        return verify_password(candidate, settings.access_password_hash)
    return secrets.compare_digest(
        candidate.encode("utf-8"),
        settings.access_password.encode("utf-8"),
    )


def encode_session(values: Mapping[str, str]) -> str:
    """
    Assina o mapa plano da sessão para transporte em cookie.

    Args:
        values: Chaves planas da sessão

    Returns:
        Token JWT assinado
    """
    return jwt.encode(
        dict(values),
        settings.secret_key,
        algorithm=settings.session_jwt_algorithm,
    )


def decode_session(token: str) -> dict[str, str]:
    """
    Decodifica o cookie de sessão.

    Um token inválido ou adulterado equivale a uma sessão vazia.
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.session_jwt_algorithm],
        )
    except JWTError as e:
        logger.warning(f"Cookie de sessão inválido descartado: {e}")
        return {}

    return {str(key): str(value) for key, value in payload.items()}


__all__ = [
    "hash_password",
    "verify_password",
    "verify_shared_secret",
    "encode_session",
    "decode_session",
]
