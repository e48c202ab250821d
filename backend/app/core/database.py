"""
Configuração do Banco de Dados - SQLAlchemy 2.0 Async
Projeto: Guardiões Financeiro (Eventos Financeiros)

Define engine, session factory e dependency injection para o FastAPI.
"""

import logging
from typing import Any, AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings

# Logger deste módulo
logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> dict[str, Any]:
    """Opções do pool; o SQLite (aiosqlite) não aceita pool_size/max_overflow."""
    options: dict[str, Any] = {
        "echo": settings.debug,
        "pool_pre_ping": True,
    }
    if not database_url.startswith("sqlite"):
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
    return options


# ------------------------------------------------------------
# Engine Async SQLAlchemy 2.0
# ------------------------------------------------------------
engine: AsyncEngine = create_async_engine(
    settings.database_url,
    **_engine_options(settings.database_url),
)


# ------------------------------------------------------------
# Session Factory
# ------------------------------------------------------------
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency injection para o FastAPI.

    Cria uma sessão por requisição e a fecha ao final.

    Yields:
        AsyncSession: Sessão async do banco
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_tables() -> None:
    """Cria as tabelas declaradas nos modelos (idempotente)."""
    from app.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tabelas verificadas/criadas")


async def init_db() -> None:
    """
    Inicializa a conexão com o banco.

    Executa um teste de conexão e, se configurado, cria as tabelas.
    """
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Conexão com o banco estabelecida com sucesso")
    except Exception as e:
        logger.error("Erro de conexão com o banco: %s", e)
        raise

    if settings.db_create_tables:
        await create_tables()


async def close_db() -> None:
    """
    Fecha as conexões com o banco.

    Chamado no shutdown da aplicação.
    """
    await engine.dispose()
    logger.info("Conexões com o banco encerradas")
