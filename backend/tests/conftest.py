"""
Configuração do pytest e fixtures comuns.

As variáveis de ambiente são definidas antes de importar a aplicação:
banco SQLite (aiosqlite) e bucket em diretórios temporários.
"""

import asyncio
import os
import tempfile
from datetime import date
from typing import AsyncGenerator

_TMP_DIR = tempfile.mkdtemp(prefix="guardioes-tests-")
_DB_PATH = os.path.join(_TMP_DIR, "test.db")

os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_DB_PATH}")
os.environ.setdefault("DB_CREATE_TABLES", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-more-than-32-characters")
os.environ.setdefault("ACCESS_PASSWORD", "GuardAdm")
os.environ.setdefault("STORAGE_PATH", os.path.join(_TMP_DIR, "storage"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from app.core.config import settings  # noqa: E402
from app.core.database import get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Base  # noqa: E402
from app.schemas.financial_event import FinancialEventCreate  # noqa: E402
from app.services.storage_service import AttachmentUploader, LocalBucket, PendingFile  # noqa: E402

ACCESS_PASSWORD = "GuardAdm"

# Engine sem pool: cada checkout abre e fecha a própria conexão,
# então sessões de event loops diferentes não se misturam
test_engine = create_async_engine(settings.database_url, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def _reset_tables() -> None:
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


# ============================================================
# Banco
# ============================================================


@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    """Sessão sobre tabelas recém-criadas."""
    await _reset_tables()
    async with TestSessionLocal() as session:
        yield session


# ============================================================
# HTTP
# ============================================================


@pytest.fixture
def client() -> TestClient:
    """TestClient sem sessão, sobre tabelas recém-criadas."""
    asyncio.run(_reset_tables())
    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_client(client: TestClient) -> TestClient:
    """TestClient já autenticado pela senha compartilhada."""
    response = client.post("/api/v1/session/login", json={"password": ACCESS_PASSWORD})
    assert response.status_code == 200
    return client


# ============================================================
# Armazenamento
# ============================================================


@pytest.fixture
def bucket(tmp_path) -> LocalBucket:
    return LocalBucket(root=tmp_path, name="documentos", public_url="/files")


@pytest.fixture
def uploader(bucket) -> AttachmentUploader:
    return AttachmentUploader(bucket=bucket, allowed_extensions=["pdf", "jpg", "jpeg", "png"])


@pytest.fixture
def pdf_file() -> PendingFile:
    return PendingFile(filename="nota.pdf", content=b"%PDF-1.4 teste" * 100, content_type="application/pdf")


# ============================================================
# Dados
# ============================================================


def make_event_data(**overrides) -> FinancialEventCreate:
    """Evento válido com valores padrão; os campos podem ser sobrescritos."""
    values = {
        "supplier": "Auto Peças Silva",
        "vehicle_plate": "abc1234",
        "amount": "450,75",
        "event_date": date(2024, 3, 10),
        "reason": "Troca de pastilhas de freio",
        "payment_date": date(2024, 3, 20),
    }
    values.update(overrides)
    return FinancialEventCreate(**values)


@pytest.fixture
def event_data() -> FinancialEventCreate:
    return make_event_data()


@pytest.fixture
def event_factory():
    """Fábrica de FinancialEventCreate para variar os campos por teste."""
    return make_event_data
