"""
Main Entry Point - FastAPI Application
Projeto: Guardiões Financeiro (Eventos Financeiros)

Configura a aplicação FastAPI com middleware, routers, arquivos públicos
e ciclo de vida.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.database import close_db, init_db
from app.core.exceptions import AppException, AuthenticationError

# ------------------------------------------------------------
# Configuração de Logging
# ------------------------------------------------------------
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _is_api(request: Request) -> bool:
    return request.url.path.startswith("/api/")


# ------------------------------------------------------------
# Lifespan Handler
# ------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gerencia o ciclo de vida da aplicação.

    - Startup: inicializa a conexão com o banco
    - Shutdown: fecha as conexões
    """
    logger.info(f"Iniciando {settings.app_name} v{settings.app_version}")
    await init_db()
    logger.info("Aplicação iniciada com sucesso")

    yield

    logger.info("Encerrando aplicação...")
    await close_db()
    logger.info("Aplicação encerrada")


# ------------------------------------------------------------
# FastAPI Application
# ------------------------------------------------------------
app = FastAPI(
    title=settings.app_name,
    description="Controle de eventos financeiros de veículos - Backend",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# ------------------------------------------------------------
# Exception Handlers
# ------------------------------------------------------------
@app.exception_handler(AuthenticationError)
async def authentication_exception_handler(request: Request, exc: AuthenticationError) -> Response:
    """
    Sessão ausente ou expirada.

    Na API devolve 401; nas páginas redireciona para /login. Nos dois
    casos o cookie de sessão é removido.
    """
    if _is_api(request):
        response: Response = JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "errorCode": exc.error_code, "extra": exc.extra},
        )
    else:
        expired = bool(exc.extra and exc.extra.get("expired"))
        response = RedirectResponse("/login?expirado=1" if expired else "/login", status_code=303)

    response.delete_cookie(settings.session_cookie_name)
    return response


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Converte qualquer AppException na resposta JSON padrão.

    O corpo traz detail, errorCode e extra.
    """
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} em {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "errorCode": exc.error_code, "extra": exc.extra},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Rotas inexistentes fora da API mostram a página 404."""
    if exc.status_code == 404 and not _is_api(request):
        from app.api.pages import render_not_found

        return render_not_found(request)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler genérico para exceções não capturadas.

    Responde 500 e registra o erro.
    """
    logger.error(
        f"Unhandled exception: {exc}",
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Erro interno do servidor"},
    )


# ------------------------------------------------------------
# Middleware CORS
# ------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------
@app.get(
    "/health",
    name="Health Check",
    summary="Verifica o estado da aplicação",
    tags=["System"],
)
async def health_check() -> dict[str, str]:
    """
    Endpoint de verificação de saúde.

    Returns:
        dict: Estado da aplicação
    """
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.app_env,
    }


# ------------------------------------------------------------
# Arquivos públicos dos buckets
# ------------------------------------------------------------
os.makedirs(settings.storage_path, exist_ok=True)
app.mount(
    settings.storage_public_url,
    StaticFiles(directory=settings.storage_path),
    name="files",
)


# ------------------------------------------------------------
# Routers
# ------------------------------------------------------------
from app.api.pages import router as pages_router
from app.api.v1 import api_v1_router

app.include_router(api_v1_router)
app.include_router(pages_router)
