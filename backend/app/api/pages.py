"""
Páginas HTML (renderizadas no servidor)
Projeto: Guardiões Financeiro (Eventos Financeiros)

Rotas de navegação: login, painel, lista de eventos, novo evento e
edição. Todas, exceto /login, passam pelo portão de sessão; sem sessão o
handler de AuthenticationError redireciona para /login.
"""

import logging
import os
import uuid
from typing import Any, Optional

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.form_data import apply_event_form, read_event_form
from app.core.config import settings
from app.core.database import get_db
from app.core.deps import get_session_gate, require_session, write_session_cookie
from app.core.exceptions import BusinessValidationError, ConflictError, StoreError, SubmissionError
from app.core.session import SessionGate
from app.schemas.financial_event import EventFilter, EventStatus, format_amount_br
from app.services.dashboard_service import summarize
from app.services.event_form_service import EventForm
from app.services.event_list_service import EventListController
from app.services.event_service import event_service

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
templates = Jinja2Templates(directory=os.path.join(BASE_DIR, "templates", "pages"))
templates.env.filters["amount_br"] = format_amount_br
templates.env.filters["date_br"] = lambda value: value.strftime("%d/%m/%Y") if value else ""

router = APIRouter(tags=["Páginas"], include_in_schema=False)

# Mensagens exibidas após um redirecionamento (?aviso=...)
NOTICES = {
    "login": ("Login bem-sucedido", "Bem-vindo ao sistema Guardiões Financeiro"),
    "salvo": ("Evento salvo", "O evento financeiro foi salvo com sucesso"),
    "excluido": ("Evento excluído", "O evento foi removido com sucesso"),
    "status": ("Status atualizado", "O status do evento foi alterado"),
}


def render(
    request: Request,
    name: str,
    context: Optional[dict[str, Any]] = None,
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    """Renderiza um template de página com o contexto comum."""
    notice = NOTICES.get(request.query_params.get("aviso", ""))
    return templates.TemplateResponse(
        request,
        name,
        {"app_name": settings.app_name, "notice": notice, **(context or {})},
        status_code=status_code,
    )


def render_not_found(request: Request) -> HTMLResponse:
    return render(request, "not_found.html", status_code=status.HTTP_404_NOT_FOUND)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


def page_filter(request: Request) -> EventFilter:
    """
    Critérios do formulário de filtro (campos vazios são ignorados).

    Uma data mal formada descarta o filtro inteiro.
    """
    try:
        return EventFilter.model_validate(dict(request.query_params))
    except PydanticValidationError:
        logger.warning(f"Filtro inválido ignorado: {request.url.query}")
        return EventFilter()


# -------------------------------------------------------------------
# Login / logout
# -------------------------------------------------------------------
@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request) -> HTMLResponse:
    return render(request, "login.html", {"expired": request.query_params.get("expirado") == "1"})


@router.post("/login", response_class=HTMLResponse)
async def login_submit(
    request: Request,
    password: str = Form(""),
    gate: SessionGate = Depends(get_session_gate),
) -> Response:
    """Confere a senha; em caso de sucesso grava o cookie e vai para o painel."""
    if not gate.login(password):
        return render(
            request,
            "login.html",
            {"error": "A senha fornecida está incorreta"},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    response = _redirect("/?aviso=login")
    write_session_cookie(response, gate)
    return response


@router.post("/logout")
async def logout(gate: SessionGate = Depends(get_session_gate)) -> Response:
    gate.logout()
    response = _redirect("/login")
    write_session_cookie(response, gate)
    return response


# -------------------------------------------------------------------
# Painel
# -------------------------------------------------------------------
@router.get("/", response_class=HTMLResponse, dependencies=[Depends(require_session)])
async def dashboard_page(request: Request, db: AsyncSession = Depends(get_db)) -> HTMLResponse:
    try:
        events = await event_service.list_all(db)
    except StoreError:
        return render(
            request,
            "dashboard.html",
            {
                "summary": summarize([]),
                "error": ("Erro ao carregar dados", "Não foi possível buscar os eventos financeiros"),
            },
            status_code=status.HTTP_502_BAD_GATEWAY,
        )
    return render(request, "dashboard.html", {"summary": summarize(events)})


# -------------------------------------------------------------------
# Lista de eventos
# -------------------------------------------------------------------
@router.get("/eventos", response_class=HTMLResponse, dependencies=[Depends(require_session)])
async def events_page(
    request: Request,
    criteria: EventFilter = Depends(page_filter),
    db: AsyncSession = Depends(get_db),
) -> HTMLResponse:
    """Lista com filtros, ordenação por pagamento e ações por linha."""
    sort_by_payment = request.query_params.get("sortByPaymentDate") in ("1", "true")
    descending = request.query_params.get("descending", "true") != "false"

    controller = EventListController()
    try:
        await controller.load(db)
        await controller.apply_filter(db, criteria)
    except StoreError:
        return render(
            request,
            "events.html",
            {
                "controller": controller,
                "statuses": list(EventStatus),
                "error": ("Erro ao carregar dados", "Não foi possível buscar os eventos financeiros"),
            },
            status_code=status.HTTP_502_BAD_GATEWAY,
        )

    controller.sort_by_payment_date(sort_by_payment, descending)
    return render(
        request,
        "events.html",
        {
            "controller": controller,
            "statuses": list(EventStatus),
            "query": request.url.query,
        },
    )


@router.get("/eventos/exportar.csv", dependencies=[Depends(require_session)])
async def events_csv_page(
    request: Request,
    criteria: EventFilter = Depends(page_filter),
    db: AsyncSession = Depends(get_db),
) -> Response:
    controller = EventListController()
    await controller.apply_filter(db, criteria)
    controller.sort_by_payment_date(
        request.query_params.get("sortByPaymentDate") in ("1", "true"),
        request.query_params.get("descending", "true") != "false",
    )
    filename = controller.csv_filename()
    return Response(
        content=controller.export_csv(),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/eventos/{event_id}/status", dependencies=[Depends(require_session)])
async def event_status_submit(
    event_id: uuid.UUID,
    new_status: EventStatus = Form(..., alias="status"),
    db: AsyncSession = Depends(get_db),
) -> Response:
    controller = EventListController()
    await controller.change_status(db, event_id, new_status)
    return _redirect("/eventos?aviso=status")


@router.get("/eventos/{event_id}/excluir", response_class=HTMLResponse, dependencies=[Depends(require_session)])
async def event_delete_confirm(
    request: Request,
    event_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> HTMLResponse:
    """Primeiro passo da exclusão: pede confirmação."""
    event = await event_service.get_by_id(db, event_id)
    if event is None:
        return render_not_found(request)
    return render(request, "event_confirm_delete.html", {"event": event})


@router.post("/eventos/{event_id}/excluir", dependencies=[Depends(require_session)])
async def event_delete_submit(
    request: Request,
    event_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Segundo passo: exclui de fato."""
    controller = EventListController()
    controller.request_delete(event_id)
    if not await controller.confirm_delete(db):
        return render_not_found(request)
    return _redirect("/eventos?aviso=excluido")


# -------------------------------------------------------------------
# Formulário (novo / edição)
# -------------------------------------------------------------------
def _render_form(
    request: Request,
    form: EventForm,
    error: Optional[str] = None,
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    action = "/novo-evento" if form.is_new else f"/editar-evento/{form.event_id}"
    return render(
        request,
        "event_form.html",
        {
            "form": form,
            "action": action,
            "error": error,
            "statuses": list(EventStatus),
            "submission_key": uuid.uuid4().hex,
        },
        status_code=status_code,
    )


async def _submit_form(request: Request, form: EventForm, db: AsyncSession) -> Response:
    data = await read_event_form(request)
    form.submission_key = data.submission_key
    try:
        apply_event_form(form, data)
        await form.submit(db)
    except BusinessValidationError as e:
        return _render_form(request, form, e.detail, status.HTTP_422_UNPROCESSABLE_ENTITY)
    except ConflictError as e:
        return _render_form(request, form, e.detail, status.HTTP_409_CONFLICT)
    except SubmissionError as e:
        return _render_form(request, form, e.detail, status.HTTP_502_BAD_GATEWAY)

    return _redirect("/eventos?aviso=salvo")


@router.get("/novo-evento", response_class=HTMLResponse, dependencies=[Depends(require_session)])
async def new_event_page(request: Request) -> HTMLResponse:
    return _render_form(request, EventForm())


@router.post("/novo-evento", dependencies=[Depends(require_session)])
async def new_event_submit(request: Request, db: AsyncSession = Depends(get_db)) -> Response:
    return await _submit_form(request, EventForm(), db)


@router.get("/editar-evento/{event_id}", response_class=HTMLResponse, dependencies=[Depends(require_session)])
async def edit_event_page(
    request: Request,
    event_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> HTMLResponse:
    event = await event_service.get_by_id(db, event_id)
    if event is None:
        return render_not_found(request)
    return _render_form(request, EventForm(event=event))


@router.post("/editar-evento/{event_id}", dependencies=[Depends(require_session)])
async def edit_event_submit(
    request: Request,
    event_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Response:
    event = await event_service.get_by_id(db, event_id)
    if event is None:
        return render_not_found(request)
    return await _submit_form(request, EventForm(event=event), db)
