"""
Service de geração de PDF com WeasyPrint + Jinja2.
Projeto: Guardiões Financeiro (Eventos Financeiros)
"""

import logging
import os
from datetime import date

from jinja2 import Environment, FileSystemLoader, select_autoescape
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.schemas.financial_event import EventFilter, FinancialEventRead, format_amount_br
from app.schemas.report import ReportConfig, ReportOrientation
from app.services.dashboard_service import summarize
from app.services.event_service import event_service

logger = logging.getLogger(__name__)

# Caminho da pasta de templates
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
TEMPLATES_DIR = os.path.join(BASE_DIR, "templates")


# Import tardio do weasyprint: as bibliotecas nativas (Pango/GTK) podem faltar
def _get_weasyprint():
    """Importa o weasyprint só quando um PDF é gerado."""
    try:
        from weasyprint import HTML, CSS
        return HTML, CSS
    except OSError as e:
        raise RuntimeError(
            "Dependências do WeasyPrint não encontradas. Instale as bibliotecas "
            "Pango (ex.: apt install libpango-1.0-0 libpangoft2-1.0-0)"
        ) from e


def _brl(value) -> str:
    """Filtro Jinja: R$ 1.234,56"""
    integer, cents = f"{float(value):,.2f}".split(".")
    return f"R$ {integer.replace(',', '.')},{cents}"


def _date_br(value) -> str:
    return value.strftime("%d/%m/%Y") if value else ""


class PdfService:
    """
    Gera o relatório de eventos a partir de templates HTML/CSS.

    Os eventos do período vêm de load_events (com boletos e comprovantes).
    """

    def __init__(self):
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATES_DIR),
            autoescape=select_autoescape(["html"]),
        )
        self.env.filters["brl"] = _brl
        self.env.filters["date_br"] = _date_br
        self.env.filters["amount_br"] = format_amount_br

    async def load_events(
        self,
        db: AsyncSession,
        config: ReportConfig,
    ) -> list[FinancialEventRead]:
        """
        Carrega os eventos do período do relatório pelo filtro do adaptador.

        Os limites são inclusivos; sem período, todos os eventos entram.

        Raises:
            StoreError: Falha do banco
        """
        criteria = EventFilter(date_from=config.date_from, date_to=config.date_to)
        return await event_service.filter(db, criteria)

    def render_events_report_html(
        self,
        events: list[FinancialEventRead],
        config: ReportConfig,
    ) -> str:
        """
        Renderiza o HTML do relatório.

        Args:
            events: Eventos do período (ver load_events)
            config: Título, período, anexos e orientação

        Returns:
            HTML pronto para o WeasyPrint
        """
        template = self.env.get_template("report_template.html")

        context = {
            "company_name": settings.report_company_name,
            "config": config,
            "landscape": config.orientation == ReportOrientation.LANDSCAPE,
            "events": events,
            "summary": summarize(events),
            "today": date.today().strftime("%d/%m/%Y"),
        }
        return template.render(context)

    def generate_events_report_pdf(
        self,
        events: list[FinancialEventRead],
        config: ReportConfig,
    ) -> bytes:
        """
        Gera o PDF do relatório de eventos.

        Returns:
            bytes: PDF binário pronto para download
        """
        HTML, CSS = _get_weasyprint()

        html_out = self.render_events_report_html(events, config)
        css = CSS(filename=os.path.join(TEMPLATES_DIR, "report_style.css"))

        pdf_bytes = HTML(string=html_out, base_url=TEMPLATES_DIR).write_pdf(stylesheets=[css])
        logger.info(f"Relatório gerado: '{config.title}' ({len(pdf_bytes)} bytes)")
        return pdf_bytes


# Instância global do service
pdf_service = PdfService()
