"""
Schemas Pydantic do relatório PDF
Projeto: Guardiões Financeiro (Eventos Financeiros)
"""

import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from app.core.exceptions import BusinessValidationError
from app.schemas.financial_event import CamelModel


class ReportOrientation(str, Enum):
    """Orientação da página."""
    PORTRAIT = "retrato"
    LANDSCAPE = "paisagem"


class ReportConfig(CamelModel):
    """
    Configuração do relatório de eventos.

    Attributes:
        title: Título impresso no cabeçalho
        date_from: Início do período (data do evento, inclusivo)
        date_to: Fim do período (inclusivo)
        include_attachments: Lista os links dos documentos anexados
        orientation: retrato | paisagem
    """

    title: str = Field("Relatório de Eventos Financeiros", min_length=1, max_length=200)
    date_from: Optional[datetime.date] = None
    date_to: Optional[datetime.date] = None
    include_attachments: bool = False
    orientation: ReportOrientation = ReportOrientation.PORTRAIT

    @model_validator(mode="after")
    def validate_period(self) -> "ReportConfig":
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise BusinessValidationError("A data inicial deve ser anterior à data final")
        return self
