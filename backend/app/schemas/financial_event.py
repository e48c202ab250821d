"""
Schemas Pydantic para o Evento Financeiro
Projeto: Guardiões Financeiro (Eventos Financeiros)

Na API os campos usam camelCase (vehiclePlate, eventDate, ...); no banco
e no código Python usam snake_case. A tradução é feita pelo
alias_generator dos schemas.
"""

from enum import Enum
import datetime
import re
import uuid
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


class EventStatus(str, Enum):
    """Status de pagamento de um evento."""
    PENDING = "Pendente"
    PAID = "Pago"
    CANCELLED = "Cancelado"


class DocumentKind(str, Enum):
    """Tipos de documento anexável."""
    INVOICE = "nfe"
    PAYMENT_SLIP = "boleto"
    RECEIPT = "comprovante"


PLATE_MIN_LENGTH = 7
PLATE_MAX_LENGTH = 20
SUPPLIER_MAX_LENGTH = 255
DOCUMENT_NAME_MAX_LENGTH = 255
CENTS = Decimal("0.01")

# "1.234" ou "12.345.678": pontos como separador de milhar, sem vírgula
_THOUSANDS_ONLY = re.compile(r"^\d{1,3}(\.\d{3})+$")


# -------------------------------------------------------------------
# Funções de normalização e validação
# -------------------------------------------------------------------

def normalize_plate(plate: Optional[str]) -> Optional[str]:
    """
    Normaliza a placa do veículo para maiúsculas.

    Args:
        plate: Placa digitada

    Returns:
        Placa em maiúsculas ou None

    Raises:
        ValueError: Se a placa tiver menos de 7 ou mais de 20 caracteres
    """
    if plate is None:
        return None

    normalized = plate.strip().upper()
    if not PLATE_MIN_LENGTH <= len(normalized) <= PLATE_MAX_LENGTH:
        raise ValueError("Placa do veículo inválida")

    return normalized


def parse_amount(value: Any) -> Decimal:
    """
    Converte um valor monetário em Decimal com duas casas.

    Aceita texto no formato brasileiro ("1.234,56", "450,75", "R$ 10,00"),
    texto com ponto decimal ("450.75") e números.

    Args:
        value: Valor digitado ou numérico

    Returns:
        Decimal não negativo arredondado ao centavo

    Raises:
        ValueError: Se o valor estiver vazio, não for numérico ou for negativo
    """
    if value is None:
        raise ValueError("Valor é obrigatório")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    else:
        text = str(value).strip().replace("R$", "").replace(" ", "")
        if not text:
            raise ValueError("Valor é obrigatório")

        if "," in text:
            # Ponto depois da vírgula ("1,234.56") é formato misto, não brasileiro
            if "." in text.rsplit(",", 1)[1]:
                raise ValueError("Valor inválido")
            text = text.replace(".", "").replace(",", ".")
        elif _THOUSANDS_ONLY.match(text):
            text = text.replace(".", "")

        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise ValueError("Valor inválido")

    if not amount.is_finite():
        raise ValueError("Valor inválido")

    if amount < 0:
        raise ValueError("O valor não pode ser negativo")

    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def coerce_date(value: Any) -> Any:
    """Aceita datetime e strings ISO com horário, mantendo apenas a data. Texto vazio vira None."""
    if isinstance(value, str) and not value.strip():
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return datetime.datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    return value


def infer_status(invoice_url: Optional[str]) -> EventStatus:
    """Status inicial quando não informado: Pago se já há nota fiscal."""
    return EventStatus.PAID if invoice_url else EventStatus.PENDING


def format_amount_br(amount: Decimal) -> str:
    """Formata o valor com vírgula decimal, sem separador de milhar."""
    return f"{amount:.2f}".replace(".", ",")


# -------------------------------------------------------------------
# Base camelCase
# -------------------------------------------------------------------
class CamelModel(BaseModel):
    """Base dos schemas expostos na API (camelCase nos dois sentidos)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# -------------------------------------------------------------------
# Documentos
# -------------------------------------------------------------------
class PaymentSlipData(CamelModel):
    """Boleto: nome, URL e vencimento."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    name: str = Field(..., min_length=1, max_length=DOCUMENT_NAME_MAX_LENGTH)
    url: str = Field(..., min_length=1)
    due_date: Optional[datetime.date] = Field(None, description="Data de vencimento")

    _coerce_due_date = field_validator("due_date", mode="before")(coerce_date)


class ReceiptData(CamelModel):
    """Comprovante: nome, URL e data de pagamento."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    name: str = Field(..., min_length=1, max_length=DOCUMENT_NAME_MAX_LENGTH)
    url: str = Field(..., min_length=1)
    payment_date: Optional[datetime.date] = Field(None, description="Data do pagamento")

    _coerce_payment_date = field_validator("payment_date", mode="before")(coerce_date)


# -------------------------------------------------------------------
# Mixin com validators comuns
# -------------------------------------------------------------------
class EventValidatorsMixin(CamelModel):
    """
    Validators comuns aos campos do evento.

    Os campos são declarados aqui apenas para registrar os field_validator;
    as classes filhas os redefinem com os próprios tipos e restrições.
    """

    vehicle_plate: Optional[str] = None
    amount: Optional[Decimal] = None
    event_date: Optional[datetime.date] = None
    payment_date: Optional[datetime.date] = None

    _normalize_plate = field_validator("vehicle_plate", mode="before")(normalize_plate)
    _coerce_event_date = field_validator("event_date", mode="before")(coerce_date)
    _coerce_payment_date = field_validator("payment_date", mode="before")(coerce_date)

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, v: Any) -> Any:
        if v is None:
            return v
        return parse_amount(v)

    @field_validator("supplier", "reason", mode="before", check_fields=False)
    @classmethod
    def _strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


# -------------------------------------------------------------------
# Criação
# -------------------------------------------------------------------
class FinancialEventCreate(EventValidatorsMixin):
    """
    Schema de criação de um evento.

    Sem id nem timestamps: são atribuídos na persistência.
    Se o status não for informado, é inferido uma única vez aqui.
    """

    supplier: str = Field(..., min_length=1, max_length=SUPPLIER_MAX_LENGTH, description="Fornecedor")
    vehicle_plate: str = Field(..., min_length=PLATE_MIN_LENGTH, max_length=PLATE_MAX_LENGTH, description="Placa do veículo")
    amount: Decimal = Field(..., ge=0, description="Valor (R$)")
    event_date: datetime.date = Field(..., description="Data do evento")
    reason: str = Field(..., min_length=1, description="Motivo do evento")
    payment_date: datetime.date = Field(..., description="Data de pagamento")
    status: Optional[EventStatus] = Field(None, description="Status do pagamento")
    invoice_url: Optional[str] = Field(None, description="URL da nota fiscal")
    payment_slips: list[PaymentSlipData] = Field(default_factory=list)
    receipts: list[ReceiptData] = Field(default_factory=list)

    @model_validator(mode="after")
    def _default_status(self) -> "FinancialEventCreate":
        if self.status is None:
            self.status = infer_status(self.invoice_url)
        return self


# -------------------------------------------------------------------
# Atualização
# -------------------------------------------------------------------
class FinancialEventUpdate(EventValidatorsMixin):
    """
    Schema de atualização parcial (PATCH).

    Só os campos enviados são aplicados. paymentSlips e receipts, quando
    enviados, substituem a coleção inteira.
    """

    supplier: Optional[str] = Field(None, min_length=1, max_length=SUPPLIER_MAX_LENGTH)
    vehicle_plate: Optional[str] = Field(None, min_length=PLATE_MIN_LENGTH, max_length=PLATE_MAX_LENGTH)
    amount: Optional[Decimal] = Field(None, ge=0)
    event_date: Optional[datetime.date] = None
    reason: Optional[str] = Field(None, min_length=1)
    payment_date: Optional[datetime.date] = None
    status: Optional[EventStatus] = None
    invoice_url: Optional[str] = None
    payment_slips: Optional[list[PaymentSlipData]] = None
    receipts: Optional[list[ReceiptData]] = None


class EventStatusUpdate(CamelModel):
    """Troca de status a partir da lista."""

    status: EventStatus


# -------------------------------------------------------------------
# Leitura (API Response)
# -------------------------------------------------------------------
class FinancialEventRead(CamelModel):
    """
    Registro completo devolvido pelo adaptador e pela API.

    model_config com from_attributes=True para converter a partir do ORM.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: uuid.UUID
    supplier: str
    vehicle_plate: str
    amount: Decimal
    event_date: datetime.date
    reason: str
    payment_date: datetime.date
    status: EventStatus
    invoice_url: Optional[str] = None
    payment_slips: list[PaymentSlipData] = Field(default_factory=list)
    receipts: list[ReceiptData] = Field(default_factory=list)
    created_at: datetime.datetime
    updated_at: datetime.datetime

    @field_serializer("amount", when_used="json")
    def _amount_as_number(self, amount: Decimal) -> float:
        return float(amount)


# -------------------------------------------------------------------
# Filtros
# -------------------------------------------------------------------
class EventFilter(CamelModel):
    """
    Critérios de filtro, todos opcionais e combinados com AND.

    date_to é inclusivo (o dia inteiro). vehicle_plate é comparada em
    maiúsculas; reason é busca parcial sem diferenciar maiúsculas.
    """

    date_from: Optional[datetime.date] = None
    date_to: Optional[datetime.date] = None
    supplier: Optional[str] = None
    vehicle_plate: Optional[str] = None
    reason: Optional[str] = None

    _coerce_date_from = field_validator("date_from", mode="before")(coerce_date)
    _coerce_date_to = field_validator("date_to", mode="before")(coerce_date)

    @field_validator("supplier", "vehicle_plate", "reason", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @property
    def is_empty(self) -> bool:
        return not any(
            (self.date_from, self.date_to, self.supplier, self.vehicle_plate, self.reason)
        )


class FilterOptions(CamelModel):
    """Valores distintos para os seletores de filtro."""

    suppliers: list[str] = Field(default_factory=list)
    vehicle_plates: list[str] = Field(default_factory=list)
    reasons: list[str] = Field(default_factory=list)
