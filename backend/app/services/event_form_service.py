"""
Controller do formulário de evento (novo / edição)
Projeto: Guardiões Financeiro (Eventos Financeiros)

Máquina de estados por instância:
    EMPTY -> EDITING -> SUBMITTING -> {SUCCESS, FAILED}
Depois de FAILED, qualquer edição ou novo envio volta a EDITING.

O envio é uma saga em passos:
1. cria o registro (se novo) e faz commit para obter o id;
2. envia a nota fiscal, depois boletos e comprovantes em paralelo;
   cada falha de envio vira uma notificação, sem abortar o resto;
3. grava as URLs no registro (documentos existentes mantidos);
4. se essa gravação falhar, remove do bucket os objetos deste envio.
O id fica no formulário, então uma nova tentativa atualiza em vez de duplicar.
"""

import asyncio
import datetime
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AppException,
    BusinessValidationError,
    ConflictError,
    NotFoundError,
    StorageError,
    SubmissionError,
)
from app.schemas.event_form import (
    FormState,
    Notification,
    NotificationLevel,
    SubmissionResult,
)
from app.schemas.financial_event import (
    DOCUMENT_NAME_MAX_LENGTH,
    SUPPLIER_MAX_LENGTH,
    DocumentKind,
    EventStatus,
    FinancialEventCreate,
    FinancialEventRead,
    FinancialEventUpdate,
    PaymentSlipData,
    ReceiptData,
    coerce_date,
    format_amount_br,
    infer_status,
    normalize_plate,
    parse_amount,
)
from app.services.event_service import EventService, event_service
from app.services.storage_service import AttachmentUploader, PendingFile, attachment_uploader

# Logger deste módulo
logger = logging.getLogger(__name__)

FORM_FIELDS = (
    "supplier",
    "vehicle_plate",
    "amount",
    "event_date",
    "reason",
    "payment_date",
    "status",
)
_FIELD_BY_ALIAS = {to_camel(name): name for name in FORM_FIELDS}

# Títulos das notificações por tipo de documento
_KIND_LABELS = {
    DocumentKind.INVOICE: ("Nota Fiscal Selecionada", "Nota fiscal enviada", "NFe", "a nota fiscal"),
    DocumentKind.PAYMENT_SLIP: ("Boleto Selecionado", "Boleto enviado", "boleto", "o boleto"),
    DocumentKind.RECEIPT: ("Comprovante Selecionado", "Comprovante enviado", "comprovante", "o comprovante"),
}

# Chaves de envio ativas no processo (envios HTTP repetidos)
_active_submissions: set[str] = set()


@contextmanager
def submission_guard(key: Optional[str]) -> Iterator[None]:
    """
    Impede dois envios simultâneos com a mesma chave.

    Raises:
        ConflictError: Já existe um envio com essa chave em andamento
    """
    if key is None:
        yield
        return

    if key in _active_submissions:
        logger.warning(f"Envio duplicado recusado: {key}")
        raise ConflictError("Este formulário já está sendo enviado")

    _active_submissions.add(key)
    try:
        yield
    finally:
        _active_submissions.discard(key)


def parse_form_date(value: Any) -> Optional[datetime.date]:
    """
    Converte a data digitada.

    Aceita date, datetime, ISO (AAAA-MM-DD, com ou sem horário) e DD/MM/AAAA.

    Raises:
        ValueError: Texto que não é uma data
    """
    if value is None or isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
        return value

    value = coerce_date(value)
    if value is None or isinstance(value, datetime.date):
        return value

    text = str(value).strip()
    if not text:
        return None
    if "/" in text:
        return datetime.datetime.strptime(text, "%d/%m/%Y").date()
    return datetime.date.fromisoformat(text)


def _document_date(value: Any, label: str) -> Optional[datetime.date]:
    try:
        return parse_form_date(value)
    except ValueError:
        raise BusinessValidationError(f"{label} inválida: {value}")


@dataclass
class StagedDocument:
    """Arquivo selecionado com a data que o acompanha (vencimento ou pagamento)."""

    file: PendingFile
    date: Optional[datetime.date] = None


class EventForm:
    """
    Estado e envio de um formulário de evento.

    Args:
        event: Registro em edição (None para um novo evento)
        store: Adaptador de registros
        uploader: Uploader de anexos
        submission_key: Chave opcional de idempotência do envio
    """

    def __init__(
        self,
        event: Optional[FinancialEventRead] = None,
        store: Optional[EventService] = None,
        uploader: Optional[AttachmentUploader] = None,
        submission_key: Optional[str] = None,
    ) -> None:
        self.store = store or event_service
        self.uploader = uploader or attachment_uploader
        self.submission_key = submission_key
        self.event: Optional[FinancialEventRead] = event
        self.event_id: Optional[uuid.UUID] = event.id if event else None
        self.values: dict[str, Any] = {}
        self.invoice: Optional[PendingFile] = None
        self.payment_slips: list[StagedDocument] = []
        self.receipts: list[StagedDocument] = []
        self.errors: dict[str, str] = {}
        self.notifications: list[Notification] = []
        self.in_flight = False
        self.reset()

    # ------------------------------------------------------------
    # Estado
    # ------------------------------------------------------------
    @property
    def is_new(self) -> bool:
        return self.event_id is None

    def _initial_values(self) -> dict[str, Any]:
        if self.event is None:
            today = datetime.date.today()
            return {
                "supplier": "",
                "vehicle_plate": "",
                "amount": "",
                "event_date": today,
                "reason": "",
                "payment_date": today,
                "status": "",
            }

        return {
            "supplier": self.event.supplier,
            "vehicle_plate": self.event.vehicle_plate,
            "amount": format_amount_br(self.event.amount),
            "event_date": self.event.event_date,
            "reason": self.event.reason,
            "payment_date": self.event.payment_date,
            "status": self.event.status.value,
        }

    def reset(self) -> None:
        """Descarta edições e arquivos selecionados."""
        self.values = self._initial_values()
        self.invoice = None
        self.payment_slips = []
        self.receipts = []
        self.errors = {}
        self.state = FormState.EDITING if self.event is not None else FormState.EMPTY

    def _touch(self) -> None:
        if self.state == FormState.SUBMITTING:
            raise ConflictError("Envio em andamento")
        self.state = FormState.EDITING

    def _notify(self, level: NotificationLevel, title: str, description: str = "") -> Notification:
        notification = Notification(level=level, title=title, description=description)
        self.notifications.append(notification)
        return notification

    # ------------------------------------------------------------
    # Edição
    # ------------------------------------------------------------
    def set_field(self, name: str, value: Any) -> None:
        """
        Altera um campo do formulário.

        Raises:
            BusinessValidationError: Campo inexistente
        """
        if name not in FORM_FIELDS:
            raise BusinessValidationError(f"Campo desconhecido: {name}")
        self._touch()
        self.values[name] = value
        self.errors.pop(name, None)

    def set_fields(self, values: Mapping[str, Any]) -> None:
        for name, value in values.items():
            self.set_field(name, value)

    def _stage(self, file: PendingFile, kind: DocumentKind) -> None:
        self.uploader.check_extension(file)
        if len(file.filename) > DOCUMENT_NAME_MAX_LENGTH:
            raise BusinessValidationError(
                f"Nome de arquivo muito longo (máximo de {DOCUMENT_NAME_MAX_LENGTH} caracteres)",
                extra={"filename": file.filename},
            )
        self._touch()
        self._notify(NotificationLevel.INFO, _KIND_LABELS[kind][0], file.describe())

    def stage_invoice(self, file: PendingFile) -> None:
        """Seleciona a nota fiscal (substitui uma seleção anterior)."""
        self._stage(file, DocumentKind.INVOICE)
        self.invoice = file

    def clear_invoice(self) -> None:
        self._touch()
        self.invoice = None

    def add_payment_slip(self, file: PendingFile, due_date: Any = None) -> None:
        """Acrescenta um boleto com a data de vencimento."""
        self._stage(file, DocumentKind.PAYMENT_SLIP)
        self.payment_slips.append(StagedDocument(file, _document_date(due_date, "Data de vencimento")))

    def add_receipt(self, file: PendingFile, payment_date: Any = None) -> None:
        """Acrescenta um comprovante com a data de pagamento."""
        self._stage(file, DocumentKind.RECEIPT)
        self.receipts.append(StagedDocument(file, _document_date(payment_date, "Data de pagamento")))

    def remove_payment_slip(self, index: int) -> None:
        self._touch()
        if not 0 <= index < len(self.payment_slips):
            raise BusinessValidationError(f"Boleto inexistente: {index}")
        del self.payment_slips[index]

    def remove_receipt(self, index: int) -> None:
        self._touch()
        if not 0 <= index < len(self.receipts):
            raise BusinessValidationError(f"Comprovante inexistente: {index}")
        del self.receipts[index]

    # ------------------------------------------------------------
    # Validação
    # ------------------------------------------------------------
    def validate(self) -> dict[str, str]:
        """
        Valida os campos.

        Returns:
            Mensagem por campo inválido (vazio se tudo certo)
        """
        errors: dict[str, str] = {}
        values = self.values

        supplier = str(values.get("supplier") or "").strip()
        if not supplier:
            errors["supplier"] = "Fornecedor é obrigatório"
        elif len(supplier) > SUPPLIER_MAX_LENGTH:
            errors["supplier"] = f"Fornecedor deve ter no máximo {SUPPLIER_MAX_LENGTH} caracteres"

        try:
            normalize_plate(str(values.get("vehicle_plate") or ""))
        except ValueError as e:
            errors["vehicle_plate"] = str(e)

        amount = values.get("amount")
        if amount is None or not str(amount).strip():
            errors["amount"] = "Valor é obrigatório"
        else:
            try:
                parse_amount(amount)
            except ValueError as e:
                errors["amount"] = str(e)

        for field, label in (("event_date", "Data do evento"), ("payment_date", "Data de pagamento")):
            try:
                if parse_form_date(values.get(field)) is None:
                    errors[field] = f"{label} é obrigatória"
            except ValueError:
                errors[field] = f"{label} inválida"

        if not str(values.get("reason") or "").strip():
            errors["reason"] = "Motivo do evento é obrigatório"

        status = values.get("status")
        if status:
            try:
                EventStatus(status)
            except ValueError:
                errors["status"] = "Status inválido"

        self.errors = errors
        return errors

    def _normalized(self) -> dict[str, Any]:
        values = self.values
        status = values.get("status")
        return {
            "supplier": str(values["supplier"]).strip(),
            "vehicle_plate": normalize_plate(str(values["vehicle_plate"])),
            "amount": parse_amount(values["amount"]),
            "event_date": parse_form_date(values["event_date"]),
            "reason": str(values["reason"]).strip(),
            "payment_date": parse_form_date(values["payment_date"]),
            "status": EventStatus(status) if status else None,
        }

    # ------------------------------------------------------------
    # Envio
    # ------------------------------------------------------------
    async def submit(self, db: AsyncSession) -> SubmissionResult:
        """
        Salva o formulário.

        Returns:
            SubmissionResult com o registro final e as notificações

        Raises:
            ConflictError: Envio já em andamento
            BusinessValidationError: Campos inválidos (extra["fields"])
            SubmissionError: Falha ao salvar (extra["notifications"])
        """
        if self.in_flight:
            raise ConflictError("Envio já em andamento")

        with submission_guard(self.submission_key):
            self.in_flight = True
            try:
                return await self._submit(db)
            finally:
                self.in_flight = False
                # Nenhuma saída deixa o formulário preso em SUBMITTING
                if self.state == FormState.SUBMITTING:
                    self.state = FormState.FAILED

    async def _submit(self, db: AsyncSession) -> SubmissionResult:
        self.state = FormState.EDITING
        errors = self.validate()
        if errors:
            raise BusinessValidationError(
                "Verifique os campos do formulário",
                extra={"fields": errors},
            )

        fields = self._normalized()
        infer_later = fields["status"] is None
        created = False

        try:
            if self.is_new:
                event_data = FinancialEventCreate(**fields)
            else:
                event_data = FinancialEventUpdate(**{k: v for k, v in fields.items() if v is not None})
        except PydanticValidationError as e:
            errors = {
                _FIELD_BY_ALIAS.get(str(error["loc"][0]), str(error["loc"][0])): error["msg"]
                for error in e.errors()
                if error["loc"]
            }
            self.errors = errors
            raise BusinessValidationError(
                "Verifique os campos do formulário",
                extra={"fields": errors},
            ) from e

        self.state = FormState.SUBMITTING
        self.notifications = []

        # 1. Registro primeiro, para ter o id
        try:
            if self.is_new:
                record = await self.store.create(db, event_data)
                await db.commit()
                self.event_id = record.id
                created = True
            else:
                record = await self.store.update(db, self.event_id, event_data)
                if record is None:
                    raise NotFoundError(f"Evento com ID {self.event_id} não encontrado")
                await db.commit()
        except AppException as e:
            await db.rollback()
            logger.error(f"Erro ao salvar evento: {e.detail}")
            self._fail("Ocorreu um erro ao processar os dados")
            raise SubmissionError(extra=self._failure_extra()) from e

        self.event = record

        # 2. Anexos: nota fiscal, depois boletos e comprovantes em paralelo
        uploaded: list[str] = []
        invoice_url = None
        if self.invoice is not None:
            invoice_url = await self._upload(self.invoice, DocumentKind.INVOICE, uploaded)

        slip_urls = await asyncio.gather(
            *(self._upload(s.file, DocumentKind.PAYMENT_SLIP, uploaded) for s in self.payment_slips)
        )
        receipt_urls = await asyncio.gather(
            *(self._upload(r.file, DocumentKind.RECEIPT, uploaded) for r in self.receipts)
        )

        # 3. Grava as URLs, mantendo os documentos existentes
        try:
            patch = self._build_patch(record, invoice_url, slip_urls, receipt_urls)
            if created and infer_later and invoice_url:
                patch["status"] = infer_status(invoice_url)
            if patch:
                patched = await self.store.update(db, self.event_id, FinancialEventUpdate(**patch))
                if patched is None:
                    raise NotFoundError(f"Evento com ID {self.event_id} não encontrado")
                await db.commit()
                record = patched
        except (AppException, PydanticValidationError) as e:
            await db.rollback()
            detail = e.detail if isinstance(e, AppException) else str(e)
            logger.error(f"Erro ao gravar anexos do evento {self.event_id}: {detail}")
            # 4. Compensação: remove os objetos enviados neste envio
            await self._compensate(uploaded)
            self._fail("Não foi possível vincular os anexos ao evento")
            raise SubmissionError(extra=self._failure_extra()) from e

        failed_uploads = (
            (1 if self.invoice is not None and not invoice_url else 0)
            + sum(1 for url in slip_urls if not url)
            + sum(1 for url in receipt_urls if not url)
        )

        self.event = record
        self.invoice = None
        self.payment_slips = []
        self.receipts = []
        self.state = FormState.SUCCESS
        self._notify(
            NotificationLevel.SUCCESS,
            "Evento criado" if created else "Evento atualizado",
            "O evento financeiro foi salvo com sucesso",
        )
        logger.info(
            f"Formulário salvo: evento {record.id} "
            f"({len(uploaded)} anexos enviados, {failed_uploads} falhas)"
        )

        return SubmissionResult(
            state=self.state,
            created=created,
            event=record,
            notifications=list(self.notifications),
            failed_uploads=failed_uploads,
        )

    def _build_patch(
        self,
        record: FinancialEventRead,
        invoice_url: Optional[str],
        slip_urls: list[Optional[str]],
        receipt_urls: list[Optional[str]],
    ) -> dict[str, Any]:
        """URLs enviadas acrescentadas aos documentos que o registro já tem."""
        patch: dict[str, Any] = {}
        if invoice_url:
            patch["invoice_url"] = invoice_url
        new_slips = [
            PaymentSlipData(name=s.file.filename, url=url, due_date=s.date)
            for s, url in zip(self.payment_slips, slip_urls)
            if url
        ]
        if new_slips:
            patch["payment_slips"] = record.payment_slips + new_slips
        new_receipts = [
            ReceiptData(name=r.file.filename, url=url, payment_date=r.date)
            for r, url in zip(self.receipts, receipt_urls)
            if url
        ]
        if new_receipts:
            patch["receipts"] = record.receipts + new_receipts
        return patch

    async def _upload(
        self,
        file: PendingFile,
        kind: DocumentKind,
        uploaded: list[str],
    ) -> Optional[str]:
        """Envia um anexo isolando a falha numa notificação."""
        _, sent_title, short, article = _KIND_LABELS[kind]
        try:
            url = await self.uploader.upload(file, kind, self.event_id)
        except AppException as e:
            logger.warning(f"Falha ao enviar {kind.value} {file.filename}: {e.detail}")
            self._notify(
                NotificationLevel.ERROR,
                f"Erro ao enviar {short}",
                f"Não foi possível anexar {article}",
            )
            return None

        path = self.uploader.bucket.path_from_url(url) if url else None
        if path:
            uploaded.append(path)
        self._notify(NotificationLevel.SUCCESS, sent_title, "O arquivo foi anexado com sucesso")
        return url

    async def _compensate(self, paths: list[str]) -> None:
        if not paths:
            return
        try:
            await self.uploader.bucket.remove(paths)
            logger.info(f"Compensação: {len(paths)} anexos removidos do bucket")
        except StorageError as e:
            logger.error(f"Compensação incompleta, anexos órfãos {paths}: {e.detail}")

    def _fail(self, description: str) -> None:
        self.state = FormState.FAILED
        self._notify(NotificationLevel.ERROR, "Erro ao salvar", description)

    def _failure_extra(self) -> dict[str, Any]:
        return {
            "eventId": str(self.event_id) if self.event_id else None,
            "notifications": [n.model_dump(mode="json", by_alias=True) for n in self.notifications],
        }
