"""
Service de armazenamento dos anexos
Projeto: Guardiões Financeiro (Eventos Financeiros)

Contém:
- PendingFile: arquivo selecionado e ainda não enviado
- LocalBucket: bucket lógico em disco, servido como arquivos públicos
- AttachmentUploader: valida, nomeia e envia um anexo, devolvendo a URL pública

Caminho do objeto:
    {record_id ou "tmp-<uuid>"}/{tipo}_{record_id}_{epoch_ms}_{aleatório}.{ext}
"""

import logging
import secrets
import string
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.exceptions import BusinessValidationError, StorageError
from app.core.session import now_ms
from app.schemas.financial_event import DocumentKind

# Logger deste módulo
logger = logging.getLogger(__name__)

_RANDOM_ALPHABET = string.ascii_lowercase + string.digits
_RANDOM_LENGTH = 8


@dataclass
class PendingFile:
    """Arquivo escolhido no formulário, ainda em memória."""

    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def extension(self) -> str:
        if "." not in self.filename:
            return ""
        return self.filename.rsplit(".", 1)[-1].strip().lower()

    @property
    def size_kb(self) -> float:
        return len(self.content) / 1024

    def describe(self) -> str:
        """Nome e tamanho, como exibido na notificação de seleção."""
        return f"{self.filename} ({self.size_kb:.2f} KB)"


class LocalBucket:
    """
    Bucket de objetos no sistema de arquivos local.

    Os objetos ficam em {root}/{name}/{path} e são servidos em
    {public_url}/{name}/{path}. A escrita roda numa thread do pool.

    Args:
        root: Diretório raiz (padrão: settings.storage_path)
        name: Nome do bucket (padrão: settings.storage_bucket)
        public_url: Prefixo público (padrão: settings.storage_public_url)
    """

    def __init__(
        self,
        root: Union[str, Path, None] = None,
        name: Optional[str] = None,
        public_url: Optional[str] = None,
    ) -> None:
        self.name = name or settings.storage_bucket
        self.root = Path(root or settings.storage_path).resolve()
        self.public_url = (public_url or settings.storage_public_url).rstrip("/")

    @property
    def directory(self) -> Path:
        return self.root / self.name

    def _resolve(self, path: str) -> Path:
        target = (self.directory / path).resolve()
        if self.directory.resolve() not in target.parents:
            raise StorageError(f"Caminho fora do bucket: {path}")
        return target

    def _write(self, path: str, content: bytes) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    def _unlink(self, path: str) -> None:
        self._resolve(path).unlink(missing_ok=True)

    async def put(self, path: str, content: bytes) -> None:
        """
        Grava um objeto no bucket.

        Raises:
            StorageError: Falha de escrita
        """
        try:
            await run_in_threadpool(self._write, path, content)
        except OSError as e:
            raise StorageError(str(e)) from e

    async def remove(self, paths: Iterable[str]) -> None:
        """Remove objetos; objetos inexistentes são ignorados."""
        for path in paths:
            try:
                await run_in_threadpool(self._unlink, path)
            except OSError as e:
                raise StorageError(str(e)) from e

    def get_public_url(self, path: str) -> str:
        return f"{self.public_url}/{self.name}/{path}"

    def path_from_url(self, url: str) -> Optional[str]:
        """Caminho do objeto a partir da URL pública, ou None se for de outro bucket."""
        prefix = f"{self.public_url}/{self.name}/"
        if url.startswith(prefix):
            return url[len(prefix):]
        return None


class AttachmentUploader:
    """
    Envia um anexo para o bucket e devolve a URL pública.

    A lista de extensões permitidas é verificada aqui, num único ponto.
    Sem nova tentativa em caso de falha.

    Args:
        bucket: Bucket de destino
        allowed_extensions: Extensões aceitas (padrão: settings)
        clock: Função que devolve o epoch atual em ms
    """

    def __init__(
        self,
        bucket: Optional[LocalBucket] = None,
        allowed_extensions: Optional[Iterable[str]] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.bucket = bucket or LocalBucket()
        self.allowed_extensions = frozenset(
            ext.lower() for ext in (allowed_extensions or settings.allowed_upload_extensions)
        )
        self.clock = clock

    def check_extension(self, file: PendingFile) -> str:
        """
        Valida a extensão do arquivo.

        Returns:
            Extensão em minúsculas

        Raises:
            BusinessValidationError: Extensão ausente ou não permitida
        """
        extension = file.extension
        if extension not in self.allowed_extensions:
            allowed = ", ".join(sorted(self.allowed_extensions))
            raise BusinessValidationError(
                f"Tipo de arquivo não permitido: {file.filename}. Use {allowed}",
                extra={"filename": file.filename},
            )
        return extension

    def build_path(
        self,
        kind: DocumentKind,
        record_id: Optional[Union[uuid.UUID, str]],
        extension: str,
    ) -> str:
        """Monta o caminho único do objeto dentro do bucket."""
        folder = str(record_id) if record_id else f"tmp-{uuid.uuid4()}"
        suffix = "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(_RANDOM_LENGTH))
        return f"{folder}/{kind.value}_{record_id}_{self.clock()}_{suffix}.{extension}"

    async def upload(
        self,
        file: Optional[PendingFile],
        kind: DocumentKind,
        record_id: Optional[Union[uuid.UUID, str]] = None,
    ) -> Optional[str]:
        """
        Envia o arquivo.

        Args:
            file: Arquivo a enviar (None não faz nada)
            kind: nfe | boleto | comprovante
            record_id: Id do evento dono do anexo

        Returns:
            URL pública, ou None se não houver arquivo

        Raises:
            BusinessValidationError: Extensão não permitida
            StorageError: Falha do bucket
        """
        if file is None:
            return None

        extension = self.check_extension(file)
        path = self.build_path(kind, record_id, extension)

        try:
            await self.bucket.put(path, file.content)
        except StorageError as e:
            logger.error(f"Erro ao enviar {kind.value} {file.filename}: {e.detail}")
            raise

        url = self.bucket.get_public_url(path)
        logger.info(f"Anexo {kind.value} enviado: {path} ({file.size_kb:.2f} KB)")
        return url


# Instância global do uploader
attachment_uploader = AttachmentUploader()
