"""
Testes do bucket local e do AttachmentUploader.
"""

import re
import uuid
from unittest.mock import AsyncMock

import pytest

from app.core.exceptions import BusinessValidationError, StorageError
from app.schemas.financial_event import DocumentKind
from app.services.storage_service import PendingFile


class TestPendingFile:

    def test_extension_is_lowercase(self):
        assert PendingFile("NOTA.PDF", b"x").extension == "pdf"

    def test_without_extension(self):
        assert PendingFile("nota", b"x").extension == ""

    def test_describe_shows_size_in_kb(self):
        file = PendingFile("boleto.pdf", b"x" * 2048)
        assert file.describe() == "boleto.pdf (2.00 KB)"


class TestAttachmentUploader:

    async def test_upload_writes_file_and_returns_public_url(self, uploader, bucket, pdf_file):
        record_id = uuid.uuid4()

        url = await uploader.upload(pdf_file, DocumentKind.INVOICE, record_id)

        path = bucket.path_from_url(url)
        assert url.startswith(f"/files/documentos/{record_id}/nfe_{record_id}_")
        assert (bucket.directory / path).read_bytes() == pdf_file.content

    async def test_path_format(self, uploader):
        uploader.clock = lambda: 1700000000000
        record_id = uuid.uuid4()

        path = uploader.build_path(DocumentKind.PAYMENT_SLIP, record_id, "pdf")

        assert re.fullmatch(
            rf"{record_id}/boleto_{record_id}_1700000000000_[a-z0-9]{{8}}\.pdf",
            path,
        )

    async def test_without_record_uses_temporary_folder(self, uploader):
        path = uploader.build_path(DocumentKind.RECEIPT, None, "png")
        assert path.startswith("tmp-")
        assert "/comprovante_None_" in path

    async def test_two_uploads_never_collide(self, uploader, pdf_file):
        uploader.clock = lambda: 1700000000000
        record_id = uuid.uuid4()

        first = await uploader.upload(pdf_file, DocumentKind.INVOICE, record_id)
        second = await uploader.upload(pdf_file, DocumentKind.INVOICE, record_id)

        assert first != second

    async def test_none_file_is_noop(self, uploader):
        assert await uploader.upload(None, DocumentKind.INVOICE, uuid.uuid4()) is None

    async def test_disallowed_extension_is_rejected(self, uploader):
        with pytest.raises(BusinessValidationError, match="Tipo de arquivo não permitido"):
            await uploader.upload(PendingFile("script.exe", b"MZ"), DocumentKind.INVOICE, uuid.uuid4())

    async def test_bucket_failure_raises_storage_error(self, uploader, pdf_file):
        uploader.bucket.put = AsyncMock(side_effect=StorageError("disco cheio"))

        with pytest.raises(StorageError, match="disco cheio"):
            await uploader.upload(pdf_file, DocumentKind.INVOICE, uuid.uuid4())


class TestLocalBucket:

    async def test_remove_deletes_objects(self, bucket):
        await bucket.put("a/b.pdf", b"conteudo")
        await bucket.remove(["a/b.pdf", "a/inexistente.pdf"])

        assert not (bucket.directory / "a" / "b.pdf").exists()

    async def test_path_outside_bucket_is_refused(self, bucket):
        with pytest.raises(StorageError):
            await bucket.put("../fora.pdf", b"x")

    def test_path_from_url_of_other_bucket(self, bucket):
        assert bucket.path_from_url("https://cdn.example.com/x.pdf") is None
