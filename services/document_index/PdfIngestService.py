"""Upload pipeline: store the PDF, extract its text, index it."""

import asyncio
import os
import uuid

from shared.extract.PdfTextExtractor import PdfTextExtractor
from shared.helper.HelperConfig import HelperConfig
from services.document_index.DocumentService import DocumentService


class PdfIngestService:
    def __init__(
        self,
        helper_config: HelperConfig,
        document_service: DocumentService,
        extractor: PdfTextExtractor,
        upload_directory: str | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._documents = document_service
        self._extractor = extractor
        self.upload_directory = upload_directory or helper_config.get_upload_directory()
        os.makedirs(self.upload_directory, exist_ok=True)

    async def do_ingest_upload(self, data: bytes, file_name: str, role: str | None, content_type: str = "application/pdf") -> str:
        """Store an uploaded PDF and index its text.

        Args:
            data (bytes): The raw PDF bytes.
            file_name (str): Original file name as sent by the client.
            role (str | None): Lowest role allowed to see the document.
            content_type (str): MIME type of the upload.

        Returns:
            str: The logical document id.
        """
        file_name = os.path.basename(file_name or "document.pdf")
        file_path = os.path.join(self.upload_directory, f"{uuid.uuid4()}_{file_name}")
        await asyncio.to_thread(self._write_file, file_path, data)

        try:
            text = await asyncio.to_thread(self._extractor.extract_text, file_path)
            if not text:
                self.logging.warning("No text extracted from '%s', indexing an empty document.", file_name)

            return await self._documents.ingest(
                text=text,
                file_name=file_name,
                role=role,
                file_path=file_path,
                file_size=len(data),
                content_type=content_type,
            )
        except Exception:
            self.logging.error("Indexing '%s' failed, removing the stored file.", file_name)
            await self.do_remove_file(file_path)
            raise

    async def do_read_file(self, file_path: str) -> bytes | None:
        """Read a stored PDF. None if the file is gone."""
        if not file_path or not os.path.isfile(file_path):
            return None
        return await asyncio.to_thread(self._read_file, file_path)

    async def do_remove_file(self, file_path: str) -> bool:
        if not file_path or not os.path.isfile(file_path):
            return False
        await asyncio.to_thread(os.remove, file_path)
        self.logging.info("Removed stored file %s", file_path)
        return True

    @staticmethod
    def _write_file(file_path: str, data: bytes) -> None:
        with open(file_path, "wb") as fh:
            fh.write(data)

    @staticmethod
    def _read_file(file_path: str) -> bytes:
        with open(file_path, "rb") as fh:
            return fh.read()
