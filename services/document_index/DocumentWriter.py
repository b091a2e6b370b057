"""Writes the records of one logical document to the search backend."""

from datetime import datetime

from shared.clients.search.SearchClientInterface import SearchClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import StoredDocument
from shared.models.errors import BackendError
from services.document_index.ChunkPlanner import DEFAULT_CHUNK_THRESHOLD, build_records


class DocumentWriter:
    """Plans and writes a logical document, one record at a time, parent first then chunks in index order."""

    def __init__(
        self,
        helper_config: HelperConfig,
        search_client: SearchClientInterface,
        chunk_threshold: int = DEFAULT_CHUNK_THRESHOLD,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._search = search_client
        self.chunk_threshold = chunk_threshold

    def plan(
        self,
        logical_id: str,
        text: str,
        file_name: str,
        role: str,
        upload_date: datetime,
        file_path: str = "",
        file_size: int = 0,
        content_type: str = "application/pdf",
    ) -> list[StoredDocument]:
        return build_records(
            logical_id=logical_id,
            text=text,
            file_name=file_name,
            role=role,
            upload_date=upload_date,
            file_path=file_path,
            file_size=file_size,
            content_type=content_type,
            threshold=self.chunk_threshold,
        )

    async def do_write(self, records: list[StoredDocument]) -> None:
        """Write records sequentially. On failure, remove what was already written and re-raise.

        Raises:
            BackendError: If any write fails.
        """
        written: list[str] = []
        try:
            for record in records:
                await self._search.do_put_document(record)
                written.append(record.id)
        except BackendError as exc:
            self.logging.error(
                "Writing record %s failed after %d of %d records: %s",
                record.id, len(written), len(records), exc,
            )
            await self._do_rollback(written)
            raise

    async def do_write_bulk(self, records: list[StoredDocument]) -> list[str]:
        """Write records in one bulk request.

        Returns:
            list[str]: Ids the backend rejected.
        """
        return await self._search.do_put_documents(records)

    async def _do_rollback(self, record_ids: list[str]) -> None:
        for record_id in reversed(record_ids):
            try:
                await self._search.do_delete_document(record_id)
            except BackendError as exc:
                self.logging.warning("Rollback could not delete record %s: %s", record_id, exc)
