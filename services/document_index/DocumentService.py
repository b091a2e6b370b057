"""Document service: the caller-facing operations of the document index.

ingest → chunk planner → backend writes
search → query builder → backend query → result aggregator
listing, lookup, delete and reindex work on logical documents, never on single chunk records.
"""

import uuid
from datetime import datetime, timezone

from shared.clients.search.SearchClientInterface import SearchClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import AggregatedDocument, AggregatedSearchResult, StoredDocument
from shared.models.errors import BackendError, DocumentNotFound
from services.document_index.DocumentWriter import DocumentWriter
from services.document_index.QueryBuilder import QueryBuilder, tokenize
from services.document_index.ReindexService import ReindexService
from services.document_index.ResultAggregator import aggregate_documents, aggregate_hits
from services.document_index.RoleVisibility import DEFAULT_ROLE


class DocumentService:
    """Orchestrates ingestion, search and lifecycle of logical documents."""

    def __init__(
        self,
        helper_config: HelperConfig,
        search_client: SearchClientInterface,
        chunk_threshold: int | None = None,
        result_cap: int | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._search = search_client
        self.chunk_threshold = chunk_threshold or helper_config.get_chunk_threshold()
        result_cap = result_cap or helper_config.get_result_cap()

        self._query_builder = QueryBuilder(result_cap=result_cap)
        self._writer = DocumentWriter(helper_config, search_client, chunk_threshold=self.chunk_threshold)
        self.reindex_service = ReindexService(helper_config, search_client, self._writer)

    ##########################################
    ################ INGEST ##################
    ##########################################

    async def ingest(
        self,
        text: str,
        file_name: str,
        role: str | None = None,
        file_path: str = "",
        file_size: int = 0,
        content_type: str = "application/pdf",
    ) -> str:
        """Index extracted text as a new logical document.

        Empty text is a valid, zero-length document.

        Returns:
            str: The logical document id.

        Raises:
            BackendError: If writing fails. Records already written are removed best-effort.
        """
        logical_id = str(uuid.uuid4())
        records = self._writer.plan(
            logical_id=logical_id,
            text=text or "",
            file_name=file_name,
            role=role or DEFAULT_ROLE,
            upload_date=datetime.now(timezone.utc),
            file_path=file_path,
            file_size=file_size,
            content_type=content_type,
        )
        await self._writer.do_write(records)
        self.logging.info(
            "Ingested document %s ('%s'): %d chars in %d record(s).",
            logical_id, file_name, len(text or ""), len(records),
        )
        return logical_id

    ##########################################
    ################ QUERIES #################
    ##########################################

    async def search(
        self,
        query: str,
        visible_roles: list[str],
        proximity: int | None = None,
    ) -> list[AggregatedSearchResult] | list[AggregatedDocument]:
        """Full-text search over the documents the caller may see.

        An empty or whitespace-only query returns the plain listing instead.

        Returns:
            list[AggregatedSearchResult] | list[AggregatedDocument]: Ranked results, or the listing.
        """
        if not tokenize(query):
            return await self.list_all(visible_roles)

        search_query = self._query_builder.build(query, visible_roles=visible_roles, proximity=proximity)
        hits = await self._search.do_query(search_query)
        results = aggregate_hits(hits, visible_roles)
        self.logging.info("Search %r: %d hit(s) → %d document(s).", query[:80], len(hits), len(results))
        return results

    async def list_all(self, visible_roles: list[str] | None) -> list[AggregatedDocument]:
        """Return every logical document the caller may see, with reassembled bodies."""
        records = await self._search.do_fetch_all(roles=visible_roles)
        return aggregate_documents(records, visible_roles)

    async def get_by_id(self, document_id: str, visible_roles: list[str] | None = None) -> AggregatedDocument | None:
        """Return one logical document, or None if it does not exist or is not visible."""
        records = await self._do_fetch_logical_records(document_id)
        if not records:
            return None
        documents = aggregate_documents(records, visible_roles)
        return documents[0] if documents else None

    async def _do_fetch_logical_records(self, document_id: str) -> list[StoredDocument]:
        """Records of the logical document with this id. A chunk record id is not a logical id and yields nothing."""
        records = await self._search.do_fetch_logical_records(document_id)
        return [record for record in records if not (record.is_chunk() and record.id == document_id)]

    async def get_required(self, document_id: str, visible_roles: list[str] | None = None) -> AggregatedDocument:
        """Like get_by_id, for callers that treat absence as an error.

        Raises:
            DocumentNotFound: If the document does not exist or is not visible.
        """
        document = await self.get_by_id(document_id, visible_roles)
        if document is None:
            raise DocumentNotFound(document_id)
        return document

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def delete(self, document_id: str) -> bool:
        """Delete a logical document: every chunk, then the parent or unsplit record.

        Returns:
            bool: True if every record was deleted. False if nothing existed or some records remain.
        """
        records = await self._do_fetch_logical_records(document_id)
        if not records:
            self.logging.warning("Delete: document %s not found.", document_id)
            return False

        # chunks first; roots only once every chunk is gone
        chunks = [record for record in records if record.is_chunk()]
        roots = [record for record in records if not record.is_chunk()]
        remaining = await self._do_delete_records(document_id, chunks)
        if not remaining:
            remaining = await self._do_delete_records(document_id, roots)

        if remaining:
            self.logging.error("Delete: document %s partially deleted, remaining records: %s", document_id, remaining)
            return False
        self.logging.info("Deleted document %s (%d record(s)).", document_id, len(records))
        return True

    async def _do_delete_records(self, document_id: str, records: list[StoredDocument]) -> list[str]:
        remaining: list[str] = []
        for record in records:
            try:
                await self._search.do_delete_document(record.id)
            except BackendError as exc:
                self.logging.error("Delete: record %s of document %s failed: %s", record.id, document_id, exc)
                remaining.append(record.id)
        return remaining

    async def reindex_all(self) -> bool:
        """Rebuild the whole index inline."""
        return await self.reindex_service.run()
