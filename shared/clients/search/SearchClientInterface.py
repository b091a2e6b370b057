from abc import abstractmethod
import json
import math

from shared.clients.ClientInterface import ClientInterface
from shared.clients.search.models.SearchHit import SearchHit
from shared.clients.search.models.SearchQuery import SearchQuery
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import StoredDocument
from shared.models.errors import BackendError, IndexCreateFailed


class SearchClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.page_size = 1000

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "search"
        """
        return "search"

    @abstractmethod
    def get_index_name(self) -> str:
        """
        Returns the fixed logical name of the document index.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_index(self) -> str:
        """
        Returns the endpoint path of the index itself, used for existence checks, creation and deletion.

        Returns:
            str: The endpoint path (e.g. "/pdf_documents")

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def _get_endpoint_document(self, document_id: str) -> str:
        """
        Returns the endpoint path addressing a single record by id.

        Args:
            document_id (str): The record id.

        Returns:
            str: The endpoint path (e.g. "/pdf_documents/_doc/abc")
        """
        pass

    @abstractmethod
    def _get_endpoint_bulk(self) -> str:
        """
        Returns the endpoint path for bulk write requests.
        """
        pass

    @abstractmethod
    def _get_endpoint_search(self) -> str:
        """
        Returns the endpoint path for search requests.
        """
        pass

    @abstractmethod
    def _get_endpoint_count(self) -> str:
        """
        Returns the endpoint path for counting records matching a filter.
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_index_settings_payload(self) -> dict:
        """
        Builds the index creation payload: analyzer settings and field mappings.

        Returns:
            dict: The payload for the create-index request.
        """
        pass

    @abstractmethod
    def get_write_params(self) -> dict:
        """
        Returns the query parameters appended to every write request (e.g. refresh policy).
        """
        pass

    @abstractmethod
    def get_bulk_payload(self, documents: list[StoredDocument]) -> str:
        """
        Builds the backend-specific bulk body for indexing several records at once.

        Args:
            documents (list[StoredDocument]): The records to write.

        Returns:
            str: The serialised bulk body.
        """
        pass

    @abstractmethod
    def get_search_payload(self, query: SearchQuery) -> dict:
        """
        Translates a backend-neutral SearchQuery into the backend's search body.

        Args:
            query (SearchQuery): The query produced by the query builder.

        Returns:
            dict: The search request body.
        """
        pass

    @abstractmethod
    def get_fetch_payload(self, filters: list[dict], limit: int, cursor: list | None = None) -> dict:
        """
        Builds the payload for one page of an unscored listing.

        Args:
            filters (list[dict]): Non-scoring filter clauses. Empty means all records.
            limit (int): Page size.
            cursor (list | None): Cursor returned by the previous page, None for the first page.

        Returns:
            dict: The search request body for the page.
        """
        pass

    @abstractmethod
    def get_count_payload(self, filters: list[dict]) -> dict:
        """
        Builds the payload for counting records matching the filters.
        """
        pass

    @abstractmethod
    def get_logical_filter(self, logical_id: str) -> list[dict]:
        """
        Returns filter clauses matching every record of a logical document
        (the record whose id equals logical_id and every record whose parent_id equals it).
        """
        pass

    @abstractmethod
    def get_role_filter(self, roles: list[str]) -> list[dict]:
        """
        Returns filter clauses restricting results to records whose role is in roles.
        """
        pass

    ################ RESPONSE PARSER ##################
    @abstractmethod
    def extract_hits(self, raw_response: dict) -> list[SearchHit]:
        """
        Extracts ranked hits (record, highlights, score) from a raw search response.
        """
        pass

    @abstractmethod
    def extract_documents(self, raw_response: dict) -> list[StoredDocument]:
        """
        Extracts the stored records from a raw listing response.
        """
        pass

    @abstractmethod
    def extract_next_cursor(self, raw_response: dict, limit: int) -> list | None:
        """
        Extracts the cursor for the next listing page, or None if this was the last page.
        """
        pass

    @abstractmethod
    def extract_document(self, raw_response: dict) -> StoredDocument | None:
        """
        Extracts a single stored record from a raw get-by-id response.
        """
        pass

    @abstractmethod
    def extract_bulk_failures(self, raw_response: dict) -> list[str]:
        """
        Returns the ids of records that the backend rejected in a bulk write.
        """
        pass

    @abstractmethod
    def extract_count(self, raw_response: dict) -> int:
        """
        Extracts the number of matching records from a raw count response.
        """
        pass

    ##########################################
    ############ INDEX LIFECYCLE #############
    ##########################################

    async def do_existence_check(self) -> bool:
        """Check if the document index exists in the search backend.

        Returns:
            bool: True if the index exists, False otherwise.

        Raises:
            BackendError: If the backend answers with anything other than found / not found.
        """
        resp = await self.do_request(method="HEAD", endpoint=self._get_endpoint_index())
        if resp.status_code == 404:
            return False
        if resp.status_code >= 300:
            raise BackendError(
                f"Existence check for index '{self.get_index_name()}' failed with status {resp.status_code}",
                status_code=resp.status_code,
                detail=resp.text,
            )
        return True

    async def do_create_index(self) -> None:
        """Create the document index with its analyzer and mapping configuration.

        Raises:
            IndexCreateFailed: If the backend rejects the creation request.
        """
        resp = await self.do_request(
            method="PUT",
            json=self.get_index_settings_payload(),
            endpoint=self._get_endpoint_index(),
        )
        if resp.status_code >= 300:
            self.logging.error("Failed to create index '%s': %s", self.get_index_name(), resp.text)
            raise IndexCreateFailed(
                f"Failed to create index '{self.get_index_name()}'",
                status_code=resp.status_code,
                detail=resp.text,
            )
        self.logging.info("Index created successfully: %s", self.get_index_name())

    async def do_ensure_index(self) -> bool:
        """Create the document index unless it already exists.

        Returns:
            bool: True if the index was created by this call, False if it already existed.
        """
        if await self.do_existence_check():
            self.logging.info("Index '%s' already exists.", self.get_index_name())
            return False
        await self.do_create_index()
        return True

    async def do_delete_index(self) -> bool:
        """Delete the document index. A missing index is not an error.

        Returns:
            bool: True if an index was deleted, False if none existed.
        """
        resp = await self.do_request(method="DELETE", endpoint=self._get_endpoint_index())
        if resp.status_code == 404:
            return False
        if resp.status_code >= 300:
            raise BackendError(
                f"Failed to delete index '{self.get_index_name()}'",
                status_code=resp.status_code,
                detail=resp.text,
            )
        self.logging.info("Index deleted: %s", self.get_index_name())
        return True

    ##########################################
    ############## DOCUMENTS #################
    ##########################################

    async def do_put_document(self, document: StoredDocument) -> None:
        """Insert or replace a single record.

        Args:
            document (StoredDocument): The record to write. Its id is the backend id.
        """
        await self.do_request(
            method="PUT",
            json=document.model_dump(mode="json"),
            params=self.get_write_params(),
            endpoint=self._get_endpoint_document(document.id),
            raise_on_error=True,
        )

    async def do_put_documents(self, documents: list[StoredDocument]) -> list[str]:
        """Write several records in one bulk request.

        Args:
            documents (list[StoredDocument]): The records to write.

        Returns:
            list[str]: Ids of the records the backend rejected. Empty when all were written.
        """
        if not documents:
            return []
        resp = await self.do_request(
            method="POST",
            content=self.get_bulk_payload(documents),
            params=self.get_write_params(),
            endpoint=self._get_endpoint_bulk(),
            additional_headers={"Content-Type": "application/x-ndjson"},
            raise_on_error=True,
        )
        failed = self.extract_bulk_failures(resp.json())
        if failed:
            self.logging.warning("Bulk write rejected %d of %d records: %s", len(failed), len(documents), failed)
        return failed

    async def do_get_document(self, document_id: str) -> StoredDocument | None:
        """Fetch a single record by id.

        Returns:
            StoredDocument | None: The record, or None if it does not exist.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_document(document_id))
        if resp.status_code == 404:
            return None
        if resp.status_code >= 300:
            raise BackendError(
                f"Failed to get document '{document_id}'",
                status_code=resp.status_code,
                detail=resp.text,
            )
        return self.extract_document(resp.json())

    async def do_delete_document(self, document_id: str) -> bool:
        """Delete a single record by id.

        Returns:
            bool: True if the record was deleted, False if it did not exist.
        """
        resp = await self.do_request(
            method="DELETE",
            params=self.get_write_params(),
            endpoint=self._get_endpoint_document(document_id),
        )
        if resp.status_code == 404:
            return False
        if resp.status_code >= 300:
            raise BackendError(
                f"Failed to delete document '{document_id}'",
                status_code=resp.status_code,
                detail=resp.text,
            )
        return True

    ##########################################
    ################ QUERIES #################
    ##########################################

    async def do_query(self, query: SearchQuery) -> list[SearchHit]:
        """Run a relevance query and return ranked hits.

        Args:
            query (SearchQuery): The structured query with highlighting and page size.

        Returns:
            list[SearchHit]: Hits sorted by score, highest first.
        """
        resp = await self.do_request(
            method="POST",
            content=json.dumps(self.get_search_payload(query)),
            endpoint=self._get_endpoint_search(),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )
        hits = self.extract_hits(resp.json())
        return sorted(hits, key=lambda hit: hit.score, reverse=True)

    async def do_count(self, filters: list[dict]) -> int:
        """Count the records matching the given filters.

        Args:
            filters (list[dict]): Filter clauses. Empty counts every record.

        Returns:
            int: Number of matching records.
        """
        resp = await self.do_request(
            method="POST",
            content=json.dumps(self.get_count_payload(filters)),
            endpoint=self._get_endpoint_count(),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )
        return self.extract_count(resp.json())

    async def do_fetch_page(self, filters: list[dict], limit: int, cursor: list | None = None) -> tuple[list[StoredDocument], list | None]:
        """Fetch one page of an unscored listing.

        Returns:
            tuple[list[StoredDocument], list | None]: The page and the cursor of the next page.
        """
        resp = await self.do_request(
            method="POST",
            content=json.dumps(self.get_fetch_payload(filters, limit, cursor)),
            endpoint=self._get_endpoint_search(),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )
        raw_response = resp.json()
        return self.extract_documents(raw_response), self.extract_next_cursor(raw_response, limit)

    async def do_fetch_all(self, roles: list[str] | None = None, filters: list[dict] | None = None) -> list[StoredDocument]:
        """Fetch ALL records matching the filters, paginating automatically.

        Args:
            roles (list[str] | None): Restrict to these roles. None fetches every role.
            filters (list[dict] | None): Additional filter clauses.

        Returns:
            list[StoredDocument]: All matching records.
        """
        all_filters = list(filters or [])
        if roles is not None:
            all_filters.extend(self.get_role_filter(roles))

        total_records = await self.do_count(all_filters)
        total_pages = math.ceil(total_records / self.page_size) if total_records > 0 else 1
        records: list[StoredDocument] = []
        cursor: list | None = None
        page = 1
        while True:
            page_records, cursor = await self.do_fetch_page(all_filters, self.page_size, cursor)
            records.extend(page_records)
            self.logging.debug(
                "Fetched records page %d of %d from %s, total records so far: %d of %d",
                page, total_pages, self.get_engine_name(), len(records), total_records,
            )
            if not cursor:
                break
            page += 1
        return records

    async def do_fetch_logical_records(self, logical_id: str) -> list[StoredDocument]:
        """Fetch every record of one logical document: the unsplit record or parent placeholder plus all chunks."""
        return await self.do_fetch_all(filters=self.get_logical_filter(logical_id))
