import logging
import re

import pytest

from shared.clients.search.models.SearchHit import SearchHit
from shared.clients.search.models.SearchQuery import SearchQuery
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import StoredDocument
from shared.models.errors import BackendError, IndexCreateFailed
from services.document_index.DocumentService import DocumentService


def _tokens(text: str) -> list[str]:
    return re.findall(r"[a-z0-9]+", (text or "").lower())


def _edit_distance(a: str, b: str) -> int:
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, 1):
        current = [i]
        for j, char_b in enumerate(b, 1):
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + (char_a != char_b)))
        previous = current
    return previous[-1]


def _fuzzy_equal(term: str, token: str) -> bool:
    # fuzziness AUTO: exact up to 2 chars, one edit up to 5, two edits beyond
    allowed = 0 if len(term) <= 2 else 1 if len(term) <= 5 else 2
    return _edit_distance(term, token) <= allowed


class InMemorySearchClient:
    """Search backend double that stores records in a dict and evaluates the query DSL built by QueryBuilder."""

    def __init__(self) -> None:
        self.records: dict[str, StoredDocument] = {}
        self.index_exists = True
        self.page_size = 1000
        self.reject_ids: set[str] = set()
        self.fail_delete_ids: set[str] = set()
        self.fail_create_index = False
        self.put_order: list[str] = []
        self.queries: list[SearchQuery] = []

    def get_index_name(self) -> str:
        return "pdf_documents"

    async def do_existence_check(self) -> bool:
        return self.index_exists

    async def do_create_index(self) -> None:
        if self.fail_create_index:
            raise IndexCreateFailed("Failed to create index 'pdf_documents'", status_code=400, detail="bad mapping")
        self.index_exists = True

    async def do_ensure_index(self) -> bool:
        if self.index_exists:
            return False
        await self.do_create_index()
        return True

    async def do_delete_index(self) -> bool:
        existed = self.index_exists
        self.index_exists = False
        self.records.clear()
        return existed

    def _check_index(self) -> None:
        if not self.index_exists:
            raise BackendError("index_not_found_exception", status_code=404)

    async def do_put_document(self, document: StoredDocument) -> None:
        self._check_index()
        if document.id in self.reject_ids:
            raise BackendError(f"mapper_parsing_exception for {document.id}", status_code=400)
        self.records[document.id] = document
        self.put_order.append(document.id)

    async def do_put_documents(self, documents: list[StoredDocument]) -> list[str]:
        self._check_index()
        failed = []
        for document in documents:
            if document.id in self.reject_ids or document.parent_id in self.reject_ids:
                failed.append(document.id)
                continue
            self.records[document.id] = document
            self.put_order.append(document.id)
        return failed

    async def do_get_document(self, document_id: str) -> StoredDocument | None:
        return self.records.get(document_id)

    async def do_delete_document(self, document_id: str) -> bool:
        if document_id in self.fail_delete_ids:
            raise BackendError(f"delete of {document_id} timed out", status_code=500)
        return self.records.pop(document_id, None) is not None

    async def do_count(self, filters: list[dict]) -> int:
        return len(self.records)

    async def do_fetch_all(self, roles: list[str] | None = None, filters: list[dict] | None = None) -> list[StoredDocument]:
        self._check_index()
        # reversed insertion order: callers must not rely on backend order
        records = list(reversed(list(self.records.values())))
        if roles is not None:
            records = [record for record in records if record.role in roles]
        return records

    async def do_fetch_logical_records(self, logical_id: str) -> list[StoredDocument]:
        records = await self.do_fetch_all()
        return [record for record in records if record.id == logical_id or record.parent_id == logical_id]

    ################ query evaluation ##################
    def _matches(self, clause: dict, record: StoredDocument) -> bool:
        if "match" in clause:
            field, options = next(iter(clause["match"].items()))
            terms = _tokens(options["query"])
            field_tokens = _tokens(getattr(record, field))
            found = [any(_fuzzy_equal(term, token) for token in field_tokens) for term in terms]
            return all(found) if options.get("operator") == "and" else any(found)
        if "terms" in clause:
            field, values = next(iter(clause["terms"].items()))
            return getattr(record, field) in values
        if "bool" in clause:
            inner = clause["bool"]
            if not all(self._matches(sub, record) for sub in inner.get("must", [])):
                return False
            should = inner.get("should", [])
            if should:
                return sum(self._matches(sub, record) for sub in should) >= inner.get("minimum_should_match", 1)
            return True
        raise AssertionError(f"unsupported clause {clause}")

    def _highlight(self, query: SearchQuery, record: StoredDocument) -> dict[str, list[str]]:
        terms = _tokens(query.must[0]["match"]["content"]["query"])
        highlights: dict[str, list[str]] = {}
        for field, config in (query.highlight.fields if query.highlight else {}).items():
            fragments = []
            for token in _tokens(getattr(record, field)):
                if any(_fuzzy_equal(term, token) for term in terms):
                    fragments.append(f"{query.highlight.pre_tag}{token}{query.highlight.post_tag}")
            if fragments:
                highlights[field] = fragments[:config.number_of_fragments]
        return highlights

    async def do_query(self, query: SearchQuery) -> list[SearchHit]:
        self._check_index()
        self.queries.append(query)
        hits = []
        for record in self.records.values():
            if not all(self._matches(clause, record) for clause in query.must):
                continue
            if not all(self._matches(clause, record) for clause in query.filter):
                continue
            highlights = self._highlight(query, record)
            score = float(sum(len(fragments) for fragments in highlights.values()))
            hits.append(SearchHit(document=record, highlights=highlights, score=score))
        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits[:query.size]


@pytest.fixture
def helper_config():
    return HelperConfig(logger=logging.getLogger("tests"))


@pytest.fixture
def search_client():
    return InMemorySearchClient()


@pytest.fixture
def document_service(helper_config, search_client):
    return DocumentService(helper_config=helper_config, search_client=search_client, chunk_threshold=30000, result_cap=1000)
