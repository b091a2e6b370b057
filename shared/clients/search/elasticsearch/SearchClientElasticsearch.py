import json

from pydantic import ValidationError

from shared.clients.search.SearchClientInterface import SearchClientInterface
from shared.clients.search.models.SearchHit import SearchHit
from shared.clients.search.models.SearchQuery import SearchQuery
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.document import StoredDocument

# Fields analysed with the language analyzer
ANALYZED_FIELDS = ("content", "file_name")


class SearchClientElasticsearch(SearchClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._index_name = self.get_config_val("INDEX", default="pdf_documents", val_type="string")
        self._language = self.get_config_val("LANGUAGE", default="portuguese", val_type="string").lower()
        self._refresh = self.get_config_val("REFRESH", default="wait_for", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Elasticsearch"

    def get_index_name(self) -> str:
        return self._index_name

    def get_analyzer_name(self) -> str:
        return f"{self._language}_analyzer"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="INDEX", val_type="string", default="pdf_documents"),
            EnvConfig(env_key="LANGUAGE", val_type="string", default="portuguese"),
            EnvConfig(env_key="REFRESH", val_type="string", default="wait_for"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"ApiKey {self._api_key}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/_cluster/health"

    def _get_endpoint_index(self) -> str:
        return f"/{self._index_name}"

    def _get_endpoint_document(self, document_id: str) -> str:
        return f"/{self._index_name}/_doc/{document_id}"

    def _get_endpoint_bulk(self) -> str:
        return f"/{self._index_name}/_bulk"

    def _get_endpoint_search(self) -> str:
        return f"/{self._index_name}/_search"

    def _get_endpoint_count(self) -> str:
        return f"/{self._index_name}/_count"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_index_settings_payload(self) -> dict:
        analyzer = self.get_analyzer_name()
        stemmer = f"{self._language}_stemmer"
        return {
            "settings": {
                "analysis": {
                    "filter": {
                        stemmer: {"type": "stemmer", "language": self._language},
                    },
                    "analyzer": {
                        analyzer: {
                            "type": "custom",
                            "tokenizer": "standard",
                            "filter": ["lowercase", stemmer],
                        },
                    },
                },
            },
            "mappings": {
                "properties": {
                    "id": {"type": "keyword"},
                    "parent_id": {"type": "keyword"},
                    "is_parent": {"type": "boolean"},
                    "chunk_index": {"type": "integer"},
                    "total_chunks": {"type": "integer"},
                    "file_name": {"type": "text", "analyzer": analyzer},
                    "display_name": {"type": "keyword"},
                    "file_path": {"type": "keyword", "index": False},
                    "file_size": {"type": "long"},
                    "upload_date": {"type": "date"},
                    "content_type": {"type": "keyword"},
                    "role": {"type": "keyword"},
                    "content": {
                        "type": "text",
                        "analyzer": analyzer,
                        "fields": {"keyword": {"type": "keyword", "index": False}},
                    },
                },
            },
        }

    def get_write_params(self) -> dict:
        return {"refresh": self._refresh} if self._refresh else {}

    def get_bulk_payload(self, documents: list[StoredDocument]) -> str:
        lines: list[str] = []
        for document in documents:
            lines.append(json.dumps({"index": {"_index": self._index_name, "_id": document.id}}))
            lines.append(json.dumps(document.model_dump(mode="json")))
        # the bulk API requires a trailing newline
        return "\n".join(lines) + "\n"

    def get_search_payload(self, query: SearchQuery) -> dict:
        bool_query: dict = {"must": query.must}
        if query.should:
            bool_query["should"] = query.should
        if query.filter:
            bool_query["filter"] = query.filter
        payload: dict = {
            "query": {"bool": bool_query},
            "sort": [{"_score": {"order": "desc"}}],
            "size": query.size,
        }
        if query.highlight is not None:
            payload["highlight"] = {
                "pre_tags": [query.highlight.pre_tag],
                "post_tags": [query.highlight.post_tag],
                "fields": {
                    name: {
                        "fragment_size": field.fragment_size,
                        "number_of_fragments": field.number_of_fragments,
                    }
                    for name, field in query.highlight.fields.items()
                },
            }
        return payload

    def get_fetch_payload(self, filters: list[dict], limit: int, cursor: list | None = None) -> dict:
        payload: dict = {
            "query": {"bool": {"filter": filters}} if filters else {"match_all": {}},
            "size": limit,
            "sort": [{"id": "asc"}],
        }
        if cursor is not None:
            payload["search_after"] = cursor
        return payload

    def get_count_payload(self, filters: list[dict]) -> dict:
        return {"query": {"bool": {"filter": filters}} if filters else {"match_all": {}}}

    def get_logical_filter(self, logical_id: str) -> list[dict]:
        return [{
            "bool": {
                "should": [
                    {"term": {"id": logical_id}},
                    {"term": {"parent_id": logical_id}},
                ],
                "minimum_should_match": 1,
            }
        }]

    def get_role_filter(self, roles: list[str]) -> list[dict]:
        return [{"terms": {"role": roles}}]

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def _to_document(self, raw_hit: dict) -> StoredDocument | None:
        source = dict(raw_hit.get("_source") or {})
        source.setdefault("id", raw_hit.get("_id"))
        try:
            return StoredDocument.model_validate(source)
        except ValidationError as exc:
            self.logging.warning("Skipping malformed record %s: %s", raw_hit.get("_id"), exc)
            return None

    def extract_hits(self, raw_response: dict) -> list[SearchHit]:
        hits: list[SearchHit] = []
        for raw_hit in raw_response.get("hits", {}).get("hits", []):
            document = self._to_document(raw_hit)
            if document is None:
                continue
            hits.append(SearchHit(
                document=document,
                highlights=raw_hit.get("highlight") or {},
                score=raw_hit.get("_score") or 0.0,
            ))
        return hits

    def extract_documents(self, raw_response: dict) -> list[StoredDocument]:
        documents = [self._to_document(raw_hit) for raw_hit in raw_response.get("hits", {}).get("hits", [])]
        return [document for document in documents if document is not None]

    def extract_next_cursor(self, raw_response: dict, limit: int) -> list | None:
        raw_hits = raw_response.get("hits", {}).get("hits", [])
        if len(raw_hits) < limit or not raw_hits:
            return None
        return raw_hits[-1].get("sort")

    def extract_document(self, raw_response: dict) -> StoredDocument | None:
        if not raw_response.get("found", False):
            return None
        return self._to_document(raw_response)

    def extract_bulk_failures(self, raw_response: dict) -> list[str]:
        if not raw_response.get("errors"):
            return []
        failed: list[str] = []
        for item in raw_response.get("items", []):
            result = item.get("index") or {}
            if result.get("error") or result.get("status", 200) >= 300:
                failed.append(str(result.get("_id")))
        return failed

    def extract_count(self, raw_response: dict) -> int:
        return int(raw_response.get("count", 0))
