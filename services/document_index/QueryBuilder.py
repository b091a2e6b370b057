"""Builds the multi-clause relevance query for free-text document search.

A query matches only if the whole query string fuzzily matches the body
with AND semantics, and, for multi-word queries, every single term
fuzzily matches either the body or the file name.
"""

from shared.clients.search.models.SearchQuery import HighlightConfig, HighlightField, SearchQuery

CONTENT_FIELD = "content"
FILE_NAME_FIELD = "file_name"

DEFAULT_RESULT_CAP = 1000
CONTENT_FRAGMENT_SIZE = 300
CONTENT_FRAGMENTS = 5
FILE_NAME_FRAGMENT_SIZE = 150
FILE_NAME_FRAGMENTS = 1
HIGHLIGHT_PRE_TAG = "<mark>"
HIGHLIGHT_POST_TAG = "</mark>"


def tokenize(query: str) -> list[str]:
    return (query or "").split()


def _fuzzy_match(field: str, text: str, operator: str | None = None) -> dict:
    clause: dict = {"query": text, "fuzziness": "AUTO"}
    if operator:
        clause["operator"] = operator
    return {"match": {field: clause}}


class QueryBuilder:
    """Turns a raw search string into a SearchQuery."""

    def __init__(self, result_cap: int = DEFAULT_RESULT_CAP) -> None:
        self.result_cap = result_cap

    def build_highlight(self) -> HighlightConfig:
        return HighlightConfig(
            pre_tag=HIGHLIGHT_PRE_TAG,
            post_tag=HIGHLIGHT_POST_TAG,
            fields={
                CONTENT_FIELD: HighlightField(fragment_size=CONTENT_FRAGMENT_SIZE, number_of_fragments=CONTENT_FRAGMENTS),
                FILE_NAME_FIELD: HighlightField(fragment_size=FILE_NAME_FRAGMENT_SIZE, number_of_fragments=FILE_NAME_FRAGMENTS),
            },
        )

    def build(
        self,
        query: str,
        visible_roles: list[str] | None = None,
        proximity: int | None = None,
        result_cap: int | None = None,
    ) -> SearchQuery:
        """Build the structured query.

        Args:
            query (str): Raw search string. Must contain at least one term.
            visible_roles (list[str] | None): When given, added as a non-scoring role filter.
            proximity (int | None): Slop of an optional phrase clause that boosts near-adjacent terms.
            result_cap (int | None): Page size override.

        Returns:
            SearchQuery: The query with highlighting configured.

        Raises:
            ValueError: If the query is empty or whitespace only.
        """
        terms = tokenize(query)
        if not terms:
            raise ValueError("Search query is empty; use the listing path instead.")
        full_query = " ".join(terms)

        must: list[dict] = [_fuzzy_match(CONTENT_FIELD, full_query, operator="and")]
        if len(terms) > 1:
            for term in terms:
                must.append({
                    "bool": {
                        "should": [
                            _fuzzy_match(CONTENT_FIELD, term),
                            _fuzzy_match(FILE_NAME_FIELD, term),
                        ],
                        "minimum_should_match": 1,
                    }
                })

        should: list[dict] = []
        if proximity is not None and len(terms) > 1:
            should.append({"match_phrase": {CONTENT_FIELD: {"query": full_query, "slop": proximity}}})

        filters: list[dict] = []
        if visible_roles is not None:
            filters.append({"terms": {"role": list(visible_roles)}})

        return SearchQuery(
            must=must,
            should=should,
            filter=filters,
            highlight=self.build_highlight(),
            size=result_cap or self.result_cap,
        )
