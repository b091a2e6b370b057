from pydantic import BaseModel


class HighlightField(BaseModel):
    fragment_size: int
    number_of_fragments: int


class HighlightConfig(BaseModel):
    """Highlighting request: which fields to highlight and how matched spans are wrapped."""

    pre_tag: str = "<mark>"
    post_tag: str = "</mark>"
    fields: dict[str, HighlightField] = {}


class SearchQuery(BaseModel):
    """Backend-neutral description of a relevance query.

    Attributes:
        must:      Clauses that all have to match.
        should:    Optional clauses that only influence the score.
        filter:    Non-scoring restrictions (e.g. visible roles).
        highlight: Highlighting configuration.
        size:      Maximum number of hits to return.
    """

    must: list[dict] = []
    should: list[dict] = []
    filter: list[dict] = []
    highlight: HighlightConfig | None = None
    size: int = 1000
