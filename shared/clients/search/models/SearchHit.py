from pydantic import BaseModel

from shared.models.document import StoredDocument


class SearchHit(BaseModel):
    """A single ranked hit as returned by the search backend.

    Attributes:
        document:   The stored record that matched.
        highlights: Highlight fragments keyed by field name (e.g. "content", "file_name").
        score:      Backend relevance score.
    """

    document: StoredDocument
    highlights: dict[str, list[str]] = {}
    score: float = 0.0
