"""Error taxonomy for the search backend and the document index engine."""


class BackendError(Exception):
    """Raised when the search backend rejects or fails a request.

    Attributes:
        status_code (int | None): HTTP status returned by the backend, None for transport failures.
        detail (str): Diagnostic text returned by the backend.
    """

    def __init__(self, message: str, status_code: int | None = None, detail: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class BackendUnavailable(BackendError):
    """The backend could not be reached or timed out. Callers may retry."""


class IndexCreateFailed(BackendError):
    """The backend refused to create the index."""


class DocumentNotFound(Exception):
    """No record exists for the requested logical document."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document '{document_id}' not found.")
        self.document_id = document_id
