from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.models.errors import BackendError, BackendUnavailable, DocumentNotFound


async def handle_backend_error(request: Request, exc: BackendError) -> JSONResponse:
    """Map search backend failures to 503 (retryable) or 502."""
    request.app.state.logging.error("Search backend error on %s: %s %s", request.url.path, exc, exc.detail)
    if isinstance(exc, BackendUnavailable):
        return JSONResponse(status_code=503, content={"detail": "Search backend unavailable, retry later."})
    return JSONResponse(status_code=502, content={"detail": f"Search backend error: {exc}"})


async def handle_document_not_found(request: Request, exc: DocumentNotFound) -> JSONResponse:
    request.app.state.logging.warning("Document %s not found or not visible", exc.document_id)
    return JSONResponse(status_code=404, content={"detail": "Document not found"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BackendError, handle_backend_error)
    app.add_exception_handler(DocumentNotFound, handle_document_not_found)
