"""FastAPI application entry point for the PDF search service."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.search.SearchClientManager import SearchClientManager
from shared.extract.PdfTextExtractor import PdfTextExtractor
from services.document_index.DocumentService import DocumentService
from services.document_index.PdfIngestService import PdfIngestService
from server.core.exception_handlers import register_exception_handlers
from server.routers.DocumentRouter import router as document_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)
    helper_config = app.state.helper_config

    search_client = SearchClientManager(helper_config=helper_config).get_client()
    await search_client.boot()
    app.state.search_client = search_client

    result = await search_client.do_healthcheck()
    if not result.is_success:
        raise Exception(
            f"Search client '{search_client.__class__.__name__}' is not reachable "
            f"(status {result.status_code}). Cannot serve queries."
        )
    await search_client.do_ensure_index()

    app.state.document_service = DocumentService(helper_config=helper_config, search_client=search_client)
    app.state.ingest_service = PdfIngestService(
        helper_config=helper_config,
        document_service=app.state.document_service,
        extractor=PdfTextExtractor(logger=logging),
    )
    app.state.reindex_timeout = helper_config.get_reindex_timeout()
    app.state.default_proximity = helper_config.get_default_proximity()
    logging.info("PDF search API ready (index '%s').", search_client.get_index_name(), color="green")

    # while the app is running...
    yield

    # when the app shuts down, wait for a running rebuild so the index is not left half-written
    reindex_service = app.state.document_service.reindex_service
    if reindex_service.is_running():
        logging.warning("Waiting for running reindex to finish before shutdown...")
        await reindex_service.wait()
    await search_client.close()
    logging.info("Search client closed.")


app = FastAPI(
    title="pdf_search",
    description=(
        "Upload PDF documents, extract and index their text in a search backend "
        "and search them with role-based visibility."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(document_router)


@app.get("/healthz", tags=["health"])
async def healthz(request: Request) -> JSONResponse:
    result = await request.app.state.search_client.do_healthcheck()
    status = "ok" if result.is_success else "degraded"
    return JSONResponse(status_code=200 if result.is_success else 503, content={"status": status})


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting pdf_search API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
