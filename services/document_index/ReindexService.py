"""Reindex orchestrator.

Rebuilds the whole index from the currently stored corpus: read and reassemble
every logical document, drop and recreate the index with the current analyzer
and mapping, then rechunk and write every document again.

Uploads running while a rebuild is in progress race with it. The outcome is
last writer wins per document; an upload that lands between the corpus read
and the index drop is lost.
"""

import asyncio
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from shared.clients.search.SearchClientInterface import SearchClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import AggregatedDocument
from shared.models.errors import BackendUnavailable
from services.document_index.DocumentWriter import DocumentWriter
from services.document_index.ResultAggregator import aggregate_documents

RECREATE_ATTEMPTS = 3


class ReindexReport(BaseModel):
    total: int = 0
    indexed: int = 0
    failed_ids: list[str] = []


class ReindexStatus(BaseModel):
    state: Literal["idle", "running", "succeeded", "failed", "timed_out"] = "idle"
    started_at: datetime | None = None
    finished_at: datetime | None = None
    report: ReindexReport | None = None


class ReindexService:
    """Runs full index rebuilds, inline or as a background task."""

    def __init__(
        self,
        helper_config: HelperConfig,
        search_client: SearchClientInterface,
        writer: DocumentWriter,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._search = search_client
        self._writer = writer
        self._task: asyncio.Task | None = None
        self._rebuild_task: asyncio.Future | None = None
        self._status = ReindexStatus()
        self.last_report: ReindexReport | None = None
        self.recreate_wait = wait_exponential(multiplier=1, min=1, max=4)

    ##########################################
    ################ CORE ####################
    ##########################################

    async def reindex(self) -> bool:
        """Rebuild the index from the stored corpus.

        Everything from the index drop to the last rewritten document runs as one
        shielded task. Cancelling or timing out the caller does not stop it.

        Returns:
            bool: False if reading the corpus or dropping/recreating the index failed.
                  Documents that fail to be written again are logged and skipped.
        """
        report = ReindexReport()
        self.last_report = report
        try:
            records = await self._search.do_fetch_all()
        except Exception as exc:
            self.logging.error("Reindex: could not read the stored corpus: %s", exc)
            return False
        corpus = aggregate_documents(records)
        report.total = len(corpus)
        if not corpus:
            self.logging.info("Reindex: corpus is empty, nothing to do.")
            return True

        self.logging.info("Reindex: rebuilding index with %d documents...", len(corpus))
        self._rebuild_task = asyncio.ensure_future(self._do_rebuild(corpus, report))
        return await asyncio.shield(self._rebuild_task)

    async def _do_rebuild(self, corpus: list[AggregatedDocument], report: ReindexReport) -> bool:
        try:
            await self._do_rebuild_index()
        except Exception as exc:
            self.logging.error("Error reindexing documents: %s", exc)
            return False

        for document in corpus:
            if await self._do_reindex_document(document):
                report.indexed += 1
            else:
                report.failed_ids.append(document.id)

        self.logging.info(
            "Reindex complete: %d indexed, %d failed.", report.indexed, len(report.failed_ids)
        )
        return True

    async def _do_rebuild_index(self) -> None:
        await self._search.do_delete_index()
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(RECREATE_ATTEMPTS),
            wait=self.recreate_wait,
            retry=retry_if_exception_type(BackendUnavailable),
            reraise=True,
        ):
            with attempt:
                await self._search.do_create_index()

    async def _do_reindex_document(self, document: AggregatedDocument) -> bool:
        try:
            records = self._writer.plan(
                logical_id=document.id,
                text=document.content,
                file_name=document.file_name,
                role=document.role,
                upload_date=document.upload_date,
                file_path=document.file_path,
                file_size=document.file_size,
                content_type=document.content_type,
            )
            failed = await self._writer.do_write_bulk(records)
        except Exception as exc:
            self.logging.error("Failed to reindex document %s: %s", document.id, exc)
            return False
        if failed:
            self.logging.error("Failed to reindex document %s: records rejected %s", document.id, failed)
            return False
        return True

    ##########################################
    ############### BACKGROUND ###############
    ##########################################

    def is_running(self) -> bool:
        for task in (self._task, self._rebuild_task):
            if task is not None and not task.done():
                return True
        return self._status.state == "running"

    def get_status(self) -> ReindexStatus:
        if self.last_report is not None:
            self._status.report = self.last_report
        return self._status

    async def run(self) -> bool:
        """Rebuild inline and record the outcome in the status."""
        self._status = ReindexStatus(state="running", started_at=datetime.now(timezone.utc))
        success = False
        try:
            success = await self.reindex()
            return success
        finally:
            self._status.state = "succeeded" if success else "failed"
            self._status.finished_at = datetime.now(timezone.utc)
            self._status.report = self.last_report

    def start_background(self, timeout: float) -> bool:
        """Launch a rebuild as a background task.

        Args:
            timeout (float): Seconds after which the status is marked timed_out. Once the
                             index has been dropped the rebuild still runs to the end.

        Returns:
            bool: False if a rebuild is already running.
        """
        if self.is_running():
            self.logging.warning("Reindex already running, not starting another one.")
            return False
        self._status = ReindexStatus(state="running", started_at=datetime.now(timezone.utc))
        self._task = asyncio.create_task(self._do_run_with_timeout(timeout))
        return True

    async def wait(self) -> ReindexStatus:
        """Wait for the background rebuild, if any, including a rewrite outliving its timeout."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
        # read after the outer task finished, it may have started the rewrite
        if self._rebuild_task is not None:
            await asyncio.gather(self._rebuild_task, return_exceptions=True)
        return self.get_status()

    async def _do_run_with_timeout(self, timeout: float) -> None:
        try:
            success = await asyncio.wait_for(self.reindex(), timeout=timeout)
            self._status.state = "succeeded" if success else "failed"
        except asyncio.TimeoutError:
            if self._rebuild_task is not None and not self._rebuild_task.done():
                self.logging.error("Reindex timed out after %ss, index rewrite continues until complete.", timeout)
            else:
                self.logging.error("Reindex timed out after %ss.", timeout)
            self._status.state = "timed_out"
        except asyncio.CancelledError:
            self._status.state = "failed"
            raise
        finally:
            self._status.finished_at = datetime.now(timezone.utc)
            self._status.report = self.last_report
