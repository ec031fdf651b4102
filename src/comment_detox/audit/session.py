"""
Audit session: the boundary the presentation layer talks to.

Exposes start / stop / delete / ignore / snapshot. All host-page access
happens on one dedicated worker thread: the page is created there, audits
run there, and deletions are either queued into the running audit (executed
between candidates) or run there directly when idle. Browser automation
libraries bind a page to the thread that created it, and DOM mutation must
not race with extraction.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional

import structlog

from ..classification.perspective_client import ClassificationClient, create_classification_client
from ..credentials import CredentialStore
from ..errors import AuditAlreadyRunning, MissingCredential, UnknownItem
from ..extraction.host_page import HostPage
from ..models.audit import AuditMode, AuditPhase, AuditSnapshot, FlaggedItem
from .orchestrator import AuditOrchestrator, SnapshotListener


logger = structlog.get_logger(__name__)


class AuditSession:
    """
    Long-lived controller for audits of one host page.

    Args:
        page_factory: Creates the host page; called once, on the worker thread
        credential_store: API key store
        client_factory: Creates the classification client
        orchestrator_options: Extra keyword arguments for AuditOrchestrator
    """

    def __init__(
        self,
        page_factory: Callable[[], HostPage],
        credential_store: CredentialStore,
        client_factory: Callable[[], ClassificationClient] = create_classification_client,
        **orchestrator_options
    ):
        self.page_factory = page_factory
        self.credential_store = credential_store
        self.client_factory = client_factory
        self.orchestrator_options = orchestrator_options

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="comment-audit")
        self._orchestrator: Optional[AuditOrchestrator] = None
        self._page: Optional[HostPage] = None
        self._future: Optional[Future] = None
        self._start_lock = threading.Lock()
        # Set by stop() until the next start(); covers the window before the
        # worker has built the orchestrator
        self._stop_pending = threading.Event()
        self._listeners: List[SnapshotListener] = []
        self._closed = False

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self, mode: AuditMode = AuditMode.SINGLE_PASS) -> AuditSnapshot:
        """
        Start an audit in the background.

        Raises:
            AuditAlreadyRunning: An audit is in progress
            MissingCredential: No API key configured
        """
        with self._start_lock:
            if self._closed:
                raise RuntimeError("Session is closed")
            if self.is_running:
                raise AuditAlreadyRunning()
            if not self.credential_store.get():
                raise MissingCredential()

            self._stop_pending.clear()
            if self._orchestrator is not None:
                self._orchestrator.clear_stop()

            logger.info("audit_start_requested", mode=mode.value)
            self._future = self._executor.submit(self._run, mode)

        return self.snapshot()

    def stop(self) -> AuditSnapshot:
        """Cancel the current audit, including one still waiting for the page."""
        with self._start_lock:
            self._stop_pending.set()
            if self._orchestrator is not None:
                self._orchestrator.request_stop()
        return self.snapshot()

    def delete(self, item_id: str) -> AuditSnapshot:
        """
        Remove a flagged item and click its delete button on the page.

        Raises:
            UnknownItem: No flagged item with that id
        """
        orchestrator = self._require_orchestrator(item_id)
        item = orchestrator.remove_flagged(item_id)

        orchestrator.enqueue_page_action(lambda: self._click_delete(item))
        # Runs right away when idle, or after the current audit otherwise
        self._executor.submit(orchestrator.drain_page_actions)

        return self.snapshot()

    def ignore(self, item_id: str) -> AuditSnapshot:
        """
        Dismiss a flagged item without touching the page.

        Raises:
            UnknownItem: No flagged item with that id
        """
        orchestrator = self._require_orchestrator(item_id)
        orchestrator.remove_flagged(item_id)
        logger.info("item_ignored", item_id=item_id)
        return self.snapshot()

    def subscribe(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)
        if self._orchestrator is not None:
            self._orchestrator.subscribe(listener)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._future is not None and not self._future.done()

    def snapshot(self) -> AuditSnapshot:
        if self._orchestrator is not None:
            snapshot = self._orchestrator.snapshot()
            if self.is_running and not snapshot.running:
                # Submitted but the worker has not picked it up yet
                snapshot = snapshot.model_copy(update={"running": True})
            return snapshot
        return AuditSnapshot(
            phase=AuditPhase.IDLE,
            running=self.is_running,
            scanned_count=0,
            flagged_count=0,
        )

    def flagged_items(self) -> List[FlaggedItem]:
        if self._orchestrator is None:
            return []
        return self._orchestrator.flagged_items()

    def wait(self, timeout: Optional[float] = None) -> AuditSnapshot:
        """Block until the current audit finishes; re-raises its exception."""
        if self._future is not None:
            self._future.result(timeout=timeout)
        return self.snapshot()

    def close(self) -> None:
        """Stop any audit, release the page and the worker thread."""
        if self._closed:
            return
        self._closed = True
        self.stop()
        self._executor.submit(self._close_resources)
        self._executor.shutdown(wait=True)
        logger.info("audit_session_closed")

    # ------------------------------------------------------------------
    # Worker-thread internals
    # ------------------------------------------------------------------

    def _run(self, mode: AuditMode) -> AuditSnapshot:
        orchestrator = self._ensure_orchestrator()
        with self._start_lock:
            if self._stop_pending.is_set():
                orchestrator.request_stop()
        try:
            return orchestrator.run(mode)
        except MissingCredential:
            logger.warning("audit_aborted", reason="credential_removed")
            raise
        except Exception as e:
            logger.error("audit_crashed", error=str(e), exc_info=True)
            raise

    def _ensure_orchestrator(self) -> AuditOrchestrator:
        if self._orchestrator is None:
            self._page = self.page_factory()
            orchestrator = AuditOrchestrator(
                page=self._page,
                credential_store=self.credential_store,
                client=self.client_factory(),
                **self.orchestrator_options
            )
            for listener in self._listeners:
                orchestrator.subscribe(listener)
            self._orchestrator = orchestrator
        return self._orchestrator

    def _require_orchestrator(self, item_id: str) -> AuditOrchestrator:
        if self._orchestrator is None:
            raise UnknownItem(item_id)
        return self._orchestrator

    def _click_delete(self, item: FlaggedItem) -> None:
        item.candidate.deletion_handle.click()
        logger.info("item_deleted", item_id=item.item_id)

    def _close_resources(self) -> None:
        if self._orchestrator is not None:
            self._orchestrator.client.close()
        close_page = getattr(self._page, "close", None)
        if callable(close_page):
            close_page()
