"""
Audit orchestrator: the incremental scan / classify / paginate control loop.

State machine:
    idle → scanning → classifying → (paginating | idle) → ... → idle
    scanning | classifying | paginating → stopping → idle  (on cancellation)

One audit runs strictly sequentially: one Perspective call in flight at a
time, and every DOM access (extraction, pagination, queued deletions) on the
orchestrator's own thread. Cancellation is cooperative and checked between
candidates, between iterations and at every wait.
"""

import queue
import threading
from collections import OrderedDict
from typing import Callable, Dict, List, Optional

import structlog

from ..classification.flagging import FlaggingPolicy
from ..classification.perspective_client import ClassificationClient, create_classification_client
from ..config import settings
from ..credentials import CredentialStore
from ..errors import MissingCredential, RateLimited, UnknownItem
from ..extraction.extractor import CandidateExtractor
from ..extraction.host_page import HostPage
from ..logging_config import preview
from ..models.audit import (
    AuditMode,
    AuditPhase,
    AuditSnapshot,
    AuditState,
    Candidate,
    ClassificationScore,
    FlaggedItem,
)
from .ledger import DeduplicationLedger
from .pagination import PaginationController


logger = structlog.get_logger(__name__)

STATUS_END_REACHED = "end reached"
STATUS_CANCELLED = "cancelled"
STATUS_PASS_COMPLETE = "pass complete"
STATUS_NOTHING_VISIBLE = "no un-scanned comments visible"

SnapshotListener = Callable[[AuditSnapshot], None]


class AuditOrchestrator:
    """
    Runs audits against one host page.

    Each run gets a fresh ledger, state and backlog. Flagged items outlive a
    run and stay until the user deletes or ignores them.

    Args:
        page: Host page collaborator
        credential_store: Read once at the start of every run
        client: Classification client (default: Perspective from settings)
        policy: Flagging policy (default: thresholds from settings)
        extractor: Candidate extractor (default: built over ``page``)
        pagination: Pagination controller (default: built over ``page``)
        batch_size: Max candidates classified per iteration
        rate_limit_cooldown: Pause before retrying a rate-limited candidate
    """

    def __init__(
        self,
        page: HostPage,
        credential_store: CredentialStore,
        client: Optional[ClassificationClient] = None,
        policy: Optional[FlaggingPolicy] = None,
        extractor: Optional[CandidateExtractor] = None,
        pagination: Optional[PaginationController] = None,
        batch_size: Optional[int] = None,
        rate_limit_cooldown: Optional[float] = None,
    ):
        self.page = page
        self.credential_store = credential_store
        self.client = client or create_classification_client()
        self.policy = policy or FlaggingPolicy()
        self.extractor = extractor or CandidateExtractor(page)
        self.batch_size = batch_size or settings.batch_size
        self.rate_limit_cooldown = (
            rate_limit_cooldown
            if rate_limit_cooldown is not None
            else settings.rate_limit_cooldown_seconds
        )

        self._cancel = threading.Event()
        self.pagination = pagination or PaginationController(
            page, wait=self._wait, is_cancelled=self._cancel.is_set
        )

        self.state = AuditState()
        self.ledger = DeduplicationLedger()
        self._backlog: List[Candidate] = []
        self._results: Dict[str, FlaggedItem] = OrderedDict()
        self._results_lock = threading.Lock()
        self._page_actions: "queue.SimpleQueue[Callable[[], None]]" = queue.SimpleQueue()
        self._listeners: List[SnapshotListener] = []

        self.logger = logger.bind(orchestrator="AuditOrchestrator")

    # ------------------------------------------------------------------
    # Presentation-facing API
    # ------------------------------------------------------------------

    def subscribe(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    def request_stop(self) -> None:
        """
        Ask the audit to stop at the next checkpoint.

        A request made before run() cancels that run as soon as it starts;
        the flag is cleared when a run finishes or by clear_stop().
        """
        self.logger.info("audit_stop_requested", running=self.state.running)
        self.state.cancel_requested = True
        self._cancel.set()

    def clear_stop(self) -> None:
        """Discard a stop request that no run has consumed yet."""
        self.state.cancel_requested = False
        self._cancel.clear()

    @property
    def is_running(self) -> bool:
        return self.state.running

    def flagged_items(self) -> List[FlaggedItem]:
        with self._results_lock:
            return list(self._results.values())

    def remove_flagged(self, item_id: str) -> FlaggedItem:
        """
        Drop a flagged item from the result set.

        Raises:
            UnknownItem: No flagged item with that id
        """
        with self._results_lock:
            item = self._results.pop(item_id, None)
        if item is None:
            raise UnknownItem(item_id)
        self._emit()
        return item

    def enqueue_page_action(self, action: Callable[[], None]) -> None:
        """Queue a DOM mutation to run on the audit thread at the next checkpoint."""
        self._page_actions.put(action)

    def drain_page_actions(self) -> int:
        """Run queued DOM mutations. Must be called on the audit thread."""
        executed = 0
        while True:
            try:
                action = self._page_actions.get_nowait()
            except queue.Empty:
                return executed
            try:
                action()
                executed += 1
            except Exception as e:
                self.logger.error("page_action_failed", error=str(e), exc_info=True)

    def snapshot(self) -> AuditSnapshot:
        with self._results_lock:
            items = [item.to_view() for item in self._results.values()]
        return AuditSnapshot(
            phase=self.state.phase,
            running=self.state.running,
            status=self.state.status,
            scanned_count=self.state.scanned_count,
            flagged_count=self.state.flagged_count,
            batch_position=self.state.batch_position,
            batch_size=self.state.batch_size,
            flagged_items=items,
        )

    # ------------------------------------------------------------------
    # Control loop
    # ------------------------------------------------------------------

    def run(self, mode: AuditMode = AuditMode.SINGLE_PASS) -> AuditSnapshot:
        """
        Run one audit to completion, exhaustion or cancellation.

        Args:
            mode: SINGLE_PASS stops once the rendered items are exhausted;
                CONTINUOUS keeps paginating until the page stops growing

        Returns:
            Final snapshot (phase idle)

        Raises:
            MissingCredential: No API key in the credential store; the loop
                never starts
        """
        credential = self.credential_store.get()
        if not credential:
            self.logger.warning("audit_not_started", reason="missing_credential")
            raise MissingCredential()

        self._reset()
        self.state.running = True
        self.logger.info("audit_started", mode=mode.value, batch_size=self.batch_size)

        status = STATUS_CANCELLED
        try:
            status = self._loop(mode, credential)
        finally:
            self._finish(status)

        return self.snapshot()

    def _loop(self, mode: AuditMode, credential: str) -> str:
        while True:
            if self._cancel.is_set():
                return self._stopping()

            self._transition(AuditPhase.SCANNING, "Identifying comments on the page")
            batch = self._next_batch()

            self._transition(
                AuditPhase.CLASSIFYING,
                "Analyzing...",
                batch_size=len(batch),
            )
            flagged_before = self.state.flagged_count
            if not self._classify_batch(batch, credential):
                return self._stopping()

            found = self.state.flagged_count - flagged_before
            self.state.status = (
                f"Found {found} potential issues" if found else "Batch clean"
            )
            self.logger.info(
                "batch_completed",
                batch_size=len(batch),
                flagged=found,
                scanned_total=self.state.scanned_count,
            )

            if len(batch) >= self.batch_size:
                # Full batch: more rendered items likely remain
                continue

            if mode is AuditMode.SINGLE_PASS:
                if self.state.scanned_count == 0:
                    return STATUS_NOTHING_VISIBLE
                return STATUS_PASS_COMPLETE

            self._transition(AuditPhase.PAGINATING, "Loading more comments")
            self.drain_page_actions()
            if not self._advance():
                if self._cancel.is_set():
                    return self._stopping()
                return STATUS_END_REACHED

    def _next_batch(self) -> List[Candidate]:
        pending = self._backlog + self.extractor.scan()
        self._backlog = []

        fresh = []
        batch_texts = set()
        duplicates = 0
        for candidate in pending:
            if self.ledger.seen(candidate.text) or candidate.text in batch_texts:
                duplicates += 1
                continue
            batch_texts.add(candidate.text)
            fresh.append(candidate)

        batch = fresh[:self.batch_size]
        self._backlog = fresh[self.batch_size:]

        self.logger.debug(
            "batch_prepared",
            pending=len(pending),
            duplicates=duplicates,
            batch=len(batch),
            backlog=len(self._backlog),
        )
        return batch

    def _classify_batch(self, batch: List[Candidate], credential: str) -> bool:
        """Classify a batch in order. False when cancelled part-way."""
        for position, candidate in enumerate(batch, start=1):
            self.drain_page_actions()
            if self._cancel.is_set():
                self._backlog = batch[position - 1:] + self._backlog
                return False

            score = self._classify_with_retry(candidate, credential)
            if score is None:
                self._backlog = batch[position - 1:] + self._backlog
                return False

            self._record(candidate, score, position)
        return True

    def _classify_with_retry(
        self, candidate: Candidate, credential: str
    ) -> Optional[ClassificationScore]:
        """
        Classify one candidate, retrying the same text while rate limited.

        Returns:
            The score, or None when cancelled during a cooldown
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return self.client.classify(candidate.text, credential)
            except RateLimited as e:
                cooldown = max(self.rate_limit_cooldown, e.retry_after or 0.0)
                self.logger.warning(
                    "rate_limited_cooling_down",
                    attempt=attempt,
                    cooldown_seconds=cooldown,
                    identity=candidate.identity,
                )
                self.state.status = f"Rate limited, retrying in {cooldown:g}s"
                self._emit()
                if self._wait(cooldown):
                    return None

    def _record(self, candidate: Candidate, score: ClassificationScore, position: int) -> None:
        self.ledger.record(candidate.text)
        decision = self.policy.evaluate(score)

        with self._results_lock:
            self.state.scanned_count += 1
            self.state.batch_position = position
            if decision.flagged:
                self._results[candidate.identity] = FlaggedItem(
                    candidate=candidate,
                    score=score,
                    labels=decision.labels,
                )
                self.state.flagged_count += 1

        if decision.flagged:
            self.logger.info(
                "comment_flagged",
                identity=candidate.identity,
                labels=sorted(label.value for label in decision.labels),
                text=preview(candidate.text),
            )
        else:
            self.logger.debug(
                "comment_clean",
                identity=candidate.identity,
                max_signal=round(score.max_signal(), 2),
            )
        self._emit()

    def _advance(self) -> bool:
        try:
            return self.pagination.try_advance()
        except Exception as e:
            self.logger.error("pagination_failed", error=str(e), exc_info=True)
            return False

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    def _wait(self, seconds: float) -> bool:
        """Cancellable sleep. True when cancellation was requested."""
        return self._cancel.wait(seconds)

    def _reset(self) -> None:
        self.state = AuditState(cancel_requested=self._cancel.is_set())
        self.ledger = DeduplicationLedger()
        self._backlog = []

    def _transition(self, phase: AuditPhase, status: str, batch_size: Optional[int] = None) -> None:
        self.state.phase = phase
        self.state.status = status
        if batch_size is not None:
            self.state.batch_size = batch_size
            self.state.batch_position = 0
        self.logger.debug("phase_transition", phase=phase.value)
        self._emit()

    def _stopping(self) -> str:
        self._transition(AuditPhase.STOPPING, "Stopping")
        return STATUS_CANCELLED

    def _finish(self, status: str) -> None:
        self.drain_page_actions()
        if self._backlog:
            released = self.extractor.release(self._backlog)
            self.logger.info("backlog_released", count=released)
            self._backlog = []

        self.state.running = False
        self.state.cancel_requested = False
        self.state.phase = AuditPhase.IDLE
        self.state.status = status
        self._cancel.clear()

        self.logger.info(
            "audit_finished",
            status=status,
            scanned=self.state.scanned_count,
            flagged=self.state.flagged_count,
        )
        self._emit()

    def _emit(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                self.logger.warning("snapshot_listener_failed", error=str(e))
