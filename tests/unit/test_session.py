"""
Unit tests for AuditSession: background runs, commands and thread affinity.
"""

import threading

import pytest

from comment_detox.audit.orchestrator import STATUS_CANCELLED, STATUS_PASS_COMPLETE
from comment_detox.audit.session import AuditSession
from comment_detox.credentials import InMemoryCredentialStore
from comment_detox.errors import AuditAlreadyRunning, MissingCredential, UnknownItem
from comment_detox.models.audit import AuditMode, AuditPhase

from ..fixtures.classifiers import ScriptedClient, TOXIC_SCORE
from ..fixtures.pages import FakePage, comment_card


class GatedClient(ScriptedClient):
    """Blocks inside the first call until ``gate`` is set."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.entered = threading.Event()
        self.gate = threading.Event()
        self.on_call = self._block

    def _block(self, text):
        self.entered.set()
        self.gate.wait(5)


@pytest.fixture
def gated_session(fake_page, credential_store):
    client = GatedClient()
    session = AuditSession(
        page_factory=lambda: fake_page,
        credential_store=credential_store,
        client_factory=lambda: client,
        rate_limit_cooldown=0,
    )
    yield session, client
    client.gate.set()
    session.close()


@pytest.mark.unit
class TestAuditSession:
    def test_idle_snapshot_before_first_audit(self, audit_session):
        snapshot = audit_session.snapshot()

        assert snapshot.phase == AuditPhase.IDLE
        assert not snapshot.running
        assert snapshot.flagged_items == []

    def test_start_runs_in_background(self, audit_session):
        audit_session.start(AuditMode.SINGLE_PASS)
        snapshot = audit_session.wait(timeout=5)

        assert snapshot.status == STATUS_PASS_COMPLETE
        assert snapshot.scanned_count == 2
        assert [item.text for item in snapshot.flagged_items] == ["you are an idiot"]
        assert not audit_session.is_running

    def test_start_without_credential(self, fake_page, scripted_client):
        session = AuditSession(
            page_factory=lambda: fake_page,
            credential_store=InMemoryCredentialStore(),
            client_factory=lambda: scripted_client,
        )
        try:
            with pytest.raises(MissingCredential):
                session.start()
            assert not session.is_running
        finally:
            session.close()

    def test_second_start_rejected_while_running(self, gated_session):
        session, client = gated_session
        session.start()
        assert client.entered.wait(5)

        with pytest.raises(AuditAlreadyRunning):
            session.start()

        client.gate.set()
        session.wait(timeout=5)

    def test_running_reported_while_in_progress(self, gated_session):
        session, client = gated_session
        snapshot = session.start()

        assert snapshot.running
        assert client.entered.wait(5)
        assert session.snapshot().running

        client.gate.set()
        assert not session.wait(timeout=5).running

    def test_stop_cancels_running_audit(self, gated_session):
        session, client = gated_session
        session.start(AuditMode.CONTINUOUS)
        assert client.entered.wait(5)

        session.stop()
        client.gate.set()
        snapshot = session.wait(timeout=5)

        assert snapshot.status == STATUS_CANCELLED
        assert snapshot.phase == AuditPhase.IDLE
        assert client.texts == ["you are an idiot"]

    def test_page_created_once_on_worker_thread(self, credential_store, scripted_client):
        threads = []
        page = FakePage([comment_card("hello world")])

        def factory():
            threads.append(threading.current_thread().name)
            return page

        session = AuditSession(
            page_factory=factory,
            credential_store=credential_store,
            client_factory=lambda: scripted_client,
        )
        try:
            session.start()
            session.wait(timeout=5)
            page.buttons.append(comment_card("second run"))
            session.start()
            session.wait(timeout=5)
        finally:
            session.close()

        assert len(threads) == 1
        assert threads[0].startswith("comment-audit")
        assert scripted_client.texts == ["hello world", "second run"]

    def test_delete_clicks_button_and_removes_item(self, audit_session, fake_page):
        audit_session.start()
        audit_session.wait(timeout=5)
        item_id = audit_session.flagged_items()[0].item_id

        snapshot = audit_session.delete(item_id)
        audit_session.close()

        assert snapshot.flagged_items == []
        assert fake_page.buttons[0].clicks == 1
        assert fake_page.buttons[1].clicks == 0

    def test_ignore_removes_without_click(self, audit_session, fake_page):
        audit_session.start()
        audit_session.wait(timeout=5)
        item_id = audit_session.flagged_items()[0].item_id

        snapshot = audit_session.ignore(item_id)
        audit_session.close()

        assert snapshot.flagged_items == []
        assert fake_page.buttons[0].clicks == 0

    def test_unknown_item(self, audit_session):
        with pytest.raises(UnknownItem):
            audit_session.delete("item-1-0-0")

        audit_session.start()
        audit_session.wait(timeout=5)

        with pytest.raises(UnknownItem):
            audit_session.ignore("item-9-9-9")

    def test_subscribers_receive_snapshots(self, audit_session):
        snapshots = []
        audit_session.subscribe(snapshots.append)

        audit_session.start()
        audit_session.wait(timeout=5)

        assert snapshots
        assert snapshots[-1].phase == AuditPhase.IDLE

    def test_close_releases_page_and_client(self, audit_session, fake_page, scripted_client):
        audit_session.start()
        audit_session.wait(timeout=5)

        audit_session.close()

        assert fake_page.closed
        assert scripted_client.closed

    def test_start_after_close_rejected(self, audit_session):
        audit_session.close()
        with pytest.raises(RuntimeError):
            audit_session.start()

    def test_stop_while_page_is_opening(self, credential_store, scripted_client, fake_page):
        factory_entered = threading.Event()
        release_factory = threading.Event()

        def slow_factory():
            factory_entered.set()
            release_factory.wait(5)
            return fake_page

        session = AuditSession(
            page_factory=slow_factory,
            credential_store=credential_store,
            client_factory=lambda: scripted_client,
            rate_limit_cooldown=0,
        )
        try:
            session.start(AuditMode.CONTINUOUS)
            assert factory_entered.wait(5)

            session.stop()
            release_factory.set()
            snapshot = session.wait(timeout=5)
        finally:
            release_factory.set()
            session.close()

        assert snapshot.status == STATUS_CANCELLED
        assert snapshot.phase == AuditPhase.IDLE
        assert scripted_client.texts == []
        assert fake_page.scrolls == 0

    def test_idle_stop_does_not_cancel_first_audit(self, audit_session):
        audit_session.stop()

        audit_session.start()
        snapshot = audit_session.wait(timeout=5)

        assert snapshot.status == STATUS_PASS_COMPLETE
        assert snapshot.scanned_count == 2

    def test_idle_stop_does_not_cancel_next_audit(self, audit_session, fake_page):
        audit_session.start()
        audit_session.wait(timeout=5)
        audit_session.stop()

        fake_page.buttons.append(comment_card("another comment"))
        audit_session.start()
        snapshot = audit_session.wait(timeout=5)

        assert snapshot.status == STATUS_PASS_COMPLETE
        assert snapshot.scanned_count == 1
