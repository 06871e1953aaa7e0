"""Tests for backend dispatchers (inline and worker-pool)."""

import threading

from claudepilot.backend import (
    BackendResult,
    InlineDispatcher,
    ThreadedDispatcher,
    apply_result,
    echo_responder,
)
from claudepilot.session import PROCESSING_NOTICE, Session, SessionStatus

TIMEOUT = 5


class _Collector:
    """Completion callback that records results and signals arrival."""

    def __init__(self) -> None:
        self.results: list[BackendResult] = []
        self.arrived = threading.Event()

    def __call__(self, result: BackendResult) -> None:
        self.results.append(result)
        self.arrived.set()


def test_echo_responder():
    assert echo_responder("sid", "hi\nthere") == ["Claude response to: hi there"]


def test_inline_dispatcher_appends_synchronously():
    session = Session.create("s")
    dispatcher = InlineDispatcher()
    dispatcher.submit(session, "hello")
    assert session.read_output() == [PROCESSING_NOTICE, "Claude response to: hello"]
    assert dispatcher.cancel(session.id) is False
    dispatcher.shutdown()


class TestApplyResult:
    def test_lines_and_status(self):
        session = Session.create("s")
        apply_result(session, BackendResult(session.id, ["a", "b"], status=SessionStatus.RUNNING))
        assert session.read_output() == ["a", "b"]
        assert session.get_status() == SessionStatus.RUNNING

    def test_failure(self):
        session = Session.create("s")
        apply_result(session, BackendResult(session.id, error="ValueError: bad"))
        assert session.get_status() == SessionStatus.ERROR
        assert session.read_output() == ["Error: ValueError: bad"]

    def test_empty_result_keeps_status(self):
        session = Session.create("s")
        session.set_status(SessionStatus.RUNNING)
        apply_result(session, BackendResult(session.id))
        assert session.get_status() == SessionStatus.RUNNING
        assert session.read_output() == []


class TestThreadedDispatcher:
    def test_result_delivered_via_callback(self):
        collector = _Collector()
        dispatcher = ThreadedDispatcher(on_complete=collector)
        session = Session.create("s")
        try:
            dispatcher.submit(session, "hello")
            # Notice is appended immediately, reply only via the callback
            assert session.read_output()[0] == PROCESSING_NOTICE
            assert collector.arrived.wait(TIMEOUT)
        finally:
            dispatcher.shutdown()

        result = collector.results[0]
        assert result.session_id == session.id
        assert result.lines == ["Claude response to: hello"]
        assert not result.failed
        assert session.read_output() == [PROCESSING_NOTICE]

    def test_responder_failure_reported_as_error(self):
        def failing(session_id: str, text: str) -> list[str]:
            raise ConnectionError("backend down")

        collector = _Collector()
        dispatcher = ThreadedDispatcher(on_complete=collector, responder=failing)
        session = Session.create("s")
        try:
            dispatcher.submit(session, "hello")
            assert collector.arrived.wait(TIMEOUT)
        finally:
            dispatcher.shutdown()

        result = collector.results[0]
        assert result.failed
        assert result.error == "ConnectionError: backend down"

    def test_cancel_drops_in_flight_result(self):
        release = threading.Event()
        started = threading.Event()

        def slow(session_id: str, text: str) -> list[str]:
            started.set()
            release.wait(TIMEOUT)
            return ["late"]

        collector = _Collector()
        dispatcher = ThreadedDispatcher(on_complete=collector, responder=slow, max_workers=1)
        session = Session.create("s")
        try:
            dispatcher.submit(session, "hello")
            assert started.wait(TIMEOUT)
            assert dispatcher.pending_count(session.id) == 1
            assert dispatcher.cancel(session.id) is True
            release.set()
        finally:
            dispatcher.shutdown()

        assert not collector.arrived.wait(0.2)
        assert collector.results == []
        assert dispatcher.pending_count(session.id) == 0

    def test_cancel_without_pending_work(self):
        dispatcher = ThreadedDispatcher(on_complete=_Collector())
        try:
            assert dispatcher.cancel("unknown") is False
        finally:
            dispatcher.shutdown()

    def test_other_sessions_unaffected_by_cancel(self):
        collector = _Collector()
        dispatcher = ThreadedDispatcher(on_complete=collector)
        keep = Session.create("keep")
        try:
            dispatcher.cancel("other")
            dispatcher.submit(keep, "hi")
            assert collector.arrived.wait(TIMEOUT)
        finally:
            dispatcher.shutdown()
        assert collector.results[0].session_id == keep.id

    def test_cancel_drops_every_in_flight_result(self):
        release = threading.Event()
        both_started = threading.Barrier(3)

        def slow(session_id: str, text: str) -> list[str]:
            both_started.wait(TIMEOUT)
            release.wait(TIMEOUT)
            return ["late"]

        collector = _Collector()
        dispatcher = ThreadedDispatcher(on_complete=collector, responder=slow, max_workers=2)
        session = Session.create("s")
        try:
            dispatcher.submit(session, "one")
            dispatcher.submit(session, "two")
            both_started.wait(TIMEOUT)
            assert dispatcher.pending_count(session.id) == 2
            assert dispatcher.cancel(session.id) is True
            release.set()
        finally:
            dispatcher.shutdown()

        assert not collector.arrived.wait(0.2)
        assert collector.results == []

    def test_no_bookkeeping_left_after_completion_and_cancel(self):
        collector = _Collector()
        dispatcher = ThreadedDispatcher(on_complete=collector)
        session = Session.create("s")
        try:
            dispatcher.submit(session, "hello")
            assert collector.arrived.wait(TIMEOUT)
            assert dispatcher.cancel(session.id) is False
            assert dispatcher.cancel("never-submitted") is False
            assert dispatcher.pending_count() == 0
            assert dispatcher._pending == {}
        finally:
            dispatcher.shutdown()
