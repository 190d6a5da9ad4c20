"""
Tests for the view recorder

Covers caller classification, dedup gating, malformed identifiers and the
fire-and-forget write with its failure hook.
"""

import logging

import pytest
from starlette.requests import Request

from app.constants.roles import CallerClass, classify_role
from app.models.case import CaseType
from app.services.dedup_cache import DedupCache
from app.services.view_recorder import PageViewStore, ViewRecorder, VisitInfo, parse_target_id
from utils.fixtures import create_test_case, list_page_views


class FakeStore:
    """Collects writes in memory, optionally failing them"""

    def __init__(self, error: Exception | None = None):
        self.calls: list[dict] = []
        self.error = error

    async def add(self, **fields):
        if self.error is not None:
            raise self.error
        self.calls.append(fields)


def make_request(path="/api/cases/5", query=b"", headers=None, client=("10.0.0.1", 4321)) -> Request:
    raw_headers = [(name.lower().encode(), value.encode()) for name, value in (headers or {}).items()]
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "query_string": query,
        "headers": raw_headers,
        "client": client,
        "server": ("archive.test", 80),
        "scheme": "http",
    }
    return Request(scope)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def recorder(store):
    return ViewRecorder(DedupCache(window_seconds=60), store)


def visit(target="1", signature="visitor-a", path=None) -> VisitInfo:
    return VisitInfo(
        path=path or f"/api/cases/{target}",
        visitor_signature=signature,
        user_agent="Mozilla/5.0",
        raw_target_id=target,
    )


class TestParseTargetId:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("42", 42),
            (" 7 ", 7),
            (42, 42),
            ("0", None),
            ("-1", None),
            ("abc", None),
            ("507f1f77bcf86cd799439011", None),
            ("2147483647", 2147483647),
            ("2147483648", None),
            ("99999999999", None),
            (2**31, None),
            ("", None),
            (None, None),
        ],
    )
    def test_parse(self, raw, expected):
        assert parse_target_id(raw) == expected


class TestVisitInfo:
    def test_uses_first_forwarded_address(self):
        request = make_request(headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.2", "User-Agent": "Firefox/128"})

        info = VisitInfo.from_request(request, "5")

        assert info.visitor_signature == "203.0.113.7"
        assert info.user_agent == "Firefox/128"
        assert info.raw_target_id == "5"

    def test_falls_back_to_connection_address(self):
        info = VisitInfo.from_request(make_request(client=("198.51.100.2", 5000)))

        assert info.visitor_signature == "198.51.100.2"
        assert info.user_agent == ""
        assert info.raw_target_id is None

    def test_no_address_at_all(self):
        info = VisitInfo.from_request(make_request(client=None))

        assert info.visitor_signature == ""

    def test_path_keeps_query_string(self):
        info = VisitInfo.from_request(make_request(path="/api/cases/5", query=b"lang=ru"))

        assert info.path == "/api/cases/5?lang=ru"


class TestClassifyRole:
    @pytest.mark.parametrize(
        "role, expected",
        [
            ("user", CallerClass.VISITOR),
            ("moderator", CallerClass.PRIVILEGED),
            ("admin", CallerClass.PRIVILEGED),
            ("editor", CallerClass.UNKNOWN),
            (None, CallerClass.UNKNOWN),
        ],
    )
    def test_classify(self, role, expected):
        assert classify_role(role) == expected


class TestRecordIfNew:
    async def test_visitor_view_is_written(self, recorder, store):
        assert recorder.record_if_new(visit("5"), CallerClass.VISITOR, now=0.0) is True
        await recorder.drain()

        assert store.calls == [
            {
                "path": "/api/cases/5",
                "target_id": 5,
                "visitor_signature": "visitor-a",
                "user_agent": "Mozilla/5.0",
            }
        ]

    async def test_repeat_visits_across_window(self, recorder, store):
        """t=0 recorded, t=30 suppressed, t=61 recorded"""
        for t in (0.0, 30.0, 61.0):
            recorder.record_if_new(visit("1"), CallerClass.VISITOR, now=t)
        await recorder.drain()

        assert len(store.calls) == 2

    @pytest.mark.parametrize("caller", [CallerClass.PRIVILEGED, CallerClass.UNKNOWN])
    async def test_staff_and_unresolved_callers_are_never_counted(self, recorder, store, caller):
        for t in (0.0, 10.0, 20.0):
            assert recorder.record_if_new(visit("2"), caller, now=t) is False
        await recorder.drain()

        assert store.calls == []
        assert len(recorder.cache) == 0

    async def test_staff_visit_does_not_consume_the_window(self, recorder, store):
        recorder.record_if_new(visit("2"), CallerClass.PRIVILEGED, now=0.0)
        recorder.record_if_new(visit("2"), CallerClass.VISITOR, now=1.0)
        await recorder.drain()

        assert len(store.calls) == 1

    async def test_malformed_target_falls_back_to_path(self, recorder, store):
        bad = visit("not-an-id")

        assert recorder.record_if_new(bad, CallerClass.VISITOR, now=0.0) is True
        assert recorder.record_if_new(bad, CallerClass.VISITOR, now=5.0) is False
        await recorder.drain()

        assert len(store.calls) == 1
        assert store.calls[0]["target_id"] is None
        assert store.calls[0]["path"] == "/api/cases/not-an-id"

    async def test_out_of_range_id_falls_back_to_path(self, recorder, store):
        assert recorder.record_if_new(visit("99999999999"), CallerClass.VISITOR, now=0.0) is True
        await recorder.drain()

        assert store.calls[0]["target_id"] is None
        assert store.calls[0]["path"] == "/api/cases/99999999999"

    async def test_path_only_page_two_visitors(self, recorder, store):
        for signature in ("visitor-a", "visitor-b"):
            recorder.record_if_new(
                VisitInfo(path="/about", visitor_signature=signature), CallerClass.VISITOR, now=0.0
            )
        await recorder.drain()

        assert len(store.calls) == 2
        assert {call["visitor_signature"] for call in store.calls} == {"visitor-a", "visitor-b"}

    async def test_write_failure_goes_to_hook_and_is_swallowed(self):
        failures = []
        recorder = ViewRecorder(
            DedupCache(),
            FakeStore(error=RuntimeError("database is down")),
            on_error=lambda exc, info: failures.append((exc, info)),
        )

        assert recorder.record_if_new(visit("3"), CallerClass.VISITOR, now=0.0) is True
        await recorder.drain()

        assert len(failures) == 1
        assert str(failures[0][0]) == "database is down"
        assert failures[0][1].raw_target_id == "3"
        assert recorder.pending == 0

    async def test_default_hook_logs_failure(self, caplog):
        recorder = ViewRecorder(DedupCache(), FakeStore(error=RuntimeError("timeout")))

        with caplog.at_level(logging.ERROR, logger="app.services.view_recorder"):
            recorder.record_if_new(visit("4"), CallerClass.VISITOR, now=0.0)
            await recorder.drain()

        assert "PageView tracking error" in caplog.text
        assert "timeout" in caplog.text

    def test_never_raises_without_event_loop(self, store):
        recorder = ViewRecorder(DedupCache(), store)

        assert recorder.record_if_new(visit("6"), CallerClass.VISITOR, now=0.0) is False


class TestPageViewStore:
    async def test_persists_row_with_case_type(self, session_factory, test_db):
        memory = await create_test_case(test_db, title="Memory", case_type=CaseType.MEMORY, person_name="Ivan Petrov")
        store = PageViewStore(session_factory)

        await store.add(
            path=f"/api/cases/{memory.id}",
            target_id=memory.id,
            visitor_signature="203.0.113.7",
            user_agent="Mozilla/5.0",
        )
        await store.add(path="/api/cases/999", target_id=999, visitor_signature="203.0.113.7", user_agent="")

        rows = await list_page_views(session_factory)
        assert [(row.target_id, row.target_type) for row in rows] == [(memory.id, "memory"), (999, None)]
        assert rows[0].occurred_at is not None
        assert rows[0].visitor_signature == "203.0.113.7"
