"""Tests for the lookup controller."""

import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from ipscope.controller import LookupController
from ipscope.errors import ErrorKind, TransportError
from ipscope.history import HistoryStore
from ipscope.models import LookupState
from ipscope.service import LookupService
from ipscope.storage import SQLiteStorage

GOOGLE = {
    "ip": "8.8.8.8",
    "version": "IPv4",
    "city": "Mountain View",
    "country_name": "United States",
    "latitude": 37.4,
    "longitude": -122.1,
}


class FakeService:
    """Returns canned payloads (or raises canned errors) per target."""

    def __init__(self, responses, gates=None):
        self.responses = responses
        self.gates = gates or {}
        self.calls = []

    async def fetch(self, target=""):
        self.calls.append(target)
        gate = self.gates.get(target)
        if gate is not None:
            await gate.wait()
        response = self.responses[target]
        if isinstance(response, Exception):
            raise response
        return response


class RecordingSink:
    def __init__(self):
        self.events = []

    def show_loading(self):
        self.events.append(("loading",))

    def present(self, result):
        self.events.append(("present", result))

    def present_error(self, error):
        self.events.append(("error", error))

    def render_history(self, entries):
        self.events.append(("history", entries))

    def names(self):
        return [e[0] for e in self.events]


@pytest.fixture
def history(tmp_path):
    return HistoryStore(SQLiteStorage(tmp_path / "controller.db"))


@pytest.fixture
def sink():
    return RecordingSink()


def _controller(responses, history, sink, gates=None):
    return LookupController(FakeService(responses, gates), history, sink)


class TestSuccess:
    def test_presents_and_records(self, history, sink):
        controller = _controller({"8.8.8.8": GOOGLE}, history, sink)
        result = asyncio.run(controller.lookup("8.8.8.8"))

        assert result.ip == "8.8.8.8"
        assert controller.state is LookupState.PRESENTED
        assert controller.last_result is result
        assert sink.names() == ["loading", "present"]

        entries = history.list()
        assert entries[0].ip == "8.8.8.8"
        assert entries[0].location == "Mountain View, United States"

    def test_own_address(self, history, sink):
        service = FakeService({"": {"ip": "203.0.113.7", "city": "Perth", "country_name": "Australia"}})
        controller = LookupController(service, history, sink)
        asyncio.run(controller.lookup())
        assert service.calls == [""]
        assert history.list()[0].ip == "203.0.113.7"

    def test_history_recorded_after_presentation(self, history, sink):
        order = []
        history_mock = MagicMock(spec=HistoryStore)
        history_mock.record.side_effect = lambda *a: order.append("record")
        sink.present = lambda result: order.append("present")

        controller = LookupController(FakeService({"8.8.8.8": GOOGLE}), history_mock, sink)
        asyncio.run(controller.lookup("8.8.8.8"))
        assert order == ["present", "record"]

    def test_loading_signalled_before_fetch(self, history, sink):
        gate = asyncio.Event()

        async def scenario():
            controller = _controller({"8.8.8.8": GOOGLE}, history, sink, {"8.8.8.8": gate})
            task = asyncio.create_task(controller.lookup("8.8.8.8"))
            await asyncio.sleep(0)
            assert controller.state is LookupState.LOADING
            assert sink.names() == ["loading"]
            gate.set()
            await task

        asyncio.run(scenario())
        assert sink.names() == ["loading", "present"]

    def test_lat_without_lng_has_no_coordinates(self, history, sink):
        payload = dict(GOOGLE)
        del payload["longitude"]
        controller = _controller({"8.8.8.8": payload}, history, sink)
        result = asyncio.run(controller.lookup("8.8.8.8"))
        assert result.coordinates is None
        presented = sink.events[-1][1]
        assert presented.latitude is None and presented.longitude is None


class TestFailure:
    def test_invalid_target(self, history, sink):
        history.record("1.1.1.1", "Sydney, Australia")
        before = history.list()

        controller = _controller(
            {"not-an-ip": {"error": True, "reason": "invalid"}}, history, sink
        )
        result = asyncio.run(controller.lookup("not-an-ip"))

        assert result is None
        assert controller.state is LookupState.FAILED
        assert controller.last_error.kind is ErrorKind.INVALID_TARGET
        assert controller.last_error.reason == "invalid"
        assert sink.names() == ["loading", "error"]
        assert history.list() == before

    def test_transport(self, history, sink):
        controller = _controller({"8.8.8.8": TransportError()}, history, sink)
        asyncio.run(controller.lookup("8.8.8.8"))
        assert controller.last_error.kind is ErrorKind.TRANSPORT
        assert history.list() == []

    def test_malformed(self, history, sink):
        controller = _controller({"8.8.8.8": ["not", "an", "object"]}, history, sink)
        asyncio.run(controller.lookup("8.8.8.8"))
        assert controller.last_error.kind is ErrorKind.MALFORMED_RESPONSE
        assert history.list() == []

    def test_unencodable_target(self, history, sink):
        session = MagicMock(spec=requests.Session)
        controller = LookupController(LookupService(session=session), history, sink)
        result = asyncio.run(controller.lookup("\udcff"))

        assert result is None
        assert controller.state is LookupState.FAILED
        assert controller.last_error.kind is ErrorKind.INVALID_TARGET
        assert sink.names() == ["loading", "error"]
        session.get.assert_not_called()

    def test_recovers_on_next_lookup(self, history, sink):
        controller = _controller(
            {"bad": TransportError(), "8.8.8.8": GOOGLE}, history, sink
        )
        asyncio.run(controller.lookup("bad"))
        asyncio.run(controller.lookup("8.8.8.8"))
        assert controller.state is LookupState.PRESENTED
        assert controller.last_error is None


class TestOverlappingLookups:
    def test_stale_result_is_dropped(self, history, sink):
        slow_gate, fast_gate = asyncio.Event(), asyncio.Event()
        cloudflare = {"ip": "1.1.1.1", "city": "Sydney", "country_name": "Australia"}

        async def scenario():
            controller = _controller(
                {"8.8.8.8": GOOGLE, "1.1.1.1": cloudflare},
                history,
                sink,
                {"8.8.8.8": slow_gate, "1.1.1.1": fast_gate},
            )
            slow = asyncio.create_task(controller.lookup("8.8.8.8"))
            await asyncio.sleep(0)
            fast = asyncio.create_task(controller.lookup("1.1.1.1"))
            await asyncio.sleep(0)

            fast_gate.set()
            assert (await fast).ip == "1.1.1.1"
            slow_gate.set()
            assert await slow is None
            return controller

        controller = asyncio.run(scenario())
        assert controller.generation == 2
        assert controller.last_result.ip == "1.1.1.1"
        presented = [e[1].ip for e in sink.events if e[0] == "present"]
        assert presented == ["1.1.1.1"]
        assert [e.ip for e in history.list()] == ["1.1.1.1"]

    def test_stale_failure_is_dropped(self, history, sink):
        slow_gate = asyncio.Event()

        async def scenario():
            controller = _controller(
                {"bad": TransportError(), "8.8.8.8": GOOGLE},
                history,
                sink,
                {"bad": slow_gate},
            )
            slow = asyncio.create_task(controller.lookup("bad"))
            await asyncio.sleep(0)
            await controller.lookup("8.8.8.8")
            slow_gate.set()
            await slow
            return controller

        controller = asyncio.run(scenario())
        assert controller.state is LookupState.PRESENTED
        assert "error" not in sink.names()


class TestHistoryActions:
    def test_rerun(self, history, sink):
        controller = _controller({"8.8.8.8": GOOGLE}, history, sink)
        history.record("8.8.8.8", "old label")
        history.record("9.9.9.9", "other")

        result = asyncio.run(controller.rerun(1))
        assert result.ip == "8.8.8.8"
        assert [e.ip for e in history.list()] == ["8.8.8.8", "9.9.9.9"]
        assert history.list()[0].location == "Mountain View, United States"

    def test_rerun_out_of_range(self, history, sink):
        controller = _controller({}, history, sink)
        with pytest.raises(IndexError):
            asyncio.run(controller.rerun(0))

    def test_show_history(self, history, sink):
        history.record("8.8.8.8", "x")
        controller = _controller({}, history, sink)
        controller.show_history()
        name, entries = sink.events[-1]
        assert name == "history"
        assert [e.ip for e in entries] == ["8.8.8.8"]

    def test_clear_history(self, history, sink):
        history.record("8.8.8.8", "x")
        controller = _controller({}, history, sink)
        controller.clear_history()
        assert history.list() == []
        assert sink.events[-1] == ("history", [])
