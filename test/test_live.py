"""测试 Session Store / 投影 / Broadcast Hub / SessionService"""
import asyncio

import pytest

from surtitle.errors import SessionNotFound
from surtitle.live.hub import ROLE_CONTROL, ROLE_VIEWER, BroadcastHub
from surtitle.live.projection import control_projection, viewer_projection
from surtitle.live.service import SessionService
from surtitle.live.store import SessionStore
from surtitle.schema.script_model import LineType, SubtitleLine
from surtitle.schema.session_model import SessionDocument

LINES = [
    SubtitleLine("王子：我回來了。", LineType.DIALOGUE),
    SubtitleLine("（燈光漸暗）", LineType.DIRECTION),
    SubtitleLine("公主：你終於回來了。", LineType.DIALOGUE),
]


class FakePeer:
    def __init__(self):
        self.sent = []

    async def send_json(self, data):
        self.sent.append(data)

    def events(self, name):
        return [m["data"] for m in self.sent if m["event"] == name]


class BrokenPeer:
    async def send_json(self, data):
        raise RuntimeError("socket closed")


def _make_doc() -> SessionDocument:
    doc = SessionDocument(id="default")
    doc.commit_lines(LINES)
    return doc


def test_viewer_projection_hides_direction_text():
    doc = _make_doc()
    assert viewer_projection(doc)["line"] == {"type": "dialogue", "text": "王子：我回來了。"}

    doc.set_current_index(1)
    view = viewer_projection(doc)
    assert view["line"] == {"type": "direction", "text": ""}
    assert "燈光" not in str(view)


def test_viewer_projection_is_empty_when_hidden_or_blank():
    doc = _make_doc()
    doc.set_display(False)
    assert viewer_projection(doc)["line"] is None
    assert viewer_projection(SessionDocument(id="empty"))["line"] is None


def test_control_projection_exposes_everything():
    view = control_projection(_make_doc())
    assert len(view["lines"]) == 3
    assert view["lines"][1]["text"] == "（燈光漸暗）"


def test_store_creates_on_first_reference():
    store = SessionStore()
    with pytest.raises(SessionNotFound):
        store.get("default")
    doc = store.ensure("default")
    assert store.ensure("default") is doc
    assert store.get("default") is doc
    assert "default" in store and len(store) == 1


def test_hub_sends_each_room_its_projection():
    async def scenario():
        hub = BroadcastHub()
        control, viewer = FakePeer(), FakePeer()
        hub.join("default", ROLE_CONTROL, control)
        hub.join("default", ROLE_VIEWER, viewer)
        doc = _make_doc()
        await hub.publish(doc)
        return control, viewer

    control, viewer = asyncio.run(scenario())
    assert control.events("control:update")[0]["lines"][1]["text"] == "（燈光漸暗）"
    assert control.events("viewer:update") == []
    assert viewer.events("viewer:update")[0]["line"]["text"] == "王子：我回來了。"
    assert viewer.events("control:update") == []


def test_hub_drops_peers_that_fail():
    async def scenario():
        hub = BroadcastHub()
        hub.join("default", ROLE_VIEWER, BrokenPeer())
        healthy = FakePeer()
        hub.join("default", ROLE_VIEWER, healthy)
        await hub.publish(_make_doc())
        return hub, healthy

    hub, healthy = asyncio.run(scenario())
    assert hub.room_size("default", ROLE_VIEWER) == 1
    assert len(healthy.sent) == 1


def test_sessions_are_isolated():
    async def scenario():
        service = SessionService()
        other = FakePeer()
        await service.commit("a", LINES)
        await service.commit("b", LINES)
        await service.join("b", ROLE_CONTROL, other)
        await service.handle_event("a", "shiftIndex", {"delta": 1})
        return service, other

    service, other = asyncio.run(scenario())
    assert service.snapshot("a")["currentIndex"] == 1
    assert service.snapshot("b")["currentIndex"] == 0
    assert len(other.sent) == 1


def test_join_sends_current_state_only_to_joiner():
    async def scenario():
        service = SessionService()
        await service.commit("default", LINES)
        first, second = FakePeer(), FakePeer()
        await service.join("default", ROLE_CONTROL, first)
        await service.join("default", "viewer", second)
        return first, second

    first, second = asyncio.run(scenario())
    assert [m["event"] for m in first.sent] == ["control:update"]
    assert [m["event"] for m in second.sent] == ["viewer:update"]


def test_ignored_edits_do_not_broadcast():
    async def scenario():
        service = SessionService()
        await service.commit("default", LINES)
        peer = FakePeer()
        await service.join("default", ROLE_CONTROL, peer)
        results = [
            await service.handle_event("default", "setCurrentIndex", {"index": 9}),
            await service.handle_event("default", "danceParty", {}),
            await service.handle_event("missing", "shiftIndex", {"delta": 1}),
            await service.handle_event("default", "setCurrentIndex", {"index": 2}),
        ]
        return results, peer

    results, peer = asyncio.run(scenario())
    assert results == [False, False, False, True]
    assert [m["data"]["currentIndex"] for m in peer.sent] == [0, 2]


def test_concurrent_edits_broadcast_in_mutation_order():
    async def scenario():
        service = SessionService()
        await service.commit("default", [SubtitleLine(f"第{i}位演員說話。") for i in range(10)])
        peer = FakePeer()
        await service.join("default", ROLE_CONTROL, peer)
        await asyncio.gather(*[
            service.handle_event("default", "shiftIndex", {"delta": 1}) for _ in range(5)
        ])
        return service, peer

    service, peer = asyncio.run(scenario())
    assert service.snapshot("default")["currentIndex"] == 5
    indexes = [m["currentIndex"] for m in peer.events("control:update")]
    assert indexes == [0, 1, 2, 3, 4, 5]
    revs = [m["rev"] for m in peer.events("control:update")]
    assert revs == sorted(revs)


def test_apply_on_unknown_session_raises():
    async def scenario():
        await SessionService().set_current_index("missing", 0)

    with pytest.raises(SessionNotFound):
        asyncio.run(scenario())
