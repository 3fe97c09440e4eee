"""
Broadcast Hub: 按 session 分房间推送投影

- 每个 session 两个互不相交的房间：control（作者）/ viewer（观众）
- 只需要 join / leave / 向房间发送结构化事件 三种语义；
  peer 只要求实现 async send_json(dict)（FastAPI WebSocket 即满足）
- Hub 不持有行数据副本，推送时从传入的文档现场派生投影
- 加入房间不回放历史，只接收之后的推送（加入时的快照由调用方单独发送）
"""
from typing import Any, Dict, Protocol, Set, Tuple

from surtitle.live.projection import (
    CONTROL_EVENT,
    VIEWER_EVENT,
    control_projection,
    viewer_projection,
)
from surtitle.schema.session_model import SessionDocument
from surtitle.utils.logger import debug, warning

ROLE_CONTROL = "control"
ROLE_VIEWER = "viewer"
ROLES = (ROLE_CONTROL, ROLE_VIEWER)


class LivePeer(Protocol):
    async def send_json(self, data: Any) -> None:
        ...


RoomKey = Tuple[str, str]


def normalize_role(role: Any) -> str:
    """除 viewer 外一律视为控制端。"""
    return ROLE_VIEWER if role == ROLE_VIEWER else ROLE_CONTROL


class BroadcastHub:

    def __init__(self):
        self._rooms: Dict[RoomKey, Set[LivePeer]] = {}

    def join(self, session_id: str, role: str, peer: LivePeer) -> None:
        key = (session_id, normalize_role(role))
        self._rooms.setdefault(key, set()).add(peer)
        debug(f"Peer joined {key[1]}:{session_id} ({len(self._rooms[key])} in room)")

    def leave(self, session_id: str, role: str, peer: LivePeer) -> None:
        key = (session_id, normalize_role(role))
        room = self._rooms.get(key)
        if room is None:
            return
        room.discard(peer)
        if not room:
            del self._rooms[key]

    def room_size(self, session_id: str, role: str) -> int:
        return len(self._rooms.get((session_id, normalize_role(role)), ()))

    @staticmethod
    def event_for(doc: SessionDocument, role: str) -> Dict[str, Any]:
        if normalize_role(role) == ROLE_VIEWER:
            return {"event": VIEWER_EVENT, "data": viewer_projection(doc)}
        return {"event": CONTROL_EVENT, "data": control_projection(doc)}

    async def send_initial(self, doc: SessionDocument, role: str, peer: LivePeer) -> None:
        """只给刚加入的 peer 发送当前投影。"""
        await peer.send_json(self.event_for(doc, role))

    async def publish(self, doc: SessionDocument) -> None:
        """向两个房间推送各自的投影。"""
        for role in ROLES:
            key = (doc.id, role)
            if not self._rooms.get(key):
                continue
            await self._send_room(key, self.event_for(doc, role))

    async def _send_room(self, key: RoomKey, message: Dict[str, Any]) -> None:
        dead = []
        for peer in list(self._rooms.get(key, ())):
            try:
                await peer.send_json(message)
            except Exception as e:
                warning(f"Dropping peer from {key[1]}:{key[0]} after send failure: {e}")
                dead.append(peer)
        for peer in dead:
            self.leave(key[0], key[1], peer)
