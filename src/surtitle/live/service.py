"""
Session Service: 修改 session 的唯一入口

每次修改都在 session 锁内完成「修改 → 推送」，
保证同一 session 上推送顺序与修改顺序一致，且推送看到的一定是修改后的完整状态。

实时通道的编辑事件（控制端发送）：
    setCurrentIndex {index}
    shiftIndex      {delta}
    setDisplay      {displayEnabled}
    updateLine      {index, text, type?}
    setLineType     {index, type}
    splitLine       {index, beforeText, afterText}
    insertLineAfter {index, type?}
    deleteLine      {index}
非法参数静默忽略（不推送）。
"""
from typing import Any, Callable, Dict, Iterable, Optional

from surtitle.live.hub import ROLE_CONTROL, BroadcastHub, LivePeer, normalize_role
from surtitle.live.projection import viewer_projection
from surtitle.live.store import SessionStore
from surtitle.schema.script_model import SubtitleLine
from surtitle.schema.session_model import SessionDocument
from surtitle.utils.logger import debug

Payload = Dict[str, Any]

EVENT_HANDLERS: Dict[str, Callable[[SessionDocument, Payload], Any]] = {
    "setCurrentIndex": lambda doc, p: doc.set_current_index(p.get("index")),
    "shiftIndex": lambda doc, p: doc.shift_index(p.get("delta", 0)),
    "setDisplay": lambda doc, p: doc.set_display(p.get("displayEnabled")),
    "updateLine": lambda doc, p: doc.update_line(p.get("index"), p.get("text"), p.get("type")),
    "setLineType": lambda doc, p: doc.set_line_type(p.get("index"), p.get("type")),
    "splitLine": lambda doc, p: doc.split_line(p.get("index"), p.get("beforeText"), p.get("afterText")),
    "insertLineAfter": lambda doc, p: doc.insert_line_after(p.get("index"), p.get("type")),
    "deleteLine": lambda doc, p: doc.delete_line(p.get("index")),
}


class SessionService:

    def __init__(self, store: Optional[SessionStore] = None, hub: Optional[BroadcastHub] = None):
        self.store = store or SessionStore()
        self.hub = hub or BroadcastHub()

    # ── 读取 ──────────────────────────────────────────────────

    def snapshot(self, session_id: str) -> Dict[str, Any]:
        return self.store.get(session_id).to_dict()

    def viewer_view(self, session_id: str) -> Dict[str, Any]:
        return viewer_projection(self.store.get(session_id))

    # ── 修改 ──────────────────────────────────────────────────

    async def apply(
        self,
        session_id: str,
        operation: Callable[[SessionDocument], Any],
        *,
        create: bool = False,
    ) -> Any:
        """
        在 session 锁内执行一次修改并推送。

        operation 返回 False 表示修改被忽略，此时不推送。

        Raises:
            SessionNotFound: create=False 且 session 不存在
        """
        doc = self.store.ensure(session_id) if create else self.store.get(session_id)
        async with self.store.lock(session_id):
            result = operation(doc)
            if result is not False:
                await self.hub.publish(doc)
            return result

    async def commit(self, session_id: str, lines: Iterable[SubtitleLine]) -> SessionDocument:
        """pipeline 成功后整体提交（session 不存在则创建）。"""
        lines = list(lines)

        def _commit(doc: SessionDocument) -> SessionDocument:
            doc.commit_lines(lines)
            return doc

        return await self.apply(session_id, _commit, create=True)

    async def replace_lines(self, session_id: str, entries: Iterable[Any]) -> SessionDocument:
        entries = list(entries)

        def _replace(doc: SessionDocument) -> SessionDocument:
            doc.replace_lines(entries)
            return doc

        return await self.apply(session_id, _replace)

    async def set_current_index(self, session_id: str, index: Any) -> bool:
        return await self.apply(session_id, lambda doc: doc.set_current_index(index))

    async def set_display(self, session_id: str, enabled: Any) -> SessionDocument:
        def _display(doc: SessionDocument) -> SessionDocument:
            doc.set_display(enabled)
            return doc

        return await self.apply(session_id, _display)

    async def handle_event(self, session_id: str, event: Any, payload: Any) -> bool:
        """处理实时通道的一条编辑事件；返回是否被接受。"""
        handler = EVENT_HANDLERS.get(event) if isinstance(event, str) else None
        if handler is None:
            debug(f"Ignoring unknown live event: {event!r}")
            return False
        if session_id not in self.store:
            debug(f"Ignoring {event} for unknown session {session_id}")
            return False
        if not isinstance(payload, dict):
            payload = {}

        result = await self.apply(session_id, lambda doc: handler(doc, payload))
        return result is not False

    # ── 实时通道成员 ──────────────────────────────────────────

    async def join(self, session_id: str, role: Any, peer: LivePeer) -> str:
        """加入房间（session 不存在则创建），并只给该 peer 发送当前投影。"""
        role = normalize_role(role)
        doc = self.store.ensure(session_id)
        async with self.store.lock(session_id):
            self.hub.join(session_id, role, peer)
            await self.hub.send_initial(doc, role, peer)
        return role

    def leave(self, session_id: str, role: Any, peer: LivePeer) -> None:
        self.hub.leave(session_id, normalize_role(role), peer)

    @staticmethod
    def can_edit(role: Any) -> bool:
        return normalize_role(role) == ROLE_CONTROL
