"""
Session Store: session id → SessionDocument（进程内，不持久化）

- 首次引用即创建，无过期淘汰（进程重启即销毁）
- 每个 session 一把 asyncio.Lock：同一 session 的修改串行，不同 session 互不影响
- 由 app 创建并注入，不使用模块级全局状态
"""
import asyncio
from typing import Dict

from surtitle.errors import SessionNotFound
from surtitle.schema.session_model import SessionDocument
from surtitle.utils.logger import info


class SessionStore:

    def __init__(self):
        self._sessions: Dict[str, SessionDocument] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def ensure(self, session_id: str) -> SessionDocument:
        """返回 session；不存在则创建。"""
        doc = self._sessions.get(session_id)
        if doc is None:
            doc = SessionDocument(id=session_id)
            self._sessions[session_id] = doc
            self._locks[session_id] = asyncio.Lock()
            info(f"Session created: {session_id}")
        return doc

    def get(self, session_id: str) -> SessionDocument:
        """
        Raises:
            SessionNotFound: session 不存在
        """
        doc = self._sessions.get(session_id)
        if doc is None:
            raise SessionNotFound(session_id)
        return doc

    def lock(self, session_id: str) -> asyncio.Lock:
        """session 的串行化锁（session 必须已存在）。"""
        if session_id not in self._locks:
            raise SessionNotFound(session_id)
        return self._locks[session_id]

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
