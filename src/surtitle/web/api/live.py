"""
Live API: WebSocket 实时通道

连接：/ws/session/{session_id}?role=control|viewer[&access_code=...]
- 加入后立即收到该角色的当前投影
- 之后每次修改收到 {"event": "control:update" | "viewer:update", "data": {...}}
- 控制端可发送 {"event": "<编辑事件>", "data": {...}}；观众端发送的消息一律忽略
"""
import json
import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from surtitle.live.hub import ROLE_CONTROL, normalize_role
from surtitle.live.service import SessionService
from surtitle.web.auth import access_code_matches

logger = logging.getLogger(__name__)

router = APIRouter()

# 口令不匹配时的关闭码（应用自定义范围 4000-4999）
CLOSE_ACCESS_DENIED = 4401


@router.websocket("/ws/session/{session_id}")
async def live_session(
    websocket: WebSocket,
    session_id: str,
    role: str = ROLE_CONTROL,
    access_code: Optional[str] = None,
):
    service: SessionService = websocket.app.state.service
    role = normalize_role(role)

    if role == ROLE_CONTROL and not access_code_matches(websocket.app.state.config.access_code, access_code):
        await websocket.close(code=CLOSE_ACCESS_DENIED)
        return

    await websocket.accept()
    await service.join(session_id, role, websocket)
    logger.info("Live peer joined %s:%s", role, session_id)

    try:
        while True:
            raw = await websocket.receive_text()
            if not service.can_edit(role):
                continue
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                logger.debug("Ignoring non-JSON live message on %s", session_id)
                continue
            if not isinstance(message, dict):
                continue
            await service.handle_event(session_id, message.get("event"), message.get("data"))
    except WebSocketDisconnect:
        logger.info("Live peer left %s:%s", role, session_id)
    finally:
        service.leave(session_id, role, websocket)
