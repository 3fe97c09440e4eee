"""
Session API: 快照读取 + 控制端修改

所有修改都走 SessionService（锁内修改 → 推送），与实时通道共用同一条路径。
"""
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, StrictBool, StrictInt

from surtitle.live.service import SessionService
from surtitle.web.auth import require_access_code

router = APIRouter()


def _service(request: Request) -> SessionService:
    return request.app.state.service


@router.post("/session")
async def open_default_session(request: Request) -> dict:
    """返回默认 session（不存在则创建）及前端页面路径。"""
    session_id = request.app.state.config.default_session_id
    _service(request).store.ensure(session_id)
    return {
        "sessionId": session_id,
        "viewerPath": "/viewer",
        "controlPath": "/control",
    }


@router.get("/session/{session_id}")
async def get_session(session_id: str, request: Request) -> dict:
    """完整快照（控制端）"""
    return _service(request).snapshot(session_id)


@router.get("/session/{session_id}/viewer")
async def get_viewer_snapshot(session_id: str, request: Request) -> dict:
    """观众端投影"""
    return _service(request).viewer_view(session_id)


class LinesBody(BaseModel):
    lines: List[Any]


@router.put("/session/{session_id}/lines", dependencies=[Depends(require_access_code)])
async def put_lines(session_id: str, body: LinesBody, request: Request) -> dict:
    """用编辑后的行列表整体替换（保留空行）"""
    doc = await _service(request).replace_lines(session_id, body.lines)
    return doc.to_dict()


class CurrentBody(BaseModel):
    index: StrictInt


@router.post("/session/{session_id}/current", dependencies=[Depends(require_access_code)])
async def set_current(session_id: str, body: CurrentBody, request: Request) -> dict:
    service = _service(request)
    if not await service.set_current_index(session_id, body.index):
        raise HTTPException(status_code=400, detail="Index out of range")
    return service.snapshot(session_id)


class DisplayBody(BaseModel):
    displayEnabled: StrictBool


@router.post("/session/{session_id}/display", dependencies=[Depends(require_access_code)])
async def set_display(session_id: str, body: DisplayBody, request: Request) -> dict:
    doc = await _service(request).set_display(session_id, body.displayEnabled)
    return doc.to_dict()
