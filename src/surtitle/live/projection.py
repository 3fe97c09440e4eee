"""
Projection: 从 SessionDocument 派生两种受众视图（纯函数）

- control_projection: 控制端（作者）看到完整文档
- viewer_projection: 观众端只看到当前行；舞台指示只暴露类型标记不暴露正文；
  关闭显示时什么也看不到

所有推送与 REST 读取都经过这里，不在调用点各自拼装。
"""
from typing import Any, Dict

from surtitle.schema.session_model import SessionDocument

CONTROL_EVENT = "control:update"
VIEWER_EVENT = "viewer:update"


def control_projection(doc: SessionDocument) -> Dict[str, Any]:
    return {
        "lines": [line.to_dict() for line in doc.lines],
        "currentIndex": doc.current_index,
        "displayEnabled": doc.display_enabled,
        "rev": doc.history.rev,
    }


def viewer_projection(doc: SessionDocument) -> Dict[str, Any]:
    line = doc.active_line if doc.display_enabled else None
    if line is None:
        return {"line": None, "text": "", "displayEnabled": doc.display_enabled}

    text = "" if line.is_direction else line.text
    return {
        "line": {"type": line.type.value, "text": text},
        "text": text,
        "displayEnabled": doc.display_enabled,
    }
