"""
Script Model: 字幕行的基本类型

- LineType: dialogue（对白，观众可见）/ direction（舞台指示，观众端不显示正文）
- SubtitleLine: {text, type}，text 不含换行与控制字符
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class LineType(str, Enum):
    DIALOGUE = "dialogue"
    DIRECTION = "direction"


def clamp_line_type(raw: Any) -> Optional[LineType]:
    """把外部传入的类型值收敛为 LineType；无法识别返回 None。"""
    if isinstance(raw, LineType):
        return raw
    if not isinstance(raw, str):
        return None
    normalized = raw.strip().lower()
    if normalized == LineType.DIALOGUE.value:
        return LineType.DIALOGUE
    if normalized == LineType.DIRECTION.value:
        return LineType.DIRECTION
    return None


@dataclass(frozen=True)
class SubtitleLine:
    """
    一行字幕。

    字段：
    - text: 文本（已清洗，可能为空：人工插入的空行）
    - type: LineType
    """
    text: str
    type: LineType = LineType.DIALOGUE

    @property
    def is_direction(self) -> bool:
        return self.type == LineType.DIRECTION

    def to_dict(self) -> Dict[str, str]:
        return {"text": self.text, "type": self.type.value}


@dataclass(frozen=True)
class ChunkRequest:
    """
    发给文本理解服务的一次分段请求。

    字段：
    - text: chunk 原文
    - index: chunk 序号（从 0 开始）
    - total: chunk 总数
    """
    text: str
    index: int
    total: int

    @property
    def label(self) -> str:
        return f"{self.index + 1}/{self.total}"
