"""
Session Document: 一场演出的可变状态（唯一事实源）

字段：
- id: session id
- lines: 有序字幕行（顺序即播放顺序）
- current_index: 当前行指针
- display_enabled: 观众端是否显示
- history: rev / created_at / updated_at

不变式：
- lines 非空时 0 <= current_index <= len(lines) - 1；lines 为空时 current_index == 0
- 每次被接受的修改之后都会：整表以保留空行模式重新规范化 → 指针收敛 → rev+1

编辑操作遇到越界 / 非法参数时静默忽略并返回 False（容忍并发编辑的竞态）。
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from surtitle.pipeline.processors.postprocess import normalize_lines
from surtitle.schema.script_model import LineType, SubtitleLine, clamp_line_type
from surtitle.utils.text import sanitize_line_text


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class SessionHistory:
    """
    编辑历史元信息。

    字段：
    - rev: 修订版本号（每次被接受的修改 +1）
    - created_at: 创建时间（ISO 格式）
    - updated_at: 最后更新时间（ISO 格式）
    """
    rev: int = 0
    created_at: str = field(default_factory=_now_iso)
    updated_at: str = ""


@dataclass
class SessionDocument:
    id: str
    lines: List[SubtitleLine] = field(default_factory=list)
    current_index: int = 0
    display_enabled: bool = True
    history: SessionHistory = field(default_factory=SessionHistory)

    # ── 内部工具 ──────────────────────────────────────────────

    def _valid_index(self, index: Any) -> bool:
        return (
            isinstance(index, int)
            and not isinstance(index, bool)
            and 0 <= index < len(self.lines)
        )

    def clamp_index(self) -> None:
        """把 current_index 收敛到合法范围。"""
        if not self.lines:
            self.current_index = 0
        elif self.current_index >= len(self.lines):
            self.current_index = len(self.lines) - 1
        elif self.current_index < 0:
            self.current_index = 0

    def _touch(self) -> None:
        """每次修改后的统一收尾：重新规范化（保留空行）→ 收敛指针 → rev+1。"""
        self.lines = normalize_lines(self.lines, keep_empty=True)
        self.clamp_index()
        self.history.rev += 1
        self.history.updated_at = _now_iso()

    # ── pipeline 提交 / 批量替换 ───────────────────────────────

    def commit_lines(self, lines: Iterable[SubtitleLine]) -> None:
        """pipeline 整次运行成功后提交：替换全部行，指针归零，恢复显示。"""
        self.lines = list(lines)
        self.current_index = 0
        self.display_enabled = True
        self._touch()

    def replace_lines(self, entries: Iterable[Any]) -> None:
        """用外部编写的行列表整体替换（保留空行，指针尽量保持）。"""
        self.lines = normalize_lines(entries, keep_empty=True)
        self._touch()

    # ── 播放控制 ──────────────────────────────────────────────

    def set_current_index(self, index: Any) -> bool:
        if not self._valid_index(index):
            return False
        self.current_index = index
        self._touch()
        return True

    def shift_index(self, delta: Any) -> bool:
        """按 delta 移动指针（收敛到边界）；指针未变化返回 False。"""
        if isinstance(delta, bool) or not isinstance(delta, int):
            delta = 0
        target = min(max(self.current_index + delta, 0), max(len(self.lines) - 1, 0))
        if target == self.current_index:
            return False
        self.current_index = target
        self._touch()
        return True

    def set_display(self, enabled: Any) -> None:
        self.display_enabled = bool(enabled)
        self._touch()

    # ── 行编辑 ────────────────────────────────────────────────

    def update_line(self, index: Any, text: Any, line_type: Any = None) -> bool:
        """修改一行文本；未指定类型时沿用原类型。"""
        if not self._valid_index(index) or not isinstance(text, str):
            return False
        existing = self.lines[index]
        next_type = clamp_line_type(line_type) or existing.type or LineType.DIALOGUE
        self.lines[index] = SubtitleLine(sanitize_line_text(text), next_type)
        self._touch()
        return True

    def set_line_type(self, index: Any, line_type: Any) -> bool:
        normalized = clamp_line_type(line_type)
        if normalized is None or not self._valid_index(index):
            return False
        existing = self.lines[index]
        self.lines[index] = SubtitleLine(sanitize_line_text(existing.text), normalized)
        self._touch()
        return True

    def split_line(self, index: Any, before_text: Any, after_text: Any) -> bool:
        """把一行拆成两行（两段清洗后都必须非空），两行沿用原类型。"""
        if not self._valid_index(index):
            return False
        if not isinstance(before_text, str) or not isinstance(after_text, str):
            return False
        before = sanitize_line_text(before_text)
        after = sanitize_line_text(after_text)
        if not before or not after:
            return False

        line_type = self.lines[index].type
        self.lines[index:index + 1] = [SubtitleLine(before, line_type), SubtitleLine(after, line_type)]
        if self.current_index > index:
            self.current_index += 1
        self._touch()
        return True

    def insert_line_after(self, index: Any, line_type: Any = None) -> bool:
        """在 index 之后插入一个空行；类型优先用参数，其次沿用相邻行。"""
        if not self._valid_index(index):
            return False
        base_type = clamp_line_type(line_type) or self.lines[index].type or LineType.DIALOGUE
        self.lines.insert(index + 1, SubtitleLine("", base_type))
        if self.current_index > index:
            self.current_index += 1
        self._touch()
        return True

    def delete_line(self, index: Any) -> bool:
        if not self._valid_index(index):
            return False
        del self.lines[index]
        if self.current_index >= len(self.lines):
            self.current_index = max(len(self.lines) - 1, 0)
        elif self.current_index > index:
            self.current_index -= 1
        self._touch()
        return True

    # ── 序列化 ────────────────────────────────────────────────

    @property
    def active_line(self) -> Optional[SubtitleLine]:
        if not self.lines:
            return None
        return self.lines[self.current_index]

    def to_dict(self) -> Dict[str, Any]:
        """完整快照（snapshot read 与控制端推送共用）。"""
        return {
            "sessionId": self.id,
            "lines": [line.to_dict() for line in self.lines],
            "currentIndex": self.current_index,
            "displayEnabled": self.display_enabled,
            "rev": self.history.rev,
        }
