"""
Post-processor: 字幕行规范化（pipeline 输出与人工编辑共用）

职责：
- 把任意形态的条目（字符串 / dict / SubtitleLine）收敛为 SubtitleLine，缺失类型用分类器推断
- 展开对白中内嵌的括号旁白（独立成行并单独分类），合并旁白两侧的对白碎片
- 去除旁白展开后残留的首尾引号/括号碎片
- 丢弃去标点后为空的行（keep_empty=True 时保留，人工编辑的空行需要存活）
- 对白行长度限制（舞台指示不受限）：空白处断开 → 限长前 5 字内的软标点 → 硬切

不负责：
- 服务输出的解析与校验（由 llm_output.py 负责）
"""
import re
from typing import Any, Iterable, List, Optional

from surtitle.pipeline.processors.classify import classify_line
from surtitle.schema.script_model import LineType, SubtitleLine, clamp_line_type
from surtitle.utils.text import sanitize_line_text, strip_punct

MAX_LINE_LENGTH = 20
SOFT_BREAK_WINDOW = 5

ASIDE_RE = re.compile(r"（[^）]*）|\([^)]*\)|【[^】]*】|［[^］]*］|〈[^〉]*〉|《[^》]*》")
LEADING_STRAY_RE = re.compile(r"^[」』》〉\])}]+")
TRAILING_STRAY_RE = re.compile(r"[「『《〈\[(]+$")

# 合并对白碎片时，任一侧已有空白/标点则不插入空格
_JOIN_TAIL_RE = re.compile(r"[\s　，,。．.、！!？?:：；;（(【「『《〈]$")
_JOIN_HEAD_RE = re.compile(r"^[\s　，,。．.、！!？?:：；;）)】」』》〉]")

_WHITESPACE = (" ", "　")
_SOFT_PUNCT = "，,、；;…"

# 条目的文本 / 类型字段别名
_TEXT_KEYS = ("text", "line", "caption")
_TYPE_KEYS = ("type", "kind", "category")


def _first_present(entry: dict, keys) -> Any:
    for key in keys:
        value = entry.get(key)
        if value is not None:
            return value
    return None


def normalize_entry(entry: Any, keep_empty: bool = False) -> Optional[SubtitleLine]:
    """
    单个条目 → SubtitleLine。

    支持字符串、dict（text/line/caption + type/kind/category）与 SubtitleLine；
    其它类型返回 None。类型缺失或无法识别时用分类器推断。
    """
    if entry is None:
        return None

    if isinstance(entry, SubtitleLine):
        text, raw_type = sanitize_line_text(entry.text), entry.type
    elif isinstance(entry, str):
        text, raw_type = sanitize_line_text(entry), None
    elif isinstance(entry, dict):
        text = sanitize_line_text(_first_present(entry, _TEXT_KEYS) or "")
        raw_type = _first_present(entry, _TYPE_KEYS)
    else:
        return None

    if not text and not keep_empty:
        return None

    line_type = clamp_line_type(raw_type)
    if line_type is None:
        line_type = classify_line(text) if text else LineType.DIALOGUE
    return SubtitleLine(text=text, type=line_type)


def expand_inline_asides(line: SubtitleLine) -> List[SubtitleLine]:
    """
    把对白中的括号旁白拆成独立行（原位置），旁白单独分类；
    相邻的对白碎片合并为一行。舞台指示原样返回。
    """
    if not line.text:
        return []
    if line.type == LineType.DIRECTION:
        return [line]

    segments: List[SubtitleLine] = []

    def push(raw: str, line_type: LineType) -> None:
        text = sanitize_line_text(raw)
        if not text:
            return
        if (
            line_type == LineType.DIALOGUE
            and segments
            and segments[-1].type == LineType.DIALOGUE
        ):
            previous = segments[-1].text
            joiner = "" if _JOIN_TAIL_RE.search(previous) or _JOIN_HEAD_RE.match(text) else " "
            segments[-1] = SubtitleLine(f"{previous}{joiner}{text}".strip(), LineType.DIALOGUE)
        else:
            segments.append(SubtitleLine(text, line_type))

    last = 0
    for match in ASIDE_RE.finditer(line.text):
        push(line.text[last:match.start()], LineType.DIALOGUE)
        aside = match.group(0)
        push(aside, classify_line(aside))
        last = match.end()
    push(line.text[last:], LineType.DIALOGUE)

    return segments or [line]


def strip_stray_fragments(text: str) -> str:
    """去除开头残留的右括号/右引号与结尾残留的左括号/左引号。"""
    return TRAILING_STRAY_RE.sub("", LEADING_STRAY_RE.sub("", text)).strip()


def normalize_lines(entries: Iterable[Any], keep_empty: bool = False) -> List[SubtitleLine]:
    """
    规范化一组条目（pipeline 输出、人工编辑、批量替换共用）。

    Args:
        entries: 条目列表（字符串 / dict / SubtitleLine）
        keep_empty: 保留空行与纯标点行（人工编辑场景）

    Returns:
        SubtitleLine 列表
    """
    if entries is None or isinstance(entries, (str, bytes, dict)):
        return []

    normalized: List[SubtitleLine] = []
    for entry in entries:
        base = normalize_entry(entry, keep_empty)
        if base is None:
            continue

        if not base.text:
            if keep_empty:
                normalized.append(SubtitleLine("", base.type))
            continue

        for item in expand_inline_asides(base):
            cleaned = strip_stray_fragments(item.text)
            if not strip_punct(cleaned) and not keep_empty:
                continue
            normalized.append(SubtitleLine(cleaned, item.type))

    if keep_empty:
        return normalized
    return [line for line in normalized if line.text]


def find_break_position(text: str, limit: int) -> int:
    """
    在 limit 附近找断点（返回切分位置，前半段为 text[:pos]）。

    优先级：limit 之前最近的空白 → limit 前 SOFT_BREAK_WINDOW 字内的软标点 → 硬切。
    """
    if len(text) <= limit:
        return len(text)

    # 紧跟在 limit 之后的空白也算（前半段去掉尾部空白后仍不超限）
    for i in range(min(limit + 1, len(text) - 1), 0, -1):
        if text[i - 1] in _WHITESPACE:
            return i

    for i in range(limit, max(limit - SOFT_BREAK_WINDOW, 1), -1):
        if text[i - 1] in _SOFT_PUNCT:
            return i

    return limit


def split_dialogue_text(text: str, limit: int = MAX_LINE_LENGTH) -> List[str]:
    """把超长对白切成若干不超过 limit 的片段。"""
    pieces: List[str] = []
    remaining = sanitize_line_text(text)
    while len(remaining) > limit:
        cut = find_break_position(remaining, limit)
        part = sanitize_line_text(remaining[:cut])
        if part:
            pieces.append(part)
        remaining = sanitize_line_text(remaining[cut:])
    if remaining:
        pieces.append(remaining)
    return pieces


def enforce_line_lengths(lines: Iterable[SubtitleLine], limit: int = MAX_LINE_LENGTH) -> List[SubtitleLine]:
    """对白行超过 limit 时拆行；舞台指示不受限；空行丢弃。"""
    if limit <= 0:
        raise ValueError(f"line length limit must be positive, got {limit}")

    result: List[SubtitleLine] = []
    for line in lines:
        if not line or not line.text:
            continue
        if line.type == LineType.DIRECTION or len(line.text) <= limit:
            result.append(line)
            continue
        for piece in split_dialogue_text(line.text, limit):
            result.append(SubtitleLine(piece, LineType.DIALOGUE))
    return result
