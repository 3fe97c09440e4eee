"""
服务输出处理：解析 + 校验（服务输出一律视为不可信文本）

解析分阶段进行，前一阶段失败才进入下一阶段：
  1. strip_code_fence: 去除 ``` / ```json 包裹
  2. direct:           直接 json.loads
  3. bracket_salvage:  截取第一个 [ 到最后一个 ]，补全未闭合的结尾
  4. object_scan:      扫描所有 {...} 片段重建数组
全部失败 → ParseFailure

校验（validate_model_lines）：
- 规范化 + 长度限制后为空          → EmptyOutput
- 全部是 "第三句" 之类的序号占位符 → PlaceholderOutput
- 存在无法在原文中溯源的行         → InvalidOutput
"""
import json
import re
from typing import Any, Callable, List, Optional, Tuple

from surtitle.errors import EmptyOutput, InvalidOutput, ParseFailure, PlaceholderOutput
from surtitle.pipeline.processors.postprocess import (
    MAX_LINE_LENGTH,
    enforce_line_lengths,
    normalize_lines,
)
from surtitle.schema.script_model import SubtitleLine
from surtitle.utils.text import normalize_for_comparison, strip_punct

GROUNDING_MIN_SNIPPET = 3
GROUNDING_MAX_SNIPPET = 8

PLACEHOLDER_RE = re.compile(r"^第?[零〇一二三四五六七八九十百千\d]+[句行條話]$", re.IGNORECASE)
_PLACEHOLDER_STRIP_RE = re.compile(r"[\s。．，,、.!！?？:：;；\-（）()【】\[\]「」『』<>《》〈〉]")

_FENCE_HEAD_RE = re.compile(r"^```(?:json)?", re.IGNORECASE)
_FENCE_TAIL_RE = re.compile(r"```$")
_TRAILING_COMMA_RE = re.compile(r",\s*\]$")
_OBJECT_RE = re.compile(r"\{[^{}]*\}")

DETAILS_LIMIT = 2000


# --------------------------------------------------------------------------- #
# 解析
# --------------------------------------------------------------------------- #

def strip_code_fence(raw: str) -> str:
    text = raw.strip()
    text = _FENCE_HEAD_RE.sub("", text)
    text = _FENCE_TAIL_RE.sub("", text.strip())
    return text.strip()


def _loads_list(candidate: str) -> Optional[list]:
    try:
        result = json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        return None
    return result if isinstance(result, list) else None


def _parse_direct(text: str) -> Optional[list]:
    return _loads_list(text)


def salvage_array_text(text: str) -> Optional[str]:
    """截取数组片段，补全缺失的结尾 ]，去掉末尾多余逗号。"""
    start = text.find("[")
    if start == -1:
        return None
    candidate = text[start:]
    end = candidate.rfind("]")
    if end != -1:
        candidate = candidate[: end + 1]
    candidate = candidate.strip()
    if not candidate.endswith("]"):
        last_brace = candidate.rfind("}")
        if last_brace != -1:
            candidate = f"{candidate[: last_brace + 1]}]"
    return _TRAILING_COMMA_RE.sub("]", candidate)


def _parse_bracket_salvage(text: str) -> Optional[list]:
    candidate = salvage_array_text(text)
    if candidate is None:
        return None
    result = _loads_list(candidate)
    if result is not None:
        return result
    # 数组被截断在某个对象中间：丢弃最后一个不完整对象再试
    last_complete = candidate.rfind("}", 0, len(candidate) - 1)
    if last_complete != -1:
        repaired = _TRAILING_COMMA_RE.sub("]", f"{candidate[: last_complete + 1]}]")
        return _loads_list(repaired)
    return None


def _parse_object_scan(text: str) -> Optional[list]:
    matches = _OBJECT_RE.findall(text)
    if not matches:
        return None
    return _loads_list(f"[{','.join(matches)}]")


PARSE_STAGES: List[Tuple[str, Callable[[str], Optional[list]]]] = [
    ("direct", _parse_direct),
    ("bracket_salvage", _parse_bracket_salvage),
    ("object_scan", _parse_object_scan),
]


def parse_model_output(raw: Any) -> Tuple[list, str]:
    """
    宽松解析服务输出。

    Returns:
        (parsed_list, stage_name)

    Raises:
        ParseFailure: 所有阶段都失败
    """
    if not isinstance(raw, str):
        raise ParseFailure("Service output is not a string")

    text = strip_code_fence(raw)
    for stage_name, stage in PARSE_STAGES:
        result = stage(text)
        if result is not None:
            return result, stage_name

    raise ParseFailure("Service output is not a valid JSON array", details=text[:DETAILS_LIMIT])


# --------------------------------------------------------------------------- #
# 校验
# --------------------------------------------------------------------------- #

def is_placeholder(text: str) -> bool:
    return bool(PLACEHOLDER_RE.match(_PLACEHOLDER_STRIP_RE.sub("", text).strip()))


def has_meaningful_overlap(
    line: str,
    normalized_source: str,
    *,
    min_snippet: int = GROUNDING_MIN_SNIPPET,
    max_snippet: int = GROUNDING_MAX_SNIPPET,
) -> bool:
    """
    判断一行是否能在原文中溯源。

    - 归一化后整体包含于原文 → True
    - 归一化后不超过 min_snippet 字：只接受整体包含
    - 否则任意长度 min_snippet..max_snippet 的连续子串出现在原文中 → True
    """
    normalized_line = normalize_for_comparison(line)
    if not normalized_line:
        return False
    if normalized_line in normalized_source:
        return True
    if len(normalized_line) <= min_snippet:
        return False

    longest = min(max_snippet, len(normalized_line))
    for size in range(longest, min_snippet - 1, -1):
        for start in range(0, len(normalized_line) - size + 1):
            if normalized_line[start:start + size] in normalized_source:
                return True
    return False


def validate_model_lines(
    parsed: list,
    source_text: str,
    *,
    max_line_length: int = MAX_LINE_LENGTH,
    min_snippet: int = GROUNDING_MIN_SNIPPET,
    max_snippet: int = GROUNDING_MAX_SNIPPET,
) -> List[SubtitleLine]:
    """
    规范化并校验服务返回的候选行。

    Args:
        parsed: 解析出的原始列表
        source_text: 该 chunk 的原文
        max_line_length: 对白行最大长度

    Returns:
        通过校验的 SubtitleLine 列表

    Raises:
        EmptyOutput / PlaceholderOutput / InvalidOutput
    """
    cleaned = enforce_line_lengths(normalize_lines(parsed), max_line_length)

    if not cleaned:
        raise EmptyOutput("Service produced no usable subtitle lines")

    if all(is_placeholder(line.text) for line in cleaned):
        raise PlaceholderOutput(
            "Service output only contains ordinal placeholders",
            details=[line.text for line in cleaned[:5]],
        )

    normalized_source = normalize_for_comparison(source_text)
    invalid = []
    for line in cleaned:
        stripped = strip_punct(line.text)
        if not stripped:
            continue
        if not has_meaningful_overlap(
            stripped, normalized_source, min_snippet=min_snippet, max_snippet=max_snippet,
        ):
            invalid.append(line.text)

    if invalid:
        raise InvalidOutput(
            "Service output contains text not found in the script",
            details=invalid[:5],
        )

    return cleaned
