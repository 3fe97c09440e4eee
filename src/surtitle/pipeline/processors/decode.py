"""
Decoder: 上传的原始字节 → 文本

职责：
- 通过 BOM 识别首选编码（UTF-8 / UTF-16LE / UTF-16BE / UTF-32LE / UTF-32BE）
- 依次用候选编码解码，按字符统计打分，选分数最高的非空结果
- 永不失败：空输入返回空字符串，所有候选都失败时退回 UTF-8（replace）

打分规则：
- +6 每个 CJK 汉字
- +2 每个可打印 ASCII 字符
- -3 每个 Latin-1 区间（0x80-0xFF）字符（典型的误解码信号）
- -20 每个替换字符 U+FFFD
- +5 UTF 家族编码的固定加分
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple

from surtitle.utils.logger import debug
from surtitle.utils.text import strip_bom

UTF8 = "utf-8"
UTF16LE = "utf-16-le"
UTF16BE = "utf-16-be"
UTF32LE = "utf-32-le"
UTF32BE = "utf-32-be"

# BOM 之后的固定候选顺序：UTF 家族 → 两种中文多字节编码 → 单字节兜底
FALLBACK_CANDIDATES = (UTF8, UTF16LE, UTF16BE, "gb18030", "big5", "latin-1")

UTF_FAMILY = frozenset({UTF8, UTF16LE, UTF16BE, UTF32LE, UTF32BE})

# CJK 统一表意文字（基本区 + 扩展 A-F + 兼容补充）
_CJK_RANGES: Tuple[Tuple[int, int], ...] = (
    (0x4E00, 0x9FFF),
    (0x3400, 0x4DBF),
    (0x20000, 0x2A6DF),
    (0x2A700, 0x2B73F),
    (0x2B740, 0x2B81F),
    (0x2B820, 0x2CEAF),
    (0x2CEB0, 0x2EBEF),
    (0x2F800, 0x2FA1F),
)

HAN_WEIGHT = 6
ASCII_WEIGHT = 2
LATIN1_PENALTY = 3
REPLACEMENT_PENALTY = 20
UTF_BONUS = 5

# 合法 UTF-8（不含 NUL）跳过打分直接采用
PREFER_STRICT_UTF8 = True


@dataclass
class TextStats:
    han: int = 0
    ascii: int = 0
    latin1: int = 0
    replacement: int = 0
    length: int = 0


def detect_bom(data: bytes) -> Optional[str]:
    """根据开头的 BOM 返回编码名，没有 BOM 返回 None。"""
    if data.startswith(b"\xef\xbb\xbf"):
        return UTF8
    # UTF-32LE 的 BOM 以 UTF-16LE 的 BOM 开头，必须先判断
    if data.startswith(b"\xff\xfe\x00\x00"):
        return UTF32LE
    if data.startswith(b"\xff\xfe"):
        return UTF16LE
    if data.startswith(b"\x00\x00\xfe\xff"):
        return UTF32BE
    if data.startswith(b"\xfe\xff"):
        return UTF16BE
    return None


def _is_han(code: int) -> bool:
    return any(lo <= code <= hi for lo, hi in _CJK_RANGES)


def analyze_text(text: str) -> TextStats:
    stats = TextStats(length=len(text))
    for ch in text:
        code = ord(ch)
        if code == 0xFFFD:
            stats.replacement += 1
        elif _is_han(code):
            stats.han += 1
        elif 0x20 <= code <= 0x7E:
            stats.ascii += 1
        elif 0x80 <= code <= 0xFF:
            stats.latin1 += 1
    return stats


def score_text(stats: TextStats, encoding: str) -> float:
    """按字符统计给一次解码结果打分；空文本为 -inf。"""
    if stats.length == 0:
        return float("-inf")
    score = (
        stats.han * HAN_WEIGHT
        + stats.ascii * ASCII_WEIGHT
        - stats.latin1 * LATIN1_PENALTY
        - stats.replacement * REPLACEMENT_PENALTY
    )
    if encoding in UTF_FAMILY:
        score += UTF_BONUS
    return score


def decode_with(data: bytes, encoding: str, *, strict: bool = False) -> Optional[str]:
    """用指定编码解码并去 BOM；strict 模式下解码出错返回 None。"""
    try:
        text = data.decode(encoding, errors="strict" if strict else "replace")
    except (UnicodeDecodeError, LookupError):
        return None
    return strip_bom(text)


def candidate_encodings(data: bytes) -> List[str]:
    """候选编码列表：BOM 命中的编码排最前，其余按固定顺序去重。"""
    detected = detect_bom(data)
    order = [detected] if detected else []
    for enc in FALLBACK_CANDIDATES:
        if enc not in order:
            order.append(enc)
    return order


def decode_script_bytes(data: bytes, *, prefer_strict_utf8: bool = PREFER_STRICT_UTF8) -> str:
    """
    把上传的剧本字节解码为文本（best-effort，永不抛异常）。

    额外的两条确定性规则（在打分之前）：
    1. BOM 命中且该编码可以严格解码 → 直接采用
    2. prefer_strict_utf8 且整段是合法 UTF-8、不含 NUL → 直接采用
       （gb18030 几乎能"解码"任意字节，UTF-8 中文按它解出来的汉字数反而更多）

    Args:
        data: 原始字节
        prefer_strict_utf8: False 时合法 UTF-8 也参与打分

    Returns:
        解码后的文本（已去除开头 BOM）
    """
    if not data:
        return ""

    detected = detect_bom(data)
    if detected:
        text = decode_with(data, detected, strict=True)
        if text is not None:
            debug(f"Decoded script via BOM: {detected}")
            return text

    if prefer_strict_utf8:
        text = decode_with(data, UTF8, strict=True)
        if text is not None and "\x00" not in text:
            return text

    best_text: Optional[str] = None
    best_score = float("-inf")
    best_encoding = None

    for encoding in candidate_encodings(data):
        decoded = decode_with(data, encoding)
        if not decoded:
            continue
        score = score_text(analyze_text(decoded), encoding)
        if score > best_score:
            best_score = score
            best_text = decoded
            best_encoding = encoding

    if best_text is not None and best_score > float("-inf"):
        debug(f"Decoded script via scoring: {best_encoding} (score={best_score})")
        return best_text

    # 所有候选都为空：退回 UTF-8 best-effort
    return strip_bom(data.decode(UTF8, errors="replace"))
