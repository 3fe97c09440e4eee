"""
Chunker: 剧本文本 → 有序、长度受限的 chunk 列表

算法：
1. 按换行切段落（空行即连续换行），段落 trim 后丢弃空段
2. 段落内按句末标点（。！？!?）切句
3. 句子依次累加到缓冲区（以换行连接），追加后超限则先 flush
4. 单句超限：先 flush 缓冲区，再按固定长度硬切

保证：chunk 顺序与原文一致，非空白内容完整覆盖。
"""
import re
from typing import List

MAX_CHUNK_LENGTH = 2500

PARAGRAPH_SPLIT_RE = re.compile(r"\r?\n+")
SENTENCE_RE = re.compile(r"[^。！？!?]+[。！？!?]?")


def split_paragraphs(text: str) -> List[str]:
    return [p.strip() for p in PARAGRAPH_SPLIT_RE.split(text or "") if p.strip()]


def split_sentences(paragraph: str) -> List[str]:
    """按句末标点切句；切不出来时整段作为一句。"""
    sentences = [s.strip() for s in SENTENCE_RE.findall(paragraph)]
    sentences = [s for s in sentences if s]
    return sentences or ([paragraph.strip()] if paragraph.strip() else [])


def slice_long_unit(unit: str, limit: int) -> List[str]:
    """把超长句按固定长度硬切。"""
    pieces = []
    remaining = unit
    while len(remaining) > limit:
        pieces.append(remaining[:limit])
        remaining = remaining[limit:]
    if remaining.strip():
        pieces.append(remaining)
    return pieces


def chunk_script(text: str, limit: int = MAX_CHUNK_LENGTH) -> List[str]:
    """
    把剧本文本切成不超过 limit 的 chunk。

    Args:
        text: 剧本文本
        limit: 每个 chunk 的最大字数

    Returns:
        非空 chunk 列表（空白输入返回空列表）
    """
    if limit <= 0:
        raise ValueError(f"chunk limit must be positive, got {limit}")

    units: List[str] = []
    for paragraph in split_paragraphs(text):
        units.extend(split_sentences(paragraph))

    if not units:
        stripped = (text or "").strip()
        return [stripped] if stripped else []

    chunks: List[str] = []
    current = ""

    def flush():
        nonlocal current
        if current.strip():
            chunks.append(current.strip())
        current = ""

    for unit in units:
        if len(unit) > limit:
            flush()
            for piece in slice_long_unit(unit, limit):
                if piece.strip():
                    chunks.append(piece.strip())
            continue

        appended = f"{current}\n{unit}" if current else unit
        if len(appended) > limit and current:
            flush()
            current = unit
        else:
            current = appended

    flush()
    return chunks
