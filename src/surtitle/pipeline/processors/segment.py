"""
Segmenter: 剧本文本 → 字幕行（无状态逻辑）

职责：
- 把剧本切成 chunk，并发调用文本理解服务（每个 chunk 一次请求）
- 解析 + 校验服务输出，被拒收的 chunk 单独改用确定性回退分段
- 按原始 chunk 顺序重组结果（与响应到达顺序无关）

不负责：
- 服务客户端初始化（由调用方注入 segment_fn）
- 提交到 session（由 live/service.py 负责；整次运行完成前不提交任何内容）

错误约定：
- SegmentRejected（ParseFailure / EmptyOutput / PlaceholderOutput / InvalidOutput）
  只影响所在 chunk，不会中止整次运行
- TransportFailure 不在本地处理：中止剩余 chunk，异常向上传播
"""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from surtitle.errors import EmptyOutput, SegmentRejected, TransportFailure
from surtitle.pipeline.processors.chunk import MAX_CHUNK_LENGTH, chunk_script, split_paragraphs, split_sentences
from surtitle.pipeline.processors.classify import classify_line
from surtitle.pipeline.processors.llm_output import (
    GROUNDING_MAX_SNIPPET,
    GROUNDING_MIN_SNIPPET,
    parse_model_output,
    validate_model_lines,
)
from surtitle.pipeline.processors.postprocess import (
    MAX_LINE_LENGTH,
    enforce_line_lengths,
    normalize_lines,
)
from surtitle.schema.script_model import ChunkRequest, SubtitleLine
from surtitle.utils.logger import info, warning
from surtitle.utils.text import sanitize_line_text

SOURCE_SERVICE = "service"
SOURCE_FALLBACK = "fallback"


@dataclass
class ChunkOutcome:
    """单个 chunk 的处理结果。"""
    index: int
    lines: List[SubtitleLine]
    source: str = SOURCE_SERVICE
    rejection_code: Optional[str] = None
    rejection_message: Optional[str] = None


@dataclass
class SegmentResult:
    """分段处理结果。"""
    lines: List[SubtitleLine]
    chunks_count: int = 0
    fallback_chunks: List[int] = field(default_factory=list)
    outcomes: List[ChunkOutcome] = field(default_factory=list)


def fallback_segment(text: str) -> List[SubtitleLine]:
    """确定性回退分段：段落 → 句子 → 分类器判定类型。"""
    lines = []
    for paragraph in split_paragraphs(text):
        for sentence in split_sentences(paragraph):
            cleaned = sanitize_line_text(sentence)
            if cleaned:
                lines.append(SubtitleLine(cleaned, classify_line(cleaned)))
    return lines


def fallback_lines(text: str, max_line_length: int = MAX_LINE_LENGTH) -> List[SubtitleLine]:
    """回退分段 + Post-processor（展开旁白、去空行、长度限制）。"""
    return enforce_line_lengths(normalize_lines(fallback_segment(text)), max_line_length)


def segment_chunk(
    request: ChunkRequest,
    segment_fn: Callable[[ChunkRequest], str],
    *,
    max_line_length: int = MAX_LINE_LENGTH,
    min_snippet: int = GROUNDING_MIN_SNIPPET,
    max_snippet: int = GROUNDING_MAX_SNIPPET,
) -> ChunkOutcome:
    """
    处理单个 chunk：请求服务 → 解析 → 校验；拒收时改用回退分段。

    Raises:
        TransportFailure: 服务不可达或没有任何响应
    """
    raw = segment_fn(request)
    if raw is None:
        raise TransportFailure(f"Text service returned no response for chunk {request.label}")

    try:
        parsed, stage = parse_model_output(raw)
        lines = validate_model_lines(
            parsed,
            request.text,
            max_line_length=max_line_length,
            min_snippet=min_snippet,
            max_snippet=max_snippet,
        )
    except SegmentRejected as e:
        detail = str(e.details)[:200] if e.details else ""
        warning(
            f"Chunk {request.label} failed validation ({e.code}: {e.message}) {detail}, "
            f"using fallback segmentation"
        )
        return ChunkOutcome(
            index=request.index,
            lines=fallback_lines(request.text, max_line_length),
            source=SOURCE_FALLBACK,
            rejection_code=e.code,
            rejection_message=e.message,
        )

    info(f"Chunk {request.label}: accepted {len(lines)} lines (parsed via {stage})")
    return ChunkOutcome(index=request.index, lines=lines)


def run(
    text: str,
    *,
    segment_fn: Callable[[ChunkRequest], str],
    max_chunk_length: int = MAX_CHUNK_LENGTH,
    max_line_length: int = MAX_LINE_LENGTH,
    max_workers: int = 4,
    min_snippet: int = GROUNDING_MIN_SNIPPET,
    max_snippet: int = GROUNDING_MAX_SNIPPET,
) -> SegmentResult:
    """
    执行整篇剧本的分段。

    Args:
        text: 剧本文本
        segment_fn: 服务调用函数（ChunkRequest -> 原始输出文本）
        max_chunk_length: 每个 chunk 的最大字数
        max_line_length: 对白行最大字数
        max_workers: chunk 并发请求数

    Returns:
        SegmentResult，lines 按 chunk 原始顺序拼接

    Raises:
        TransportFailure: 任一 chunk 传输失败（剩余 chunk 取消，不返回部分结果）
        EmptyOutput: 整次运行没有产生任何字幕行
    """
    chunks = chunk_script(text, max_chunk_length)
    total = len(chunks)
    info(f"Segmenting script: {len(text or '')} chars in {total} chunk(s)")

    outcomes: List[ChunkOutcome] = []
    if chunks:
        requests = [ChunkRequest(text=c, index=i, total=total) for i, c in enumerate(chunks)]
        executor = ThreadPoolExecutor(max_workers=max(1, min(max_workers, total)))
        try:
            futures = [
                executor.submit(
                    segment_chunk,
                    req,
                    segment_fn,
                    max_line_length=max_line_length,
                    min_snippet=min_snippet,
                    max_snippet=max_snippet,
                )
                for req in requests
            ]
            # 按提交顺序收集：最终行序 = chunk 顺序
            for future in futures:
                outcomes.append(future.result())
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

    combined: List[SubtitleLine] = []
    for outcome in outcomes:
        combined.extend(outcome.lines)

    if not combined:
        raise EmptyOutput("Segmentation produced no usable subtitle lines")

    fallback_chunks = [o.index for o in outcomes if o.source == SOURCE_FALLBACK]
    info(
        f"Segmentation complete: {len(combined)} lines from {total} chunk(s), "
        f"{len(fallback_chunks)} fallback"
    )

    return SegmentResult(
        lines=enforce_line_lengths(combined, max_line_length),
        chunks_count=total,
        fallback_chunks=fallback_chunks,
        outcomes=outcomes,
    )
