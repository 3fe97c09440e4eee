"""
Ingest: 上传的剧本字节 → 待提交的字幕行

流程：
1. Decoder 解码（best-effort，永不失败）
2. 断句标点软化（可配置）
3. Segmenter 分段（chunk 级回退在其内部完成）
4. 整次运行为空（EmptyOutput）→ 对全文做回退分段并给出 warning

TransportFailure 原样向上传播：调用方不得提交任何内容。
"""
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from surtitle.config.settings import AppConfig
from surtitle.errors import EmptyOutput
from surtitle.pipeline.processors import segment
from surtitle.pipeline.processors.decode import decode_script_bytes
from surtitle.schema.script_model import ChunkRequest, SubtitleLine
from surtitle.utils.logger import info, warning
from surtitle.utils.text import soften_punctuation


@dataclass
class IngestResult:
    lines: List[SubtitleLine]
    warning: Optional[str] = None
    chunks_count: int = 0
    fallback_chunks: List[int] = field(default_factory=list)


def prepare_text(data: bytes, config: AppConfig) -> str:
    text = decode_script_bytes(data)
    if config.soften_punctuation:
        text = soften_punctuation(text)
    return text


def ingest_script(
    data: bytes,
    *,
    segment_fn: Optional[Callable[[ChunkRequest], str]],
    config: Optional[AppConfig] = None,
) -> IngestResult:
    """
    把剧本字节转为字幕行。

    Args:
        data: 上传的原始字节
        segment_fn: 服务调用函数；None 表示只用确定性回退分段
        config: AppConfig（None 使用默认值）

    Returns:
        IngestResult

    Raises:
        TransportFailure: 服务传输失败（整次运行中止）
        EmptyOutput: 服务分段与全文回退分段都没有产生任何行
    """
    config = config or AppConfig()
    text = prepare_text(data, config)

    if segment_fn is None:
        lines = segment.fallback_lines(text, config.max_line_length)
        if not lines:
            raise EmptyOutput("Script contains no usable subtitle lines")
        info(f"Fallback-only segmentation: {len(lines)} lines")
        return IngestResult(lines=lines)

    try:
        result = segment.run(
            text,
            segment_fn=segment_fn,
            max_chunk_length=config.max_chunk_length,
            max_line_length=config.max_line_length,
            max_workers=config.segment_max_workers,
            min_snippet=config.grounding_min_snippet,
            max_snippet=config.grounding_max_snippet,
        )
    except EmptyOutput as e:
        lines = segment.fallback_lines(text, config.max_line_length)
        if not lines:
            raise
        warning("Falling back to basic script segmentation due to empty model output")
        return IngestResult(
            lines=lines,
            warning=f"Segmentation failed ({e.message}), used plain script split instead",
        )

    return IngestResult(
        lines=result.lines,
        chunks_count=result.chunks_count,
        fallback_chunks=result.fallback_chunks,
    )
