"""
OpenAI 分段提示词
Prompt 内容从 YAML 模板加载（prompts/script_segment.yaml）
"""
from typing import List

from surtitle.prompts import load_prompt
from surtitle.schema.script_model import ChunkRequest


def build_segment_prompt(request: ChunkRequest, *, max_line_length: int = 20) -> List[dict]:
    """
    构建单个 chunk 的分段提示词。

    Args:
        request: chunk 请求（原文、序号、总数）
        max_line_length: 每行字数上限（写进提示词）

    Returns:
        messages 列表（用于 OpenAI API）
    """
    p = load_prompt(
        "script_segment",
        chunk_number=str(request.index + 1),
        total_chunks=str(request.total),
        max_line_length=str(max_line_length),
        chunk_text=request.text,
    )
    return p.to_messages()
