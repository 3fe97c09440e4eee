"""OpenAI: 剧本分段提示词与客户端。"""
from .segment_client import SegmentFn, create_openai_client, create_segment_fn
from .segment_prompts import build_segment_prompt

__all__ = [
    "SegmentFn",
    "create_openai_client",
    "create_segment_fn",
    "build_segment_prompt",
]
