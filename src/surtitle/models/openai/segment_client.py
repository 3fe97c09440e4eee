"""
OpenAI 分段客户端（Responses API）

职责：
- 创建 OpenAI client（SDK 自带重试）
- 把一个 ChunkRequest 发给模型，返回原始输出文本

不负责：
- 输出解析与校验（由 pipeline/processors/llm_output.py 负责）

错误约定：
- SDK 抛出的任何 OpenAIError、或模型没有返回任何文本 → TransportFailure
"""
from typing import Callable

from openai import OpenAI, OpenAIError

from surtitle.errors import TransportFailure
from surtitle.models.openai.segment_prompts import build_segment_prompt
from surtitle.schema.script_model import ChunkRequest
from surtitle.utils.logger import debug, error

SegmentFn = Callable[[ChunkRequest], str]


def create_openai_client(api_key: str, *, max_retries: int = 2, timeout: float = 120.0) -> OpenAI:
    if not api_key:
        raise ValueError("OpenAI API key is required")
    return OpenAI(api_key=api_key, max_retries=max_retries, timeout=timeout)


def create_segment_fn(
    api_key: str,
    *,
    model: str = "gpt-4o-mini",
    temperature: float = 0.1,
    max_output_tokens: int = 4000,
    max_line_length: int = 20,
    max_retries: int = 2,
    client: OpenAI | None = None,
) -> SegmentFn:
    """
    创建分段函数：ChunkRequest -> 模型原始输出文本。

    Args:
        api_key: OpenAI API key
        model: 模型名称
        temperature: 温度参数
        max_output_tokens: 输出 token 上限
        max_line_length: 写进提示词的每行字数上限
        max_retries: SDK 重试次数
        client: 预先创建的 client（测试注入用）

    Returns:
        segment_fn(request) -> str
    """
    client = client or create_openai_client(api_key, max_retries=max_retries)

    def segment_fn(request: ChunkRequest) -> str:
        messages = build_segment_prompt(request, max_line_length=max_line_length)
        debug(f"Requesting segmentation for chunk {request.label} ({len(request.text)} chars)")
        try:
            response = client.responses.create(
                model=model,
                input=messages,
                temperature=temperature,
                max_output_tokens=max_output_tokens,
            )
        except OpenAIError as e:
            error(f"Segmentation request failed for chunk {request.label}: {e}")
            raise TransportFailure(
                f"Text service request failed: {e}",
                details=str(e)[:2000],
            ) from e

        output = (getattr(response, "output_text", None) or "").strip()
        if not output:
            raise TransportFailure(f"Text service returned no output for chunk {request.label}")
        return output

    return segment_fn
