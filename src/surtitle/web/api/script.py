"""
Script API: 上传剧本 → 分段 → 提交到 session

流程在线程池中运行（服务调用是阻塞 IO），整次运行成功后才提交；
传输失败时不提交任何内容，session 保持原状。
"""
import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from surtitle.config.settings import AppConfig, get_openai_key
from surtitle.live.projection import control_projection
from surtitle.models.openai import SegmentFn, create_segment_fn
from surtitle.pipeline.ingest import ingest_script
from surtitle.pipeline.processors.llm_output import DETAILS_LIMIT
from surtitle.web.auth import require_access_code

logger = logging.getLogger(__name__)

router = APIRouter()


def build_segment_fn(api_key: str, config: AppConfig) -> SegmentFn:
    """默认的 segment_fn 工厂：OpenAI Responses API。"""
    return create_segment_fn(
        api_key,
        model=config.openai_model,
        temperature=config.openai_temperature,
        max_output_tokens=config.openai_max_output_tokens,
        max_line_length=config.max_line_length,
        max_retries=config.openai_max_retries,
    )


@router.post("/session/{session_id}/script/upload", dependencies=[Depends(require_access_code)])
async def upload_script(
    session_id: str,
    request: Request,
    script: Optional[UploadFile] = File(default=None),
    apiKey: Optional[str] = Form(default=None),
):
    config: AppConfig = request.app.state.config
    factory: Callable[[str, AppConfig], SegmentFn] = request.app.state.segment_fn_factory

    if script is None:
        raise HTTPException(status_code=400, detail="No script file uploaded")

    data = await script.read(config.max_script_bytes + 1)
    if len(data) > config.max_script_bytes:
        raise HTTPException(status_code=413, detail="Script file too large")

    api_key = (apiKey or "").strip() or get_openai_key()
    if not api_key:
        raise HTTPException(status_code=400, detail="OpenAI API key is required")

    logger.info("Processing script upload for session %s (%d bytes)", session_id, len(data))
    try:
        segment_fn = factory(api_key, config)
        result = await run_in_threadpool(ingest_script, data, segment_fn=segment_fn, config=config)
    except Exception as e:
        logger.error("Script processing failed for session %s: %s", session_id, e)
        details = getattr(e, "details", None) or str(e)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to process script",
                "details": str(details)[:DETAILS_LIMIT],
                "code": getattr(e, "code", "PIPELINE_ERROR"),
            },
        )

    doc = await request.app.state.service.commit(session_id, result.lines)
    body = control_projection(doc)
    body["sessionId"] = doc.id
    if result.warning:
        body["warning"] = result.warning
    return body
