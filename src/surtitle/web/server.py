"""
FastAPI server for live surtitles

启动方式：surtitle serve [--port 8765] [--static-dir ./client/dist]
"""
import logging
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from surtitle.config.settings import AppConfig
from surtitle.errors import SessionNotFound
from surtitle.live.service import SessionService
from surtitle.web.api.live import router as live_router
from surtitle.web.api.script import build_segment_fn
from surtitle.web.api.script import router as script_router
from surtitle.web.api.session import router as session_router

logger = logging.getLogger(__name__)


class SinglePageStaticFiles(StaticFiles):
    """静态文件；找不到的非 /api 路径回退到 index.html（前端路由 /viewer、/control）。"""

    async def get_response(self, path: str, scope):
        try:
            response = await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != 404:
                raise
            response = None
        if response is not None and response.status_code != 404:
            return response
        if path == "api" or path.startswith("api/"):
            raise StarletteHTTPException(status_code=404)
        return await super().get_response("index.html", scope)


def create_app(
    config: Optional[AppConfig] = None,
    *,
    service: Optional[SessionService] = None,
    segment_fn_factory: Optional[Callable] = None,
) -> FastAPI:
    """
    创建 FastAPI 应用。

    Args:
        config: AppConfig（None 使用默认值 + 环境变量）
        service: SessionService（None 则新建进程内存储）
        segment_fn_factory: (api_key, config) -> segment_fn，测试时注入假服务
    """
    config = config or AppConfig()

    app = FastAPI(
        title="Live Surtitles",
        version="1.0.0",
    )

    # CORS（开发模式下允许 Vite dev server）
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.service = service or SessionService()
    app.state.segment_fn_factory = segment_fn_factory or build_segment_fn

    @app.exception_handler(SessionNotFound)
    async def _session_not_found(request: Request, exc: SessionNotFound):
        return JSONResponse(status_code=404, content={"error": "Session not found"})

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def _bad_request(request: Request, exc: RequestValidationError):
        logger.debug("Rejected request body on %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request body", "details": str(exc.errors())[:2000]},
        )

    # 注册 API 路由
    app.include_router(session_router, prefix="/api")
    app.include_router(script_router, prefix="/api")
    app.include_router(live_router)

    # 挂载前端静态文件（生产模式）
    static_dir = config.static_dir
    if static_dir and Path(static_dir).is_dir():
        app.mount("/", SinglePageStaticFiles(directory=static_dir, html=True), name="static")

    return app
