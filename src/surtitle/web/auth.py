"""
控制端共享口令（可选）

AppConfig.access_code 为空时不校验。
"""
import secrets
from typing import Optional

from fastapi import Header, HTTPException, Request

ACCESS_HEADER = "X-Access-Code"


def access_code_matches(expected: Optional[str], provided: Optional[str]) -> bool:
    if not expected:
        return True
    if not provided:
        return False
    return secrets.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))


async def require_access_code(
    request: Request,
    x_access_code: Optional[str] = Header(default=None, alias=ACCESS_HEADER),
) -> None:
    """控制端修改接口的依赖：口令不匹配 → 401。"""
    expected = request.app.state.config.access_code
    if not access_code_matches(expected, x_access_code):
        raise HTTPException(status_code=401, detail="Invalid access code")
