import hmac
from typing import Optional

from fastapi import Header, HTTPException, status
from app.core.config import settings


'''
内部接口鉴权（定价管理、手动触发定时任务、自动派车）
    - 管理端 / 任务之间用同一把 service role key：Authorization: Bearer <SERVICE_ROLE_KEY>
    - 常量时间比较，避免时序泄露
'''
def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_service_key(authorization: Optional[str] = Header(default=None)) -> str:
    """FastAPI 依赖：校验 Bearer service key，返回调用方标识"""
    token = _extract_bearer(authorization)
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

    expected = settings.SERVICE_ROLE_KEY.get_secret_value()
    if not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid service key")
    return "service_role"
