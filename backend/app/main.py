import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.logging import configure_logging
from app.core.celery_app import celery_app  # noqa: F401  绑定 shared_task 到本应用的 broker 配置
from app.api.v1 import api_v1
from app.db.session import dispose_engine
from app.services.errors import BookingServiceError

configure_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    dispose_engine()    # 释放连接池


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# 报价/订单接口被官网、语音助手、Stripe 回调等多方调用，CORS 默认全放开
# BACKEND_CORS_ORIGINS=https://a.example,https://b.example 可收紧
origins = [o.strip() for o in settings.BACKEND_CORS_ORIGINS.split(",") if o.strip()] or ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials="*" not in origins,    # 通配 origin 时浏览器不接受 credentials
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


# ---------- 统一错误格式：{"error": message} ----------
@app.exception_handler(BookingServiceError)
async def booking_error_handler(request: Request, exc: BookingServiceError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)},
                        headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    missing, invalid = [], []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        name = ".".join(loc) or "body"
        (missing if err.get("type") == "missing" else invalid).append(name)

    if missing:
        message = f"Missing required fields: {', '.join(missing)}"
    else:
        message = f"Invalid fields: {', '.join(invalid)}"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal server error"})


app.include_router(api_v1, prefix=settings.API_PREFIX)


# 根路径健康探活（方便 Docker 健康检查）
@app.get("/")
def root():
    return {
        "app": settings.PROJECT_NAME,
        "env": settings.ENVIRONMENT,
        "ok": True
    }
