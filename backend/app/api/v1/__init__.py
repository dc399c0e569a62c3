from fastapi import APIRouter


# 公开路由：报价、订单生命周期回调、健康检查
from .routes_health import router as health_router
from .quotes import router as quotes_router
from .bookings import router as bookings_router


# 需要 service key 的路由（各 router 自带 require_service_key 依赖）
from .automation import router as automation_router
from .dispatch import router as dispatch_router
from .pricing_config import router as pricing_router


api_v1 = APIRouter()
api_v1.include_router(health_router)      # /health
api_v1.include_router(quotes_router)      # /calculate-quote, /vehicle-quotes
api_v1.include_router(bookings_router)    # /bookings/*

# --- 内部接口 ---
api_v1.include_router(automation_router)
api_v1.include_router(dispatch_router)
api_v1.include_router(pricing_router)
