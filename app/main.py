from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse
from sqlalchemy import text

from app.db.session import engine
from app.core.redis import async_redis
from app.routers import admin_order_router, order_router
from app.services.checkout_service import (
    CheckoutValidationError,
    OrderPersistenceError,
    PaymentFailedError,
)

import uvicorn

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # 应用启动时的初始化
    logger.info("Starting application...")

    # 数据库连接检查
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        logger.info("✅ Database connection successful")
    except Exception as e:
        logger.error("❌ Database connection failed: %s", e)
        raise

    # Redis 连接检查（事件广播依赖 Redis，但不影响下单）
    try:
        await async_redis.ping()
        logger.info("✅ Redis connected successfully")
    except Exception as e:
        logger.warning(f"⚠️  Redis connection failed: {e}")
        logger.warning("⚠️  Order events will not be broadcast until Redis is reachable")

    yield

    # 应用关闭时的清理
    logger.info("Shutting down application...")

# 创建 FastAPI 应用
app = FastAPI(
    title="书店结账服务 API",
    description="图书订单结账服务，支持多支付网关与原子下单",
    version="1.0.0",
    lifespan=lifespan
)

# 添加 CORS 中间件
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 生产环境中应该指定具体域名
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(order_router.router, prefix="/api/v1")
app.include_router(admin_order_router.router, prefix="/api/v1")


def _field_errors(errors) -> dict:
    """把 pydantic 错误转换为 字段路径 -> 错误信息列表"""
    fields = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        fields.setdefault(".".join(loc) or "body", []).append(error.get("msg", "Invalid value"))
    return fields

# 全局异常处理
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation error: {exc}")
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": "The given data was invalid.",
            "errors": _field_errors(exc.errors())
        }
    )

@app.exception_handler(CheckoutValidationError)
async def checkout_validation_handler(request: Request, exc: CheckoutValidationError):
    logger.warning(f"Checkout validation error: {exc.errors}")
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": str(exc),
            "errors": exc.errors
        }
    )

@app.exception_handler(PaymentFailedError)
async def payment_failed_handler(request: Request, exc: PaymentFailedError):
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": "Payment failed. Please try again.",
            "payment_error": exc.outcome.to_payload()
        }
    )

@app.exception_handler(OrderPersistenceError)
async def order_persistence_handler(request: Request, exc: OrderPersistenceError):
    # 已在服务层记录 CRITICAL 日志，这里只返回通用错误
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Order could not be recorded. Please contact support."
        }
    )

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.error(f"HTTP error: {exc.status_code} - {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.detail
        },
        headers=getattr(exc, "headers", None)
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Internal server error"
        }
    )

# 健康检查端点
@app.get("/health")
async def health_check():
    """健康检查接口"""
    return {
        "status": "healthy",
        "service": "bookstore-checkout",
        "version": "1.0.0"
    }

@app.get("/")
async def read_root():
    """API 根路径"""
    return {
        "message": "Bookstore checkout service",
        "docs": "/docs",
        "health": "/health"
    }




if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
