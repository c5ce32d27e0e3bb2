"""
FastAPI 应用入口
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from loguru import logger
from sqlalchemy import text

from backend.config import settings, setup_logging
from backend.api import api_v1_router
from backend.db import base as db_base
from backend.db.base import init_db, close_db
from backend.db.init_db import create_tables
from backend.services.errors import InvariantViolation
from backend.utils.redis_client import redis_client


async def check_and_init_database():
    """初始化连接池并创建缺失的表"""
    if not settings.DATABASE_ENABLED:
        logger.info("📦 Database disabled, skipping initialization")
        return

    try:
        logger.info("🔍 Checking database connection...")
        await init_db()
        await create_tables(db_base.async_engine)
        logger.success("✅ Database connection pool initialized")
    except Exception as e:
        logger.error(f"❌ Database initialization failed: {e}")
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    setup_logging()
    logger.info(f"🚀 Starting {settings.APP_NAME}...")

    # 初始化 Redis（通知推送通道，失败不影响启动）
    try:
        await redis_client.connect()
        await redis_client.ping()
        logger.success("✅ Redis initialized")
    except Exception as e:
        logger.error(f"❌ Redis init failed: {e}")
        await redis_client.close()

    await check_and_init_database()

    logger.success("🎉 Application started successfully!")

    yield

    logger.info("👋 Shutting down...")

    await redis_client.close()

    if settings.DATABASE_ENABLED:
        try:
            await close_db()
            logger.info("✅ Database connections closed")
        except Exception as e:
            logger.error(f"❌ Database close failed: {e}")

    logger.success("✅ Application shutdown complete")


# 创建 FastAPI 应用
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册 API 路由
app.include_router(api_v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def root():
    """健康检查"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "ok"
    }


@app.get("/health")
async def health_check():
    """健康检查（详细）"""
    health_status = {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "services": {}
    }

    # 检查 Redis
    if redis_client.connected:
        try:
            await redis_client.ping()
            health_status["services"]["redis"] = "healthy"
        except Exception:
            health_status["services"]["redis"] = "unhealthy"
            health_status["status"] = "degraded"
    else:
        health_status["services"]["redis"] = "not_initialized"

    # 检查数据库
    if settings.DATABASE_ENABLED:
        if db_base.async_engine:
            try:
                async with db_base.async_engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
                health_status["services"]["database"] = "healthy"
            except Exception:
                health_status["services"]["database"] = "unhealthy"
                health_status["status"] = "degraded"
        else:
            health_status["services"]["database"] = "not_initialized"
    else:
        health_status["services"]["database"] = "disabled"

    # 通知渠道（邮件传输方式）
    if settings.NOTIFICATION_ENABLED:
        health_status["services"]["notifications"] = settings.EMAIL_TRANSPORT
    else:
        health_status["services"]["notifications"] = "disabled"

    return health_status


@app.exception_handler(InvariantViolation)
async def invariant_violation_handler(request, exc):
    """数据不变量被破坏：大声记录，对外只返回通用错误"""
    logger.critical(f"🚨 Invariant violation on {request.method} {request.url.path}: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "code": 500,
            "message": "Internal server error",
            "error": {"type": "InternalError"}
        }
    )


# 全局异常处理
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """全局异常处理"""
    logger.error(f"Unhandled exception: {type(exc).__name__}: {str(exc)}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "code": 500,
            "message": "Internal server error",
            "error": {
                "type": type(exc).__name__,
                "message": str(exc)
            }
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "backend.app:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
