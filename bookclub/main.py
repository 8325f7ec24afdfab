# 【入口】HTTP 服务启动点
from fastapi import FastAPI
from loguru import logger

from bookclub.api.v1.router import api_router
from bookclub.core.config import settings
from bookclub.core.firestore_client import firestore_client
from bookclub.core.logger import setup_logger
from bookclub.core.redis_client import redis_client


# 初始化日志
setup_logger()


# ========================================
# FastAPI 应用配置
# ========================================
app = FastAPI(
    title="Book Club - Trending Pipeline",
    description="搜索事件记录、热度聚合/衰减、过期事件清理与读书会 trendingPool 推送",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# 注册所有路由，统一加前缀 /api/v1
app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    """应用启动事件"""
    logger.info("=" * 60)
    logger.info("读书会热度服务正在启动...")
    logger.info(f"调试模式: {settings.DEBUG}")
    logger.info(f"日志级别: {settings.LOG_LEVEL}")
    logger.info("=" * 60)
    await firestore_client.connect()
    if settings.JOB_LOCK_ENABLED:
        await redis_client.connect()


@app.on_event("shutdown")
async def shutdown_event():
    """应用关闭事件"""
    logger.info("读书会热度服务正在关闭...")
    await redis_client.close()
    await firestore_client.close()


@app.get("/")
def health_check():
    """健康检查端点"""
    return {
        "status": "ok",
        "message": "Book Club Trending Service is running!",
        "version": "1.0.0",
    }
