# 路由汇总
from fastapi import APIRouter

from bookclub.api.v1.endpoints import trending

api_router = APIRouter()

# 挂载热度流水线模块 (访问地址: /api/v1/trending/...)
api_router.include_router(trending.router, prefix="/trending", tags=["热度流水线模块"])
