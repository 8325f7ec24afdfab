"""
热度流水线 API Schema

定义搜索事件记录、热门书目、读书会 trendingPool 与任务触发相关请求与响应模型。
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class SearchEventRequest(BaseModel):
    query: str = Field(..., max_length=500, description="原始搜索词（聚合时再规范化）")


class SearchEventResponse(BaseModel):
    recorded: bool


class TrendingBookItem(BaseModel):
    """热门书目项"""

    rank: int = Field(..., ge=1, description="排名（1-based）")
    slug: str = Field(..., min_length=1)
    title: str
    author_name: str
    search_score_24h: int = Field(..., ge=0, description="最近一次聚合的窗口内搜索次数")
    trending_score: float = Field(..., ge=0, description="衰减热度")


class TrendingBooksResponse(BaseModel):
    limit: int = Field(..., ge=1, description="返回条数")
    generated_at: datetime = Field(..., description="生成时间（UTC）")
    items: list[TrendingBookItem] = Field(default_factory=list)


class ClubTrendingPoolResponse(BaseModel):
    club_id: str
    trending_pool: list[str] = Field(default_factory=list)
    last_trending_update: Optional[datetime] = None


class JobRunResponse(BaseModel):
    job: str
    skipped: bool = Field(False, description="未获取到任务锁时为 True")
    result: dict[str, Any] = Field(default_factory=dict)
