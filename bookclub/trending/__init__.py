"""
热度流水线模块

提供搜索事件记录、热度聚合、trendingScore 衰减、过期事件清理与读书会 trendingPool 推送的核心实现。
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bookclub.trending.config import TrendingConfig
    from bookclub.trending.repository import TrendingRepository
    from bookclub.trending.runner import JobRunner
    from bookclub.trending.service import SearchEventService, TrendingReadService

__all__ = [
    "JobRunner",
    "SearchEventService",
    "TrendingConfig",
    "TrendingReadService",
    "TrendingRepository",
]
