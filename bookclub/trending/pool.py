from __future__ import annotations

import asyncio
from datetime import datetime

from loguru import logger

from bookclub.trending.config import TrendingConfig
from bookclub.trending.repository import TrendingRepository
from bookclub.trending.results import PoolPublishResult


async def refresh_trending_pool(
    repo: TrendingRepository,
    config: TrendingConfig,
    now: datetime,
) -> PoolPublishResult:
    """
    把 search_score_24h 前 pool_size 的书目 slug 写入每个读书会的 trendingPool

    各读书会独立并发更新（非 batch）：单个失败不影响其他读书会，也不回滚。
    """
    logger.info(f"🌍 开始刷新读书会 trendingPool: pool_size={config.pool_size}")

    top_books = await repo.list_top_books_by_search_score(config.pool_size)
    # books 的文档 id 即 slug
    slugs = [doc.id for doc in top_books]
    logger.info(f"🔥 Top trending slugs: {', '.join(slugs)}")

    clubs = await repo.list_clubs()
    outcomes = await asyncio.gather(
        *(repo.set_club_trending_pool(club.reference, slugs, now) for club in clubs),
        return_exceptions=True,
    )

    failed_club_ids: list[str] = []
    for club, outcome in zip(clubs, outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            logger.warning(f"读书会 trendingPool 更新失败: club={club.id}, err={outcome}")
            failed_club_ids.append(club.id)

    updated = len(clubs) - len(failed_club_ids)
    logger.info(f"✅ trendingPool 刷新完成: updated={updated}/{len(clubs)}, failed={len(failed_club_ids)}")
    return PoolPublishResult(
        slugs=slugs,
        clubs_total=len(clubs),
        clubs_updated=updated,
        failed_club_ids=failed_club_ids,
    )
