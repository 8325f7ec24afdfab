from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

from loguru import logger

from bookclub.trending.config import TrendingConfig
from bookclub.trending.repository import TrendingRepository
from bookclub.trending.results import CleanupResult


async def cleanup_search_events(
    repo: TrendingRepository,
    config: TrendingConfig,
    now: datetime,
) -> CleanupResult:
    """
    删除超过保留期的 search_events

    按 timestamp 升序分批查询并整批删除，直到查询为空。每批独立提交：
    中途失败时已删除的批次保留，下次运行从最旧的记录继续。
    """
    cutoff = now - timedelta(days=config.retention_days)
    logger.info(f"🗑️ [Cleanup] 开始清理: cutoff={cutoff.isoformat()}")

    total_deleted = 0
    batches = 0
    while True:
        docs = await repo.list_expired_search_events(cutoff, config.cleanup_batch_size)
        if not docs:
            break

        deleted = await repo.delete_documents([doc.reference for doc in docs])
        total_deleted += deleted
        batches += 1
        logger.info(f"[Cleanup] 本批删除 {deleted}，累计 {total_deleted}")

        # 控制写入速率，避免触发存储限流
        await asyncio.sleep(config.cleanup_pause_seconds)

    logger.info(f"[Cleanup] ✅ 完成: total_deleted={total_deleted}, batches={batches}")
    return CleanupResult(deleted=total_deleted, batches=batches)
