from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from loguru import logger

from bookclub.trending.aggregator import aggregate_trending_scores
from bookclub.trending.config import TrendingConfig
from bookclub.trending.decay import decay_trending_scores
from bookclub.trending.locks import JobLockRepository
from bookclub.trending.pool import refresh_trending_pool
from bookclub.trending.repository import TrendingRepository
from bookclub.trending.retention import cleanup_search_events

JobFunc = Callable[[TrendingRepository, TrendingConfig, datetime], Awaitable]

JOBS: dict[str, JobFunc] = {
    "aggregate": aggregate_trending_scores,
    "decay": decay_trending_scores,
    "cleanup": cleanup_search_events,
    "pool": refresh_trending_pool,
}


class JobRunner:
    """
    单次执行热度流水线中的某个任务（调度由外部 cron / Cloud Scheduler 负责）

    统一的失败策略：记录日志后继续抛出，交给调度方处理；不做重试。
    """

    def __init__(
        self,
        repo: TrendingRepository,
        config: TrendingConfig,
        *,
        locks: Optional[JobLockRepository] = None,
        lock_ttl_seconds: int = 600,
    ):
        self._repo = repo
        self._config = config
        self._locks = locks
        self._lock_ttl_seconds = int(lock_ttl_seconds)

    @property
    def config(self) -> TrendingConfig:
        return self._config

    async def run(self, job_name: str, now: Optional[datetime] = None):
        job = JOBS.get(job_name)
        if job is None:
            raise KeyError(f"未知任务: {job_name}（可选: {', '.join(JOBS)}）")

        token = None
        if self._locks is not None:
            token = await self._locks.try_acquire(job_name, self._lock_ttl_seconds)
            if token is None:
                logger.info(f"任务跳过：未获取到锁（可能已在执行）: job={job_name}")
                return None

        started = time.perf_counter()
        try:
            result = await job(self._repo, self._config, now or datetime.now(timezone.utc))
        except Exception as exc:
            logger.exception(f"任务执行失败: job={job_name}, err={exc}")
            raise
        finally:
            if token is not None:
                released = await self._locks.release(job_name, token)
                if not released:
                    logger.warning(f"任务锁已过期并被其他实例持有，未释放: job={job_name}")

        took_ms = (time.perf_counter() - started) * 1000
        logger.info(f"任务执行完成: job={job_name}, took={took_ms:.2f}ms, result={result.to_dict()}")
        return result
