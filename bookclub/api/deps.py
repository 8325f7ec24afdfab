# 依赖注入（仓储 / 服务 / 任务执行器）
from typing import Optional

from fastapi import Depends

from bookclub.core.config import settings
from bookclub.core.firestore_client import FirestoreClient, get_firestore_client
from bookclub.core.redis_client import RedisClient, get_redis_client
from bookclub.trending.locks import JobLockKeys, JobLockRepository
from bookclub.trending.repository import TrendingRepository
from bookclub.trending.runner import JobRunner
from bookclub.trending.service import SearchEventService, TrendingReadService


def get_trending_repository(
    firestore: FirestoreClient = Depends(get_firestore_client),
) -> TrendingRepository:
    return TrendingRepository(firestore, config=settings.trending_config())


def get_search_event_service(
    repo: TrendingRepository = Depends(get_trending_repository),
) -> SearchEventService:
    return SearchEventService(repo)


def get_trending_read_service(
    repo: TrendingRepository = Depends(get_trending_repository),
) -> TrendingReadService:
    return TrendingReadService(repo)


def get_job_lock_repository(
    redis: RedisClient = Depends(get_redis_client),
) -> Optional[JobLockRepository]:
    # 关闭锁时由调度方自己保证同一任务不并发
    if not settings.JOB_LOCK_ENABLED:
        return None
    return JobLockRepository(redis, keys=JobLockKeys.with_prefix(settings.TRENDING_KEY_PREFIX))


def get_job_runner(
    repo: TrendingRepository = Depends(get_trending_repository),
    locks: Optional[JobLockRepository] = Depends(get_job_lock_repository),
) -> JobRunner:
    return JobRunner(
        repo,
        settings.trending_config(),
        locks=locks,
        lock_ttl_seconds=settings.JOB_LOCK_TTL_SECONDS,
    )
