from __future__ import annotations

import asyncio

from loguru import logger

from bookclub.core.config import settings
from bookclub.core.firestore_client import firestore_client
from bookclub.core.logger import setup_logger
from bookclub.core.redis_client import redis_client
from bookclub.trending.locks import JobLockKeys, JobLockRepository
from bookclub.trending.repository import TrendingRepository
from bookclub.trending.runner import JobRunner


async def run_once(job_name: str) -> None:
    await firestore_client.connect()
    if settings.JOB_LOCK_ENABLED:
        await redis_client.connect()
    try:
        config = settings.trending_config()
        repo = TrendingRepository(firestore_client, config=config)
        locks = (
            JobLockRepository(redis_client, keys=JobLockKeys.with_prefix(settings.TRENDING_KEY_PREFIX))
            if settings.JOB_LOCK_ENABLED
            else None
        )
        runner = JobRunner(repo, config, locks=locks, lock_ttl_seconds=settings.JOB_LOCK_TTL_SECONDS)
        result = await runner.run(job_name)
        logger.info(f"定时任务执行结果: job={job_name}, executed={result is not None}")
    finally:
        await redis_client.close()
        await firestore_client.close()


def main(job_name: str) -> None:
    setup_logger()
    asyncio.run(run_once(job_name))
