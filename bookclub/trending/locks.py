from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Optional, Protocol


class _RedisLike(Protocol):
    @property
    def client(self) -> Any: ...


@dataclass(frozen=True)
class JobLockKeys:
    lock_prefix: str = "trending:job_lock:"

    @classmethod
    def with_prefix(cls, prefix: str) -> "JobLockKeys":
        """
        生成带前缀的 Key 集合（用于多环境/多项目共用 Redis 时隔离数据）
        """
        p = prefix or ""
        return cls(lock_prefix=f"{p}trending:job_lock:")

    def lock(self, job_name: str) -> str:
        return f"{self.lock_prefix}{job_name}"


class JobLockRepository:
    """同一任务同一时刻只允许一个实例运行（SET NX EX）"""

    def __init__(self, redis_client: _RedisLike, *, keys: JobLockKeys | None = None):
        self._redis_client = redis_client
        self._keys = keys or JobLockKeys()

    @property
    def keys(self) -> JobLockKeys:
        return self._keys

    async def try_acquire(self, job_name: str, ttl_seconds: int) -> Optional[str]:
        """
        获取任务锁，成功时返回本次持有者的 token（释放时校验），失败返回 None
        """
        token = uuid.uuid4().hex
        acquired = await self._redis_client.client.set(
            self._keys.lock(job_name), token, nx=True, ex=ttl_seconds
        )
        return token if acquired else None

    async def release(self, job_name: str, token: str) -> bool:
        """
        仅当锁仍由 token 持有时删除（锁已过期并被其他实例获取时不动它）

        使用 Lua 保证 GET + DEL 原子执行。
        """
        script = """
        if redis.call('GET', KEYS[1]) == ARGV[1] then
            return redis.call('DEL', KEYS[1])
        end
        return 0
        """
        released = await self._redis_client.client.eval(
            script, 1, self._keys.lock(job_name), token
        )
        return bool(released)
