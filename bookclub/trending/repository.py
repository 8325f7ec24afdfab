from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from google.cloud.firestore_v1.base_query import BaseQuery, FieldFilter
from loguru import logger

from bookclub.trending.config import TrendingConfig


class _FirestoreLike(Protocol):
    @property
    def client(self) -> Any: ...


class TrendingRepository:
    """
    热度流水线的 Firestore 访问层

    只封装查询与批量写，不含业务逻辑；返回值均为 DocumentSnapshot
    （使用 .id / .reference / .to_dict()）。
    """

    def __init__(self, firestore_client: _FirestoreLike, *, config: TrendingConfig):
        self._firestore_client = firestore_client
        self._cfg = config

    @property
    def _db(self) -> Any:
        return self._firestore_client.client

    def _search_events(self) -> Any:
        return self._db.collection(self._cfg.search_events_collection)

    def _books(self) -> Any:
        return self._db.collection(self._cfg.books_collection)

    def _clubs(self) -> Any:
        return self._db.collection(self._cfg.clubs_collection)

    # ========================================
    # search_events
    # ========================================
    async def add_search_event(self, query: str, timestamp: datetime) -> str:
        _, ref = await self._search_events().add({"query": query, "timestamp": timestamp})
        return ref.id

    async def list_search_events_since(self, threshold: datetime) -> list[Any]:
        """窗口内全部事件（不分页）"""
        return await self._search_events().where(
            filter=FieldFilter("timestamp", ">=", threshold)
        ).get()

    async def list_expired_search_events(self, cutoff: datetime, limit: int) -> list[Any]:
        if limit <= 0:
            return []
        return await (
            self._search_events()
            .where(filter=FieldFilter("timestamp", "<", cutoff))
            .order_by("timestamp", direction=BaseQuery.ASCENDING)
            .limit(limit)
            .get()
        )

    # ========================================
    # books
    # ========================================
    async def find_book_by_slug(self, slug: str) -> Optional[Any]:
        if not slug:
            return None
        docs = await self._books().where(filter=FieldFilter("slug", "==", slug)).limit(1).get()
        return docs[0] if docs else None

    async def list_books_above_trending_score(self, threshold: float, limit: int) -> list[Any]:
        if limit <= 0:
            return []
        return await (
            self._books()
            .where(filter=FieldFilter("trendingScore", ">", threshold))
            .limit(limit)
            .get()
        )

    async def list_top_books_by_search_score(self, limit: int) -> list[Any]:
        if limit <= 0:
            return []
        return await (
            self._books()
            .order_by("search_score_24h", direction=BaseQuery.DESCENDING)
            .limit(limit)
            .get()
        )

    # ========================================
    # clubs
    # ========================================
    async def list_clubs(self) -> list[Any]:
        return await self._clubs().get()

    async def get_club(self, club_id: str) -> Optional[Any]:
        if not club_id:
            return None
        snapshot = await self._clubs().document(club_id).get()
        return snapshot if snapshot.exists else None

    async def set_club_trending_pool(self, club_ref: Any, slugs: Sequence[str], updated_at: datetime) -> None:
        await club_ref.update({"trendingPool": list(slugs), "lastTrendingUpdate": updated_at})

    # ========================================
    # 批量写（单个 WriteBatch，原子提交）
    # ========================================
    async def commit_updates(self, updates: Sequence[tuple[Any, dict[str, Any]]]) -> int:
        batch = self._db.batch()
        for ref, fields in updates:
            batch.update(ref, fields)
        try:
            await batch.commit()
        except Exception as exc:
            logger.error(f"批量更新提交失败: size={len(updates)}, err={exc}")
            raise
        return len(updates)

    async def delete_documents(self, refs: Sequence[Any]) -> int:
        if not refs:
            return 0
        batch = self._db.batch()
        for ref in refs:
            batch.delete(ref)
        try:
            await batch.commit()
        except Exception as exc:
            logger.error(f"批量删除提交失败: size={len(refs)}, err={exc}")
            raise
        return len(refs)
