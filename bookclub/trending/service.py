from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from bookclub.trending.repository import TrendingRepository


class SearchEventService:
    def __init__(self, repo: TrendingRepository):
        self._repo = repo

    async def record(self, query: str, now: Optional[datetime] = None) -> bool:
        """
        记录一次搜索事件（原始 query，规范化在聚合阶段进行）

        空白 query 不记录，返回 False。
        """
        if not query or not query.strip():
            return False
        await self._repo.add_search_event(query, now or datetime.now(timezone.utc))
        return True


class TrendingReadService:
    def __init__(self, repo: TrendingRepository):
        self._repo = repo

    async def top_books(self, limit: int) -> dict:
        if limit <= 0:
            raise ValueError("limit 必须 > 0")

        docs = await self._repo.list_top_books_by_search_score(limit)
        items = []
        for idx, doc in enumerate(docs, start=1):
            data = doc.to_dict() or {}
            items.append(
                {
                    "rank": idx,
                    "slug": data.get("slug") or doc.id,
                    "title": data.get("title") or "Untitled",
                    "author_name": data.get("authorName") or "Unknown",
                    "search_score_24h": int(data.get("search_score_24h") or 0),
                    "trending_score": float(data.get("trendingScore") or 0.0),
                }
            )

        return {
            "limit": limit,
            "generated_at": datetime.now(timezone.utc),
            "items": items,
        }

    async def club_pool(self, club_id: str) -> dict:
        snapshot = await self._repo.get_club(club_id)
        if snapshot is None:
            raise LookupError(f"读书会不存在: {club_id}")
        data = snapshot.to_dict() or {}
        return {
            "club_id": snapshot.id,
            "trending_pool": list(data.get("trendingPool") or []),
            "last_trending_update": data.get("lastTrendingUpdate"),
        }
