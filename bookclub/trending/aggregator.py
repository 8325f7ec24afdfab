"""
热度聚合任务（每日一次）

统计窗口内的 search_events，取前 N 个规范化搜索词，按 slug 精确匹配书目，
把次数写入 search_score_24h。
"""

from __future__ import annotations

from datetime import datetime, timedelta

from loguru import logger

from bookclub.trending.aggregation import tally_queries, top_terms
from bookclub.trending.config import TrendingConfig
from bookclub.trending.repository import TrendingRepository
from bookclub.trending.results import AggregationResult


async def aggregate_trending_scores(
    repo: TrendingRepository,
    config: TrendingConfig,
    now: datetime,
) -> AggregationResult:
    threshold = now - timedelta(hours=config.window_hours)
    logger.info(f"🌅 开始热度聚合: window={config.window_hours}h, threshold={threshold.isoformat()}")

    events = await repo.list_search_events_since(threshold)
    logger.info(f"📊 窗口内搜索事件: {len(events)}")

    counts = tally_queries((doc.to_dict() or {}).get("query") for doc in events)
    ranked = top_terms(counts, config.top_terms_limit)
    logger.info(f"🔥 参与聚合的搜索词: {len(ranked)} (distinct={len(counts)})")

    updates = []
    updated_ids: list[str] = []
    # slug 区分大小写，term 已是小写：书目 slug 本身须为小写才能命中
    for term, count in ranked:
        book = await repo.find_book_by_slug(term)
        if book is None:
            continue
        updates.append(
            (book.reference, {"search_score_24h": count, "last_score_update": now})
        )
        updated_ids.append(book.id)

    # 零更新也提交一次空 batch，保持每轮行为一致
    await repo.commit_updates(updates)
    logger.info(f"✅ 热度聚合完成: events={len(events)}, terms={len(ranked)}, updated={len(updated_ids)}")

    return AggregationResult(
        events_scanned=len(events),
        terms_aggregated=len(ranked),
        entries_updated=len(updated_ids),
        updated_ids=updated_ids,
    )
