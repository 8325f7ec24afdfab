from __future__ import annotations

from datetime import datetime

from loguru import logger

from bookclub.trending.config import TrendingConfig
from bookclub.trending.repository import TrendingRepository
from bookclub.trending.results import DecayResult


def decay_score(current: float, rate: float) -> float:
    return max(current * rate, 0.0)


async def decay_trending_scores(
    repo: TrendingRepository,
    config: TrendingConfig,
    now: datetime,
) -> DecayResult:
    """
    trendingScore 衰减任务（每日一次）

    - 只选取 trendingScore > decay_min_threshold 的书目，且单次最多 decay_batch_size 条；
      超出上限的部分本轮跳过，结果中以 truncated 标记
    - 低于阈值的书目不再被选中，分数保持不变（不归零）
    """
    logger.info(
        f"🔥 开始 trendingScore 衰减: rate={config.decay_rate}, "
        f"threshold={config.decay_min_threshold}, cap={config.decay_batch_size}"
    )

    # 多取一条，用于判断上限之外是否还有书目
    cap = config.decay_batch_size
    docs = await repo.list_books_above_trending_score(config.decay_min_threshold, cap + 1)
    truncated = len(docs) > cap
    docs = docs[:cap]
    if not docs:
        logger.info("没有高于阈值的书目，跳过衰减")
        return DecayResult(scanned=0, decayed=0, truncated=False)

    updates = []
    for doc in docs:
        current = _to_float((doc.to_dict() or {}).get("trendingScore"))
        updates.append((doc.reference, {"trendingScore": decay_score(current, config.decay_rate)}))

    decayed = await repo.commit_updates(updates)
    if truncated:
        logger.warning(f"衰减超出单次上限 {cap}，剩余书目将在后续轮次处理")

    logger.info(f"✅ 衰减完成: decayed={decayed}, at={now.isoformat()}")
    return DecayResult(scanned=len(docs), decayed=decayed, truncated=truncated)


def _to_float(value) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
