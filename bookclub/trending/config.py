from __future__ import annotations

from dataclasses import dataclass

# Firestore 单个 WriteBatch 最多 500 个写操作
MAX_BATCH_WRITES = 500


@dataclass(frozen=True)
class TrendingConfig:
    """
    热度流水线配置（由调用方显式注入各任务）

    - window_hours: 聚合回看窗口（小时）
    - top_terms_limit: 聚合只处理前 N 个规范化搜索词
    - retention_days: search_events 保留天数
    - cleanup_batch_size / cleanup_pause_seconds: 清理任务每批删除条数与批间停顿
    - decay_batch_size: 衰减任务单次最多处理的书目数（超出部分本轮跳过）
    - decay_rate: 每次衰减的乘数
    - decay_min_threshold: trendingScore 不高于该值的书目不再参与衰减（分数冻结）
    - pool_size: 推送到每个读书会的 trendingPool 长度
    """

    window_hours: int = 24
    top_terms_limit: int = 50
    retention_days: int = 7
    cleanup_batch_size: int = 300
    cleanup_pause_seconds: float = 0.05
    decay_batch_size: int = 300
    decay_rate: float = 0.9
    decay_min_threshold: float = 0.5
    pool_size: int = 10
    search_events_collection: str = "search_events"
    books_collection: str = "books"
    clubs_collection: str = "clubs"

    def __post_init__(self) -> None:
        if self.window_hours <= 0:
            raise ValueError("window_hours 必须 > 0")
        # 聚合阶段的全部更新写在同一个 batch 里
        if self.top_terms_limit <= 0 or self.top_terms_limit > MAX_BATCH_WRITES:
            raise ValueError(f"top_terms_limit 必须在 [1, {MAX_BATCH_WRITES}] 范围内")
        if self.retention_days <= 0:
            raise ValueError("retention_days 必须 > 0")
        for name in ("cleanup_batch_size", "decay_batch_size"):
            value = getattr(self, name)
            if value <= 0 or value > MAX_BATCH_WRITES:
                raise ValueError(f"{name} 必须在 [1, {MAX_BATCH_WRITES}] 范围内")
        if self.cleanup_pause_seconds < 0:
            raise ValueError("cleanup_pause_seconds 不能为负数")
        if self.decay_rate <= 0 or self.decay_rate > 1:
            raise ValueError("decay_rate 必须在 (0, 1] 范围内")
        if self.decay_min_threshold < 0:
            raise ValueError("decay_min_threshold 不能为负数")
        if self.pool_size <= 0:
            raise ValueError("pool_size 必须 > 0")
        for name in ("search_events_collection", "books_collection", "clubs_collection"):
            if not getattr(self, name):
                raise ValueError(f"{name} 不能为空")
