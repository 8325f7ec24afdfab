from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class AggregationResult:
    events_scanned: int
    terms_aggregated: int
    entries_updated: int
    updated_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DecayResult:
    scanned: int
    decayed: int
    # 高于阈值的书目超过 decay_batch_size：本轮有书目未被处理
    truncated: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CleanupResult:
    deleted: int
    batches: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PoolPublishResult:
    slugs: list[str]
    clubs_total: int
    clubs_updated: int
    failed_club_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)
