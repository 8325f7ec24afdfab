from __future__ import annotations

from typing import Iterable

from bookclub.trending.normalization import normalize_query


def tally_queries(queries: Iterable[object]) -> dict[str, int]:
    """
    统计规范化后的搜索词出现次数（纯函数，便于单测）

    - 空串（含规范化后为空）直接跳过
    - 返回 dict 的迭代顺序即首次出现顺序
    """
    counts: dict[str, int] = {}
    for query in queries:
        term = normalize_query(query)
        if not term:
            continue
        counts[term] = counts.get(term, 0) + 1
    return counts


def top_terms(counts: dict[str, int], limit: int) -> list[tuple[str, int]]:
    """
    按次数降序取前 limit 个词

    sorted 是稳定排序：次数相同时保持首次出现顺序，不做额外 tie-break。
    """
    if limit <= 0:
        return []
    ranked = sorted(counts.items(), key=lambda x: x[1], reverse=True)
    return ranked[:limit]
