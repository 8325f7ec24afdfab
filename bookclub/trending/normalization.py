from __future__ import annotations


def normalize_query(query: object) -> str:
    """
    搜索词规范化（用于热度聚合）

    规则：
    - 转小写、去除首尾空白
    - 中间空白保持原样（书目 slug 做精确匹配，不做压缩）
    - 非字符串视为空串
    """
    if not query or not isinstance(query, str):
        return ""
    return query.lower().strip()
