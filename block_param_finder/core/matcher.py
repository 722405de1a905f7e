"""匹配策略：精确匹配为逐字节相等，部分匹配为区分大小写的子串包含。"""

from __future__ import annotations

from typing import Any

from block_param_finder.utils.value_format import is_text


def matches_value(value: Any, search_value: str, partial: bool) -> bool:
    # 非字符串值（数值、结构体等）不参与匹配
    if not is_text(value):
        return False
    if partial:
        return search_value in value
    return value == search_value
