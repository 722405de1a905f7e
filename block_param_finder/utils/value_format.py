"""参数值到展示字符串的转换。

get_param 返回值并不总是字符串：matlab.double、逻辑量、结构体等都可能出现。
列表模式需要把它们统一转成可读字符串；搜索模式只比较字符串值。
"""

from __future__ import annotations

from typing import Any

import numpy as np


NOT_AVAILABLE = "<N/A>"


def is_text(value: Any) -> bool:
    """仅 str 参与匹配（对应 MATLAB ischar）。"""
    return isinstance(value, str)


def _format_scalar(x: Any) -> str:
    if isinstance(x, (bool, np.bool_)):
        return "on" if bool(x) else "off"
    if isinstance(x, (int, np.integer)):
        return str(int(x))
    if isinstance(x, (float, np.floating)):
        # 15 位有效数字，与 MATLAB num2str(x, 15) 一致
        return f"{float(x):.15g}"
    return str(x)


def to_display_string(value: Any) -> str:
    """尽量自然地把参数值转成一行字符串。

    - str 原样返回
    - None -> ""
    - 标量数值 -> %.15g 格式；布尔 -> on/off
    - 序列/matlab.double/ndarray -> "[a b c]"（MATLAB 行向量风格）
    - dict（MATLAB struct）-> "<struct: k1, k2>"
    """
    if value is None:
        return ""
    if is_text(value):
        return value
    if isinstance(value, dict):
        return "<struct: " + ", ".join(str(k) for k in value.keys()) + ">"
    if isinstance(value, (bool, int, float, np.generic)):
        return _format_scalar(value)
    try:
        arr = np.asarray(value, dtype=object).reshape(-1)
    except Exception:
        return str(value)
    if arr.size == 1:
        return _format_scalar(arr[0])
    return "[" + " ".join(_format_scalar(x) for x in arr) + "]"
