"""Search/replace core.

只负责：
- 搜索条件校验、层级遍历、匹配、替换与诊断

不负责：
- 任何与 matlab.engine 绑定的实现（通过 ModelSession 协议交互）
"""

__all__ = [
    "criteria",
    "matcher",
    "diagnostics",
    "model_guard",
    "searcher",
    "replacer",
    "finder",
]
