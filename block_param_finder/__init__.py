"""Simulink 块参数搜索/替换工具。

该包聚焦于分层解耦：
- sim_env: 仅处理与建模环境（MATLAB/Simulink 或内存 Fake）的交互
- core: 与环境无关的遍历、匹配、替换逻辑
- utils: 仅提供通用工具（日志、配置、值格式化、结果表格）

注意：请通过 `main.py` / `cli.py` 装配运行时依赖，避免在包初始化时做副作用操作。
"""

from block_param_finder.core.finder import SearchReport, search_and_replace

__all__ = [
    "sim_env",
    "core",
    "utils",
    "search_and_replace",
    "SearchReport",
]
