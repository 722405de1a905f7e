"""Utility layer.

提供与业务无关的通用工具：
- 日志封装（结构化日志）
- YAML 配置加载
- 参数值展示格式化与结果表格
"""

__all__ = [
    "logger",
    "config_loader",
    "value_format",
    "results_table",
]
