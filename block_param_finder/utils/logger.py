"""统一结构化日志封装。

为什么：
- 搜索/替换过程中的非致命异常（模型加载失败、参数写入失败等）需要可观测
- 统一由本模块提供 get_logger，避免到处配置日志，减少耦合

如何使用：
- 在任何模块：from block_param_finder.utils.logger import get_logger; log = get_logger(__name__)
- 记录：log.info("message", key=value)
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional, Union

import structlog


_CONFIGURED = False


def _stderr_logger(*args: Any) -> "structlog.PrintLogger":
    # 每次取当前 sys.stderr，stdout 只留给命令行结果输出
    return structlog.PrintLogger(sys.stderr)


def configure_logging(level: Union[int, str] = logging.INFO, *, force: bool = False) -> None:
    """全局一次性配置结构化日志。

    设计考量：
    - 延迟配置：避免模块导入时产生副作用
    - 幂等：重复调用不改变状态（除非 force=True，例如 CLI 根据配置调整级别）
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=_stderr_logger,
        # 不缓存，force 重配的级别对模块级 logger 立即生效
        cache_logger_on_first_use=False,
    )

    _CONFIGURED = True


def get_logger(name: Optional[str] = None):
    """获取统一 Logger 接口（structlog，输出 JSON 行）。"""
    configure_logging()
    return structlog.get_logger(name or "app")
