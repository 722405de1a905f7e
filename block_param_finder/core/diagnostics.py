"""非致命诊断：收集并同步输出为结构化告警日志。

调用方既可以从 DiagnosticLog 读取，也可以在日志中看到 finder.diagnostic 事件；
任何降级处理都不会被静默吞掉。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List

from block_param_finder.utils.logger import get_logger


log = get_logger(__name__)


LOAD_FAILED = "LoadFailed"
SET_PARAM_FAILED = "SetParamFailed"
NO_SEARCH_VALUE = "NoSearchValue"
CHANGES_DISCARDED = "ChangesDiscarded"
UNLOAD_FAILED = "UnloadFailed"
SEARCH_FAILED = "SearchFailed"


@dataclass(frozen=True)
class Diagnostic:
    code: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)


class DiagnosticLog:
    """按发生顺序累积的诊断列表。"""

    def __init__(self) -> None:
        self._items: List[Diagnostic] = []

    def warn(self, code: str, message: str, **context: Any) -> Diagnostic:
        diag = Diagnostic(code=code, message=message, context=dict(context))
        self._items.append(diag)
        log.warning("finder.diagnostic", code=code, message=message, **context)
        return diag

    @property
    def codes(self) -> List[str]:
        return [d.code for d in self._items]

    def of(self, code: str) -> List[Diagnostic]:
        return [d for d in self._items if d.code == code]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)
