"""建模环境会话协议，隐藏具体 matlab.engine 依赖，便于 Fake/替换。

本文件提供：
- ModelSession 协议：核心搜索/替换层所需的全部块内省能力
- 会话异常的统一出口（定义见 block_param_finder.errors）

如何扩展：
- 真实会话：MatlabEngineSession（matlab_session.py），基于 find_system/get_param/set_param
- 单元测试：FakeModelSession（fake_session.py），纯内存模型树
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol

from block_param_finder.errors import (
    EngineConnectionError,
    ModelLoadError,
    ModelSessionError,
    ParamAccessError,
    ParamWriteError,
)


__all__ = [
    "ModelSession",
    "ModelSessionError",
    "EngineConnectionError",
    "ModelLoadError",
    "ParamAccessError",
    "ParamWriteError",
]


class ModelSession(Protocol):
    """建模环境会话协议。

    约定：
    - 块以斜杠分隔的完整路径标识，如 "ExampleModel/SubSystem/Gain4"
    - find_blocks 只返回块，不返回模型根本身；顺序为层级深度优先
    - 失败通过 ModelSessionError 子类抛出，不返回哨兵值
    """

    # 模型生命周期 -----------------------------------------------------------
    def is_loaded(self, model: str) -> bool: ...
    def load_model(self, model: str) -> None: ...
    def close_model(self, model: str) -> None: ...

    # 块内省 -----------------------------------------------------------------
    def find_blocks(
        self,
        model: str,
        *,
        block_type: Optional[str] = None,
        params: Optional[Mapping[str, str]] = None,
        include_inactive_variants: bool = False,
    ) -> List[str]: ...

    def get_param(self, block: str, name: str) -> Any: ...
    def set_param(self, block: str, name: str, value: Any) -> None: ...
    def dialog_parameters(self, block: str) -> List[str]: ...

    def model_references(self, model: str, *, include_inactive_variants: bool = False) -> List[str]: ...

    # 建模（示例模型/功能测试） ----------------------------------------------
    def new_model(self, name: str) -> None: ...
    def add_block(self, source: str, dest: str, params: Optional[Mapping[str, Any]] = None) -> None: ...
    def save_model(self, name: str, path: Optional[str] = None) -> None: ...
