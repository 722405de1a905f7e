"""模型加载守卫：作用域内按需加载模型，退出时只卸载自己加载过的那些。

加载是进程级副作用（模型对同一工作区的其他使用者可见），因此：
- 调用前已加载的模型保持原状
- 本守卫加载的模型在任何退出路径（正常、提前返回、异常）上都被关闭且不保存
"""

from __future__ import annotations

from typing import List, Optional

from block_param_finder.core.diagnostics import UNLOAD_FAILED, DiagnosticLog
from block_param_finder.errors import ModelSessionError
from block_param_finder.sim_env.model_session import ModelSession
from block_param_finder.utils.logger import get_logger


log = get_logger(__name__)


class ModelLoadGuard:
    def __init__(self, session: ModelSession, diagnostics: Optional[DiagnosticLog] = None) -> None:
        self._session = session
        self._diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()
        self._loaded: List[str] = []

    def __enter__(self) -> "ModelLoadGuard":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    @property
    def loaded_by_guard(self) -> List[str]:
        return list(self._loaded)

    def owns(self, model: str) -> bool:
        return model in self._loaded

    def ensure_loaded(self, model: str) -> bool:
        """确保模型已加载；返回 True 表示本次由守卫加载。

        加载失败时抛出 ModelLoadError，由调用方决定致命还是降级。
        """
        if self._session.is_loaded(model):
            return False
        log.info("guard.load", model=model)
        self._session.load_model(model)
        self._loaded.append(model)
        return True

    def release(self) -> None:
        # 后加载的先卸载
        while self._loaded:
            model = self._loaded.pop()
            try:
                if self._session.is_loaded(model):
                    self._session.close_model(model)
                    log.info("guard.unload", model=model)
            except ModelSessionError as e:
                self._diagnostics.warn(UNLOAD_FAILED, f"Could not close model '{model}': {e}", model=model)
