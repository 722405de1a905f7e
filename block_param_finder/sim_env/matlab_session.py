"""基于 matlab.engine 的 ModelSession 实现。

设计要点：
- matlab.engine 延迟导入，避免无 MATLAB 环境时导入失败
- 支持三种引擎来源：新启动 / 连接共享会话 / 外部注入（注入时不管理其生命周期）
- find_system 统一携带 LookUnderMasks/FollowLinks；非激活变体通过 MatchFilter 包含
- 所有引擎异常包装为 ModelSessionError 子类，核心层只认识本项目异常
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from block_param_finder.errors import (
    EngineConnectionError,
    ModelLoadError,
    ModelSessionError,
    ParamAccessError,
    ParamWriteError,
)
from block_param_finder.utils.logger import get_logger


log = get_logger(__name__)


class _MatlabExpr(str):
    """原样拼接进 MATLAB 表达式的片段（如函数句柄），不加引号。"""


ALL_VARIANTS_FILTER = _MatlabExpr("@Simulink.match.allVariants")


def _matlab_literal(value: Any) -> str:
    if isinstance(value, _MatlabExpr):
        return str(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    return "'" + str(value).replace("'", "''") + "'"


def _as_str_list(value: Any) -> List[str]:
    """find_system 返回的 cell 数组在 Python 侧为 list；单个结果时可能是 str。"""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    return [str(v) for v in value]


class MatlabEngineSession:
    """与 MATLAB/Simulink 交互的 ModelSession 实现。

    参数:
    - config: 完整配置字典（读取 matlab.* 段）
    - engine: 可选，外部提供的 MATLAB 引擎实例（不由本类管理生命周期）
    """

    def __init__(self, config: Optional[Mapping[str, Any]] = None, *, engine: Optional[Any] = None) -> None:
        matlab_cfg = dict((config or {}).get("matlab", {}) or {})
        self._engine_mode = str(matlab_cfg.get("engine", "new")).lower()
        self._shared_session = str(matlab_cfg.get("shared_session", "") or "")
        self._startup_paths = [str(p) for p in (matlab_cfg.get("startup_paths") or [])]
        self._look_under_masks = str(matlab_cfg.get("look_under_masks", "all"))
        self._follow_links = str(matlab_cfg.get("follow_links", "on"))

        self._eng: Optional[Any] = engine
        self._engine_owned = False

    def __enter__(self) -> "MatlabEngineSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # 资源管理 --------------------------------------------------------------
    def start(self) -> None:
        if self._eng is None:
            try:
                import matlab.engine  # 延迟导入，避免无引擎环境报错

                if self._engine_mode == "shared":
                    log.info("matlab.engine.connect", session=self._shared_session or "<first>")
                    if self._shared_session:
                        self._eng = matlab.engine.connect_matlab(self._shared_session)
                    else:
                        self._eng = matlab.engine.connect_matlab()
                    # 共享会话属于用户，不在 stop() 中退出
                    self._engine_owned = False
                else:
                    log.info("matlab.engine.start")
                    self._eng = matlab.engine.start_matlab()
                    self._engine_owned = True
            except Exception as e:
                raise EngineConnectionError(f"Failed to start or acquire MATLAB engine: {e}") from e

        for p in self._startup_paths:
            try:
                self._eng.addpath(p, nargout=0)
                log.info("matlab.addpath", path=p)
            except Exception as e:
                log.warning("matlab.addpath_failed", path=p, error=str(e))

    def stop(self) -> None:
        if self._eng is None:
            return
        if self._engine_owned:
            try:
                self._eng.quit()
            except Exception as e:
                raise EngineConnectionError(f"Failed to quit MATLAB engine: {e}") from e
            self._eng = None
            self._engine_owned = False
            log.info("matlab.engine.closed")

    @property
    def engine(self) -> Any:
        if self._eng is None:
            raise EngineConnectionError("MATLAB engine is not started. Call start() first.")
        return self._eng

    # 模型生命周期 -----------------------------------------------------------
    def is_loaded(self, model: str) -> bool:
        eng = self.engine
        try:
            return bool(eng.bdIsLoaded(model, nargout=1))
        except Exception as e:
            raise ModelSessionError(f"bdIsLoaded failed for '{model}': {e}") from e

    def load_model(self, model: str) -> None:
        eng = self.engine
        try:
            eng.load_system(model, nargout=0)
        except Exception as e:
            raise ModelLoadError(f"Could not load model '{model}': {e}") from e
        log.info("matlab.model.loaded", model=model)

    def close_model(self, model: str) -> None:
        eng = self.engine
        try:
            eng.close_system(model, 0, nargout=0)  # 0=不保存
        except Exception as e:
            raise ModelSessionError(f"Could not close model '{model}': {e}") from e
        log.info("matlab.model.closed", model=model)

    # 块内省 -----------------------------------------------------------------
    def _find_system_args(
        self,
        model: str,
        block_type: Optional[str],
        params: Optional[Mapping[str, str]],
        include_inactive_variants: bool,
    ) -> List[Any]:
        args: List[Any] = [model]
        if include_inactive_variants:
            args += ["MatchFilter", ALL_VARIANTS_FILTER]
        args += ["LookUnderMasks", self._look_under_masks, "FollowLinks", self._follow_links, "Type", "block"]
        if block_type:
            args += ["BlockType", block_type]
        for name, value in (params or {}).items():
            args += [name, value]
        return args

    def find_blocks(
        self,
        model: str,
        *,
        block_type: Optional[str] = None,
        params: Optional[Mapping[str, str]] = None,
        include_inactive_variants: bool = False,
    ) -> List[str]:
        args = self._find_system_args(model, block_type, params, include_inactive_variants)
        eng = self.engine
        try:
            if include_inactive_variants:
                # 函数句柄无法跨引擎边界传递，改为整条表达式求值
                expr = "find_system(" + ", ".join(_matlab_literal(a) for a in args) + ")"
                found = eng.eval(expr, nargout=1)
            else:
                found = eng.find_system(*args, nargout=1)
        except Exception as e:
            raise ModelSessionError(f"find_system failed on '{model}': {e}") from e
        return [b for b in _as_str_list(found) if b != model]

    def get_param(self, block: str, name: str) -> Any:
        eng = self.engine
        try:
            return eng.get_param(block, name, nargout=1)
        except Exception as e:
            raise ParamAccessError(f"Cannot read '{name}' on '{block}': {e}") from e

    def set_param(self, block: str, name: str, value: Any) -> None:
        eng = self.engine
        try:
            eng.set_param(block, name, self._to_matlab(value), nargout=0)
        except Exception as e:
            raise ParamWriteError(f"Cannot set '{name}' on '{block}': {e}") from e

    def dialog_parameters(self, block: str) -> List[str]:
        params = self.get_param(block, "DialogParameters")
        # MATLAB struct -> dict；无对话参数时返回空 double
        if isinstance(params, dict):
            return [str(k) for k in params.keys()]
        return []

    def model_references(self, model: str, *, include_inactive_variants: bool = False) -> List[str]:
        refs: List[str] = []
        for blk in self.find_blocks(model, block_type="ModelReference", include_inactive_variants=include_inactive_variants):
            refs.append(str(self.get_param(blk, "ModelName")))
        return refs

    # 建模 -------------------------------------------------------------------
    def new_model(self, name: str) -> None:
        eng = self.engine
        try:
            eng.new_system(name, nargout=0)
        except Exception as e:
            raise ModelLoadError(f"Could not create model '{name}': {e}") from e

    def add_block(self, source: str, dest: str, params: Optional[Mapping[str, Any]] = None) -> None:
        flat: List[Any] = []
        for k, v in (params or {}).items():
            flat += [k, self._to_matlab(v)]
        eng = self.engine
        try:
            eng.add_block(source, dest, *flat, nargout=0)
        except Exception as e:
            raise ParamWriteError(f"Could not add block '{dest}' from '{source}': {e}") from e

    def save_model(self, name: str, path: Optional[str] = None) -> None:
        eng = self.engine
        try:
            if path:
                eng.save_system(name, path, nargout=0)
            else:
                eng.save_system(name, nargout=0)
        except Exception as e:
            raise ModelSessionError(f"Could not save model '{name}': {e}") from e

    # 内部工具 ---------------------------------------------------------------
    @staticmethod
    def _to_matlab(value: Any) -> Any:
        """数值序列转为 matlab.double 行向量（如 Position），其余原样传递。"""
        if isinstance(value, (list, tuple)) and value and all(isinstance(v, (int, float)) for v in value):
            import matlab

            return matlab.double([float(v) for v in value])
        return value

    def describe(self) -> Dict[str, Any]:
        return {
            "engine_mode": self._engine_mode,
            "shared_session": self._shared_session,
            "owned": self._engine_owned,
            "look_under_masks": self._look_under_masks,
            "follow_links": self._follow_links,
        }
