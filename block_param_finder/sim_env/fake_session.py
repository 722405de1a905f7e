"""Fake 建模会话，用于本地开发与 CI（无需 MATLAB）。

用途：
- 在无 MATLAB 环境下验证搜索/替换核心的数据流、加载/卸载纪律与日志
- 模拟 find_system/get_param/set_param/DialogParameters 的最小行为

设计说明：
- 内存工作区（已加载模型）与“磁盘”（已保存模型）分离：
  load_model 从磁盘复制，close_model 丢弃内存副本（等价 close_system(m, 0)），
  save_model 把内存副本写回磁盘
- 对话参数集合来自 block_library 查找表，未知参数读写均报错
- 变体子系统采用 label 模式：子选择的 VariantControl 与 LabelModeActiveChoice
  不一致即为非激活分支，其全部后代随之非激活
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from block_param_finder.errors import ModelLoadError, ModelSessionError, ParamAccessError, ParamWriteError
from block_param_finder.sim_env import block_library
from block_param_finder.utils.logger import get_logger


log = get_logger(__name__)


@dataclass
class _FakeBlock:
    path: str
    block_type: str
    dialog: Dict[str, Any]
    properties: Dict[str, Any]
    is_variant: bool = False

    @property
    def parent(self) -> str:
        return self.path.rsplit("/", 1)[0]


@dataclass
class _FakeModel:
    name: str
    # 插入顺序即层级深度优先顺序（父块总是先于子块加入）
    blocks: Dict[str, _FakeBlock] = field(default_factory=dict)


class FakeModelSession:
    """最小可用的建模环境假实现，满足 ModelSession 协议。"""

    def __init__(self, *, indexed_queries: bool = True) -> None:
        self._disk: Dict[str, _FakeModel] = {}
        self._memory: Dict[str, _FakeModel] = {}
        # False 时模拟 find_system 不支持按参数值查询
        self._indexed_queries = indexed_queries
        # 调用记录，便于测试断言加载/卸载纪律
        self.load_calls: List[str] = []
        self.close_calls: List[str] = []
        self.find_calls: List[Tuple[str, Optional[str], Tuple[Tuple[str, str], ...], bool]] = []

    # 会话 -----------------------------------------------------------------
    def start(self) -> None:
        log.info("fake_session.start")

    def stop(self) -> None:
        log.info("fake_session.stop")

    def __enter__(self) -> "FakeModelSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    @property
    def loaded_models(self) -> List[str]:
        return list(self._memory.keys())

    @property
    def saved_models(self) -> List[str]:
        return list(self._disk.keys())

    # 模型生命周期 -----------------------------------------------------------
    def is_loaded(self, model: str) -> bool:
        return model in self._memory

    def load_model(self, model: str) -> None:
        self.load_calls.append(model)
        if model in self._memory:
            return
        if model not in self._disk:
            raise ModelLoadError(f"'{model}' not found")
        self._memory[model] = copy.deepcopy(self._disk[model])
        log.info("fake_session.load_model", model=model)

    def close_model(self, model: str) -> None:
        self.close_calls.append(model)
        if self._memory.pop(model, None) is not None:
            log.info("fake_session.close_model", model=model)

    def new_model(self, name: str) -> None:
        if name in self._memory:
            raise ModelLoadError(f"A model named '{name}' is already loaded")
        self._memory[name] = _FakeModel(name=name)
        log.info("fake_session.new_model", model=name)

    def save_model(self, name: str, path: Optional[str] = None) -> None:
        model = self._loaded(name)
        self._disk[name] = copy.deepcopy(model)
        log.info("fake_session.save_model", model=name, path=path)

    # 建模 -------------------------------------------------------------------
    def add_block(self, source: str, dest: str, params: Optional[Mapping[str, Any]] = None) -> None:
        if "/" not in dest:
            raise ParamWriteError(f"Invalid destination block path '{dest}'")
        model = self._loaded(dest.split("/", 1)[0])
        parent = dest.rsplit("/", 1)[0]
        if parent != model.name:
            parent_blk = model.blocks.get(parent)
            if parent_blk is None or parent_blk.block_type != "SubSystem":
                raise ParamWriteError(f"Cannot add block to '{parent}': not a subsystem")
        if dest in model.blocks:
            raise ParamWriteError(f"A block named '{dest}' already exists")
        try:
            template = block_library.lookup(source)
        except KeyError as e:
            raise ParamWriteError(str(e)) from e

        blk = _FakeBlock(
            path=dest,
            block_type=template.block_type,
            dialog=dict(template.dialog),
            properties={
                "Name": dest.rsplit("/", 1)[1],
                "Parent": parent,
                "BlockType": template.block_type,
                "Position": [0, 0, 30, 30],
                "Tag": "",
                "Description": "",
            },
            is_variant=template.is_variant,
        )
        model.blocks[dest] = blk
        for name, value in (params or {}).items():
            self._write(blk, name, value)
        log.info("fake_session.add_block", source=source, dest=dest)

    # 块内省 -----------------------------------------------------------------
    def find_blocks(
        self,
        model: str,
        *,
        block_type: Optional[str] = None,
        params: Optional[Mapping[str, str]] = None,
        include_inactive_variants: bool = False,
    ) -> List[str]:
        m = self._memory.get(model)
        if m is None:
            raise ModelSessionError(f"Model '{model}' is not loaded")
        params = dict(params or {})
        self.find_calls.append((model, block_type, tuple(sorted(params.items())), include_inactive_variants))
        if params:
            if not self._indexed_queries:
                raise ModelSessionError("Parameter/value search is not supported by this session")
            for name in params:
                if not block_library.known_parameter(name):
                    raise ModelSessionError(f"Invalid Simulink object parameter name '{name}'")

        found: List[str] = []
        for blk in m.blocks.values():
            if not include_inactive_variants and self._is_inactive(m, blk):
                continue
            if block_type and blk.block_type != block_type:
                continue
            if any(self._raw(blk, k) != v for k, v in params.items()):
                continue
            found.append(blk.path)
        return found

    def get_param(self, block: str, name: str) -> Any:
        blk = self._block(block)
        if name == "DialogParameters":
            return {k: {"Prompt": k, "Type": "string"} for k in blk.dialog}
        if name in blk.dialog:
            return blk.dialog[name]
        if name in blk.properties:
            return blk.properties[name]
        raise ParamAccessError(f"{blk.block_type} block does not have a parameter named '{name}'")

    def set_param(self, block: str, name: str, value: Any) -> None:
        self._write(self._block(block), name, value)

    def dialog_parameters(self, block: str) -> List[str]:
        return list(self._block(block).dialog.keys())

    def model_references(self, model: str, *, include_inactive_variants: bool = False) -> List[str]:
        refs = self.find_blocks(model, block_type="ModelReference", include_inactive_variants=include_inactive_variants)
        return [str(self.get_param(b, "ModelName")) for b in refs]

    # 内部工具 ---------------------------------------------------------------
    def _loaded(self, model: str) -> _FakeModel:
        m = self._memory.get(model)
        if m is None:
            raise ModelSessionError(f"Model '{model}' is not loaded")
        return m

    def _block(self, path: str) -> _FakeBlock:
        m = self._memory.get(path.split("/", 1)[0])
        blk = m.blocks.get(path) if m is not None else None
        if blk is None:
            raise ParamAccessError(f"Invalid Simulink object name: '{path}'")
        return blk

    @staticmethod
    def _raw(blk: _FakeBlock, name: str) -> Any:
        if name in blk.dialog:
            return blk.dialog[name]
        return blk.properties.get(name)

    @staticmethod
    def _write(blk: _FakeBlock, name: str, value: Any) -> None:
        if name in block_library.READ_ONLY_PROPERTIES:
            raise ParamWriteError(f"'{name}' parameter of {blk.block_type} block '{blk.path}' is read-only")
        if name in blk.dialog:
            blk.dialog[name] = value
            if name == "ModelName":
                blk.dialog["ModelNameDialog"] = value
        elif name in blk.properties:
            blk.properties[name] = value
        else:
            raise ParamWriteError(f"{blk.block_type} block does not have a parameter named '{name}'")

    def _is_inactive(self, model: _FakeModel, blk: _FakeBlock) -> bool:
        child = blk
        while child.parent != model.name:
            parent = model.blocks[child.parent]
            if parent.is_variant and not self._is_active_choice(model, parent, child):
                return True
            child = parent
        return False

    @staticmethod
    def _is_active_choice(model: _FakeModel, variant: _FakeBlock, choice: _FakeBlock) -> bool:
        active = variant.dialog.get("LabelModeActiveChoice", "")
        if active:
            return choice.dialog.get("VariantControl", "") == active
        # 未指定激活标签时，第一个子选择为激活分支
        for b in model.blocks.values():
            if b.parent == variant.path:
                return b.path == choice.path
        return False
