"""搜索条件与匹配记录（纯数据）。"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from typing import Dict

from block_param_finder.errors import InsufficientArgsError


BLOCK_TYPE_PROPERTY = "BlockType"


def normalize_model_name(model: str) -> str:
    """去掉目录与 .slx/.mdl 扩展名：'models/Foo.slx' -> 'Foo'。"""
    base = os.path.basename(str(model).strip().replace("\\", "/"))
    stem, ext = os.path.splitext(base)
    if ext.lower() in {".slx", ".mdl"}:
        return stem
    return base


@dataclass(frozen=True)
class MatchRecord:
    """一条匹配结果：块路径、参数名、当前值。"""

    block_path: str
    property_name: str
    current_value: str

    @property
    def model(self) -> str:
        return self.block_path.split("/", 1)[0]

    def as_dict(self) -> Dict[str, str]:
        return {
            "BlockPath": self.block_path,
            "PropertyName": self.property_name,
            "CurrentValue": self.current_value,
        }


@dataclass(frozen=True)
class SearchCriteria:
    """一次搜索的不可变输入。

    - block_type 为空表示不过滤块类型
    - search_value 为空表示列表模式（此时必须给出 block_type）
    - property_name 为空时：列表模式输出 BlockType；搜索模式遍历全部对话参数
    """

    model: str
    block_type: str = ""
    search_value: str = ""
    property_name: str = ""
    new_value: str = ""
    partial_match: bool = False
    search_all_variants: bool = False
    include_model_references: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "model", normalize_model_name(self.model))
        for name in ("block_type", "search_value", "property_name", "new_value"):
            value = getattr(self, name)
            object.__setattr__(self, name, "" if value is None else str(value))

    @property
    def listing_mode(self) -> bool:
        return not self.search_value

    @property
    def wants_replacement(self) -> bool:
        return bool(self.new_value)

    def validate(self) -> None:
        if not self.model:
            raise ValueError("model name must not be empty")
        if not self.block_type and not self.search_value:
            raise InsufficientArgsError(
                "At least one of block_type or search_value must be provided."
            )
