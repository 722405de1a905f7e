"""搜索/替换入口：校验 -> 加载根模型 -> 遍历匹配 ->（可选）替换 -> 卸载自己加载的模型。

致命错误只有两类：InsufficientArgsError（条件不足，任何会话访问之前抛出）与
根模型无法加载（ModelLoadError）。其余异常均降级为诊断，见 SearchReport.diagnostics。
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from block_param_finder.core.criteria import MatchRecord, SearchCriteria
from block_param_finder.core.diagnostics import CHANGES_DISCARDED, NO_SEARCH_VALUE, DiagnosticLog
from block_param_finder.core.model_guard import ModelLoadGuard
from block_param_finder.core.replacer import ReplaceOutcome, replace
from block_param_finder.core.searcher import ModelSearcher
from block_param_finder.sim_env.model_session import ModelSession
from block_param_finder.utils.logger import get_logger


log = get_logger(__name__)


@dataclass
class SearchReport(Sequence):
    """一次调用的结果；本身即 MatchRecord 序列。"""

    criteria: SearchCriteria
    matches: List[MatchRecord] = field(default_factory=list)
    diagnostics: DiagnosticLog = field(default_factory=DiagnosticLog)
    replacement: Optional[ReplaceOutcome] = None
    visited_models: List[str] = field(default_factory=list)

    def __getitem__(self, index):
        return self.matches[index]

    def __len__(self) -> int:
        return len(self.matches)

    def __iter__(self) -> Iterator[MatchRecord]:
        return iter(self.matches)

    @property
    def block_paths(self) -> List[str]:
        return [m.block_path for m in self.matches]

    @property
    def warning_ids(self) -> List[str]:
        return self.diagnostics.codes

    def summary(self) -> str:
        c = self.criteria
        if c.listing_mode:
            what = f'blocks of type "{c.block_type}"'
            if not self.matches:
                return f'No {what} found in model "{c.model}".'
            return f"=== Found {len(self.matches)} {what} ==="
        if not self.matches:
            text = f'No matches found for value "{c.search_value}"'
            if c.property_name:
                text += f' in property "{c.property_name}"'
            return text + f' in model "{c.model}".'
        return f'=== Found {len(self.matches)} match(es) for "{c.search_value}" ==='


def run_search(session: ModelSession, criteria: SearchCriteria) -> SearchReport:
    criteria.validate()
    diagnostics = DiagnosticLog()
    report = SearchReport(criteria=criteria, diagnostics=diagnostics)

    with ModelLoadGuard(session, diagnostics) as guard:
        if guard.ensure_loaded(criteria.model):
            log.info("finder.model.loaded_for_search", model=criteria.model)

        searcher = ModelSearcher(session, criteria, guard, diagnostics)
        report.matches = searcher.run()
        report.visited_models = searcher.visited_models
        log.info(
            "finder.search.done",
            model=criteria.model,
            matches=len(report.matches),
            models=report.visited_models,
        )

        if criteria.wants_replacement:
            if criteria.listing_mode:
                diagnostics.warn(
                    NO_SEARCH_VALUE,
                    "NewValue is ignored when SearchValue is empty (listing mode). No blocks were modified.",
                    new_value=criteria.new_value,
                )
            elif report.matches:
                report.replacement = replace(
                    session,
                    report.matches,
                    criteria.new_value,
                    diagnostics,
                    model=criteria.model,
                )
                for model in report.replacement.touched_models:
                    if guard.owns(model):
                        diagnostics.warn(
                            CHANGES_DISCARDED,
                            f'Model "{model}" was loaded only for this search and is closed without saving; '
                            f"load it before calling to keep the replaced values.",
                            model=model,
                        )
    return report


def search_and_replace(
    session: ModelSession,
    model: str,
    block_type: str = "",
    search_value: str = "",
    property_name: str = "",
    new_value: str = "",
    partial_match: bool = False,
    search_all_variants: bool = False,
    include_model_references: bool = True,
) -> SearchReport:
    """在模型层级中搜索块参数值，可选替换。

    示例（session 为任意 ModelSession）：
    - search_and_replace(s, "myModel", block_type="Gain")
      列出所有 Gain 块
    - search_and_replace(s, "myModel", search_value="0.01")
      在所有块的全部对话参数中精确查找 '0.01'
    - search_and_replace(s, "myModel", search_value="0.01", property_name="SampleTime", new_value="-1")
      把 SampleTime='0.01' 的块改为 '-1'
    - search_and_replace(s, "myModel", search_value="Ctrl", property_name="SampleTime", partial_match=True)
      SampleTime 中包含 'Ctrl' 的块

    返回 SearchReport（MatchRecord 序列）；非致命问题见 report.diagnostics。
    """
    criteria = SearchCriteria(
        model=model,
        block_type=block_type,
        search_value=search_value,
        property_name=property_name,
        new_value=new_value,
        partial_match=partial_match,
        search_all_variants=search_all_variants,
        include_model_references=include_model_references,
    )
    return run_search(session, criteria)
