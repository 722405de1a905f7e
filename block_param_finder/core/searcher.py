"""模型层级遍历与三种搜索模式。

模式：
1) 列表模式（无 search_value）：每个块一条记录，值为指定参数（尽力读取）或块类型
2) 指定参数搜索（search_value + property_name）：精确匹配优先走 find_system 参数查询，
   失败则退化为逐块读取；部分匹配始终逐块读取
3) 全参数搜索（仅 search_value）：遍历每个块的全部对话参数，一个块可产生多条记录

遍历：先搜索当前模型的块（层级深度优先），再按发现顺序依次完整搜索每个被引用模型。
使用显式栈代替递归；visited 集合按模型名去重，整个调用内共享，天然处理循环引用。
"""

from __future__ import annotations

from typing import Dict, List, Optional, Set

from block_param_finder.core.criteria import BLOCK_TYPE_PROPERTY, MatchRecord, SearchCriteria
from block_param_finder.core.diagnostics import LOAD_FAILED, SEARCH_FAILED, DiagnosticLog
from block_param_finder.core.matcher import matches_value
from block_param_finder.core.model_guard import ModelLoadGuard
from block_param_finder.errors import ModelLoadError, ModelSessionError
from block_param_finder.sim_env.model_session import ModelSession
from block_param_finder.utils.logger import get_logger
from block_param_finder.utils.value_format import NOT_AVAILABLE, to_display_string


log = get_logger(__name__)


class ModelSearcher:
    def __init__(
        self,
        session: ModelSession,
        criteria: SearchCriteria,
        guard: ModelLoadGuard,
        diagnostics: DiagnosticLog,
    ) -> None:
        self._session = session
        self._criteria = criteria
        self._guard = guard
        self._diagnostics = diagnostics
        self._visited: Set[str] = set()
        self._visit_order: List[str] = []

    @property
    def visited_models(self) -> List[str]:
        return list(self._visit_order)

    def run(self) -> List[MatchRecord]:
        """从根模型开始遍历；根模型需已由调用方加载。"""
        c = self._criteria
        results: List[MatchRecord] = []
        stack: List[str] = [c.model]
        while stack:
            model = stack.pop()
            if model in self._visited:
                continue
            # 加载失败的引用同样记入 visited，每个模型只尝试一次
            self._visited.add(model)
            if model != c.model and not self._try_load_reference(model):
                continue
            self._visit_order.append(model)

            try:
                records = self._search_model(model)
                refs = self._references(model)
            except ModelSessionError as e:
                # 根模型出错仍为致命；被引用模型出错只跳过该模型
                if model == c.model:
                    raise
                self._diagnostics.warn(
                    SEARCH_FAILED,
                    f'Could not search referenced model "{model}": {e}',
                    model=model,
                )
                continue
            results.extend(records)

            if refs:
                pending: List[str] = []
                for ref in refs:
                    if ref not in self._visited and ref not in pending:
                        pending.append(ref)
                # 逆序压栈，保证按发现顺序出栈
                stack.extend(reversed(pending))
        return results

    def _references(self, model: str) -> List[str]:
        c = self._criteria
        if not c.include_model_references:
            return []
        return self._session.model_references(model, include_inactive_variants=c.search_all_variants)

    def _try_load_reference(self, model: str) -> bool:
        try:
            self._guard.ensure_loaded(model)
        except ModelLoadError as e:
            self._diagnostics.warn(
                LOAD_FAILED,
                f'Could not load referenced model "{model}": {e}',
                model=model,
            )
            return False
        return True

    # ---------------------------
    # 单模型搜索
    # ---------------------------
    def _search_model(self, model: str) -> List[MatchRecord]:
        c = self._criteria
        log.info("search.model.start", model=model, block_type=c.block_type or None, property=c.property_name or None)
        if c.listing_mode:
            records = self._list_blocks(model)
        elif c.property_name:
            records = self._search_property(model)
        else:
            records = self._search_all_properties(model)
        # 模型根本身永不作为结果
        records = [r for r in records if r.block_path != model]
        log.info("search.model.done", model=model, matches=len(records))
        return records

    def _find(self, model: str, params: Optional[Dict[str, str]] = None) -> List[str]:
        c = self._criteria
        return self._session.find_blocks(
            model,
            block_type=c.block_type or None,
            params=params or None,
            include_inactive_variants=c.search_all_variants,
        )

    def _list_blocks(self, model: str) -> List[MatchRecord]:
        c = self._criteria
        records: List[MatchRecord] = []
        for blk in self._find(model):
            if c.property_name:
                try:
                    value = to_display_string(self._session.get_param(blk, c.property_name))
                except ModelSessionError:
                    value = NOT_AVAILABLE
                records.append(MatchRecord(blk, c.property_name, value))
            else:
                try:
                    block_type = to_display_string(self._session.get_param(blk, BLOCK_TYPE_PROPERTY))
                except ModelSessionError:
                    block_type = NOT_AVAILABLE
                records.append(MatchRecord(blk, BLOCK_TYPE_PROPERTY, block_type))
        return records

    def _search_property(self, model: str) -> List[MatchRecord]:
        c = self._criteria
        if not c.partial_match:
            try:
                blocks = self._find(model, {c.property_name: c.search_value})
            except ModelSessionError as e:
                # 参数值查询失败（未知参数名、不支持的查询等）一律退化为逐块扫描
                log.debug("search.indexed_query_failed", model=model, property=c.property_name, error=str(e))
            else:
                return [MatchRecord(b, c.property_name, c.search_value) for b in blocks]
        return self._scan_property(model)

    def _scan_property(self, model: str) -> List[MatchRecord]:
        c = self._criteria
        records: List[MatchRecord] = []
        for blk in self._find(model):
            try:
                value = self._session.get_param(blk, c.property_name)
            except ModelSessionError:
                # 该块没有此参数
                continue
            if matches_value(value, c.search_value, c.partial_match):
                records.append(MatchRecord(blk, c.property_name, value))
        return records

    def _search_all_properties(self, model: str) -> List[MatchRecord]:
        c = self._criteria
        blocks = self._find(model)
        log.info("search.scan_all_properties", model=model, blocks=len(blocks))
        records: List[MatchRecord] = []
        for blk in blocks:
            try:
                names = self._session.dialog_parameters(blk)
            except ModelSessionError:
                continue
            for name in names:
                try:
                    value = self._session.get_param(blk, name)
                except ModelSessionError:
                    continue
                if matches_value(value, c.search_value, c.partial_match):
                    records.append(MatchRecord(blk, name, value))
        return records
