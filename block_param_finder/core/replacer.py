"""按匹配记录逐条写入新值。

每条记录独立写入：单条失败记录为 SetParamFailed 诊断，不影响其余记录。
只修改内存中的模型，不保存；持久化由调用方负责（save_system）。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from block_param_finder.core.criteria import MatchRecord
from block_param_finder.core.diagnostics import SET_PARAM_FAILED, DiagnosticLog
from block_param_finder.errors import ModelSessionError
from block_param_finder.sim_env.model_session import ModelSession
from block_param_finder.utils.logger import get_logger


log = get_logger(__name__)


@dataclass(frozen=True)
class ReplaceOutcome:
    new_value: str
    attempted: int
    updated: Tuple[MatchRecord, ...] = field(default_factory=tuple)
    model: str = ""

    @property
    def updated_count(self) -> int:
        return len(self.updated)

    @property
    def failed_count(self) -> int:
        return self.attempted - len(self.updated)

    @property
    def touched_models(self) -> List[str]:
        seen: List[str] = []
        for r in self.updated:
            if r.model not in seen:
                seen.append(r.model)
        return seen

    @property
    def message(self) -> str:
        save_hint = f"save_system('{self.model}')" if self.model else "save_system"
        return (
            f"Replacement complete. {self.updated_count} of {self.attempted} block(s) updated.\n"
            f"NOTE: Changes are in memory only. Use {save_hint} to persist."
        )


def replace(
    session: ModelSession,
    matches: Sequence[MatchRecord],
    new_value: str,
    diagnostics: DiagnosticLog,
    *,
    model: str = "",
) -> ReplaceOutcome:
    log.info("replace.start", new_value=new_value, count=len(matches))
    updated: List[MatchRecord] = []
    for record in matches:
        try:
            session.set_param(record.block_path, record.property_name, new_value)
        except ModelSessionError as e:
            diagnostics.warn(
                SET_PARAM_FAILED,
                f"Failed to set {record.property_name} on {record.block_path}: {e}",
                block=record.block_path,
                property=record.property_name,
            )
            continue
        log.info("replace.updated", block=record.block_path, property=record.property_name)
        updated.append(record)

    outcome = ReplaceOutcome(new_value=new_value, attempted=len(matches), updated=tuple(updated), model=model)
    log.info("replace.done", updated=outcome.updated_count, attempted=outcome.attempted, note=outcome.message)
    return outcome
