"""匹配结果的表格渲染与 JSON 导出。"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List, Sequence

from block_param_finder.core.criteria import MatchRecord


COLUMNS = ("BlockPath", "PropertyName", "CurrentValue")


def render_results_table(records: Sequence[MatchRecord]) -> str:
    """渲染为等宽文本表格，列为 BlockPath / PropertyName / CurrentValue。"""
    rows: List[tuple] = [(r.block_path, r.property_name, r.current_value) for r in records]
    widths = [len(c) for c in COLUMNS]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def fmt(cells: Iterable[str]) -> str:
        return "    ".join(str(c).ljust(w) for c, w in zip(cells, widths)).rstrip()

    lines = [fmt(COLUMNS), fmt("-" * w for w in widths)]
    lines.extend(fmt(row) for row in rows)
    return "\n".join(lines)


def write_results_json(records: Sequence[MatchRecord], path: str | Path) -> Path:
    out = Path(path)
    if out.parent and not out.parent.exists():
        out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8") as f:
        json.dump([r.as_dict() for r in records], f, ensure_ascii=False, indent=2)
    return out
