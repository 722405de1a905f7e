"""命令行入口：在 Simulink 模型中搜索（并可选替换）块参数值。

使用方法：
    # 列出所有 Gain 块
    python main.py myModel --block-type Gain

    # 在 SampleTime 中查找 0.01 并替换为 -1
    python main.py myModel --search-value 0.01 --property SampleTime --new-value -1

    替换只写入内存中的模型。engine: new 时引擎是新启动的，模型总由本次搜索加载，
    结束时不保存即关闭（告警 ChangesDiscarded），修改不会保留。要保留修改，请在
    MATLAB 中先 matlab.engine.shareEngine 并加载模型，配置 matlab.engine: shared
    后再运行，最后在 MATLAB 中 save_system。

    # 无 MATLAB 环境下针对内置示例模型演示
    python main.py ExampleModel --fake-example --search-value 42
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from block_param_finder.core.criteria import SearchCriteria
from block_param_finder.core.finder import SearchReport, run_search
from block_param_finder.errors import BlockParamFinderError, InsufficientArgsError
from block_param_finder.sim_env.example_model import build_example_model
from block_param_finder.sim_env.fake_session import FakeModelSession
from block_param_finder.sim_env.matlab_session import MatlabEngineSession
from block_param_finder.utils.config_loader import default_config, load_config
from block_param_finder.utils.logger import configure_logging, get_logger
from block_param_finder.utils.results_table import render_results_table, write_results_json


log = get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2


def find_config() -> Optional[Path]:
    """查找配置文件：优先 config/config.yaml 其后 config/default.yaml；均不存在则用内置默认值。"""
    project_root = Path(__file__).resolve().parent.parent
    for rel in ("config/config.yaml", "config/default.yaml"):
        p = project_root / rel
        if p.exists():
            return p
    return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="在 Simulink 模型层级中搜索（并可选替换）块参数值",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例：
  python main.py myModel --block-type Gain
  python main.py myModel --search-value 0.01 --property SampleTime --new-value -1
  python main.py myModel --search-value Ctrl --property SampleTime --partial

替换只修改内存中的模型：需 matlab.engine: shared 且模型已在共享会话中加载，
否则模型由本次搜索加载并在结束时不保存关闭（ChangesDiscarded）。
        """,
    )
    parser.add_argument("model", nargs="?", default=None, help="模型名称（可带 .slx/.mdl 扩展名）")
    parser.add_argument("--block-type", dest="block_type", default=None, help="只搜索该 BlockType 的块")
    parser.add_argument("--search-value", dest="search_value", default=None, help="要查找的参数值")
    parser.add_argument("--property", dest="property_name", default=None, help="只搜索该参数；省略则搜索全部对话参数")
    parser.add_argument("--new-value", dest="new_value", default=None, help="替换值；省略则只搜索。修改仅在内存中，需 matlab.engine: shared 且模型已在该会话中加载才能保留")
    parser.add_argument("--partial", dest="partial_match", action="store_true", default=None, help="子串匹配（区分大小写）")
    parser.add_argument("--all-variants", dest="search_all_variants", action="store_true", default=None, help="包含非激活的变体分支")
    parser.add_argument(
        "--no-model-refs",
        dest="include_model_references",
        action="store_false",
        default=None,
        help="不进入被引用模型（Model Reference）",
    )
    parser.add_argument("--config", type=str, default=None, help="YAML 配置文件路径")
    parser.add_argument("--json", dest="json_out", type=str, default=None, help="将匹配结果写入 JSON 文件")
    parser.add_argument("--fake-example", action="store_true", help="使用内存 Fake 会话与内置 ExampleModel（无需 MATLAB）")
    return parser


def resolve_criteria(args: argparse.Namespace, cfg: Dict[str, Any]) -> SearchCriteria:
    """命令行参数优先，其次配置文件 search 段。"""
    search_cfg = dict(cfg.get("search", {}) or {})
    merged: Dict[str, Any] = {}
    for key in (
        "model",
        "block_type",
        "search_value",
        "property_name",
        "new_value",
        "partial_match",
        "search_all_variants",
        "include_model_references",
    ):
        value = getattr(args, key, None)
        merged[key] = value if value is not None else search_cfg.get(key)
    return SearchCriteria(
        model=str(merged["model"] or ""),
        block_type=merged["block_type"] or "",
        search_value=merged["search_value"] or "",
        property_name=merged["property_name"] or "",
        new_value=merged["new_value"] or "",
        partial_match=bool(merged["partial_match"]),
        search_all_variants=bool(merged["search_all_variants"]),
        include_model_references=bool(True if merged["include_model_references"] is None else merged["include_model_references"]),
    )


def _print_report(report: SearchReport) -> None:
    print()
    print(report.summary())
    if len(report):
        print()
        print(render_results_table(report))
    if report.replacement is not None:
        print()
        print(f'Replacing "{report.criteria.search_value}" -> "{report.replacement.new_value}" in {report.replacement.attempted} block(s)...')
        print(report.replacement.message)
    for diag in report.diagnostics:
        print(f"[warn] {diag.code}: {diag.message}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg_path = Path(args.config) if args.config else find_config()
        cfg = load_config(cfg_path) if cfg_path is not None else default_config()
    except (FileNotFoundError, BlockParamFinderError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR

    configure_logging(str(cfg.get("logging", {}).get("level", "INFO")), force=True)

    criteria = resolve_criteria(args, cfg)
    if not criteria.model:
        parser.print_usage(sys.stderr)
        print("error: a model name is required (argument or search.model in config)", file=sys.stderr)
        return EXIT_USAGE

    if args.fake_example:
        session = FakeModelSession()
    else:
        session = MatlabEngineSession(cfg)
        log.info("cli.matlab_session", **session.describe())

    try:
        with session:
            if args.fake_example:
                build_example_model(session, criteria.model)
            report = run_search(session, criteria)
    except InsufficientArgsError as e:
        print(f"error [{e.identifier}]: {e}", file=sys.stderr)
        return EXIT_USAGE
    except BlockParamFinderError as e:
        log.error("cli.failed", error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR

    _print_report(report)

    json_out = args.json_out or str(cfg.get("output", {}).get("json", "") or "")
    if json_out:
        out = write_results_json(report.matches, json_out)
        print(f"\nResults written to {out}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
