"""配置加载工具：集中读取与校验 YAML 配置。

为何需要：
- 避免在业务类中硬编码 MATLAB 引擎模式、find_system 选项与搜索默认值
- 通过统一加载入口，便于加入校验与默认值处理
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict

import yaml

from block_param_finder.errors import ConfigError
from block_param_finder.utils.logger import get_logger


log = get_logger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    "version": 1,
    "matlab": {
        "engine": "new",
        "shared_session": "",
        "startup_paths": [],
        "look_under_masks": "all",
        "follow_links": "on",
    },
    "search": {
        "model": "",
        "block_type": "",
        "search_value": "",
        "property_name": "",
        "new_value": "",
        "partial_match": False,
        "search_all_variants": False,
        "include_model_references": True,
    },
    "output": {
        "json": "",
    },
    "logging": {
        "level": "INFO",
    },
}

_ENGINE_MODES = {"new", "shared"}


def _read_yaml(p: Path) -> Any:
    with p.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def default_config() -> Dict[str, Any]:
    """返回内置默认配置的深拷贝。"""
    return copy.deepcopy(DEFAULT_CONFIG)


def load_config(path: str | Path) -> Dict[str, Any]:
    """从 YAML 文件加载配置并合并到默认值之上。

    结构：
    - matlab.engine: new|shared，shared 时使用 matlab.shared_session 连接
    - matlab.look_under_masks / matlab.follow_links: 透传给 find_system
    - search.*: CLI 未指定时使用的搜索默认值
    - output.json: 可选，匹配结果的 JSON 导出路径
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {p}")

    raw = _read_yaml(p)
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config root must be a mapping: {p}")

    cfg = _deep_merge(DEFAULT_CONFIG, raw)
    validate_config(cfg)

    log.info("config.loaded", path=str(p), version=str(cfg.get("version", "unknown")))
    return cfg


def validate_config(cfg: Dict[str, Any]) -> None:
    for section in ("matlab", "search", "output", "logging"):
        if not isinstance(cfg.get(section), dict):
            raise ConfigError(f"Config section '{section}' must be a mapping")

    engine_mode = str(cfg["matlab"].get("engine", "new")).lower()
    if engine_mode not in _ENGINE_MODES:
        raise ConfigError(f"Unknown matlab.engine mode '{engine_mode}' (expected one of {sorted(_ENGINE_MODES)})")
    if engine_mode == "shared" and not cfg["matlab"].get("shared_session"):
        # 未指定名称时 connect_matlab() 连接第一个可用共享会话
        log.info("config.shared_session.unnamed")

    paths = cfg["matlab"].get("startup_paths") or []
    if not isinstance(paths, list):
        raise ConfigError("matlab.startup_paths must be a list")
