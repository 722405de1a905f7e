"""通过任意 ModelSession 以编程方式搭建 ExampleModel。

块布局：
    Gain1       Gain='2'                  SampleTime='-1' (默认)
    Gain2       Gain='3'                  SampleTime='0.01'
    Gain3       Gain='2'                  SampleTime='0.05'
    Constant1   Value='42'                SampleTime='0.01'
    Constant2   Value='99'                SampleTime='0.1'
    UnitDelay1  InitialCondition='0'      SampleTime='0.01'
    UnitDelay2  InitialCondition='0'      SampleTime='0.1'
    SubSystem/
        Gain4   Gain='2'                  SampleTime='0.01'

同一份布局既用于 FakeModelSession 的功能测试，也可在真实 MATLAB 中生成 .slx。
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from block_param_finder.sim_env.model_session import ModelSession
from block_param_finder.utils.logger import get_logger


log = get_logger(__name__)


EXAMPLE_MODEL_NAME = "ExampleModel"

# (相对路径, 库块, 参数)；父子系统必须先于其子块出现
EXAMPLE_BLOCKS: List[Tuple[str, str, Dict[str, Any]]] = [
    ("Gain1", "simulink/Math Operations/Gain", {"Gain": "2", "Position": [100, 30, 160, 60]}),
    ("Gain2", "simulink/Math Operations/Gain", {"Gain": "3", "SampleTime": "0.01", "Position": [100, 100, 160, 130]}),
    ("Gain3", "simulink/Math Operations/Gain", {"Gain": "2", "SampleTime": "0.05", "Position": [100, 170, 160, 200]}),
    ("Constant1", "simulink/Sources/Constant", {"Value": "42", "SampleTime": "0.01", "Position": [280, 30, 340, 60]}),
    ("Constant2", "simulink/Sources/Constant", {"Value": "99", "SampleTime": "0.1", "Position": [280, 100, 340, 130]}),
    ("UnitDelay1", "simulink/Discrete/Unit Delay", {"SampleTime": "0.01", "Position": [280, 170, 340, 200]}),
    ("UnitDelay2", "simulink/Discrete/Unit Delay", {"SampleTime": "0.1", "Position": [280, 240, 340, 270]}),
    ("SubSystem", "simulink/Ports & Subsystems/Subsystem", {"Position": [100, 260, 200, 310]}),
    ("SubSystem/Gain4", "simulink/Math Operations/Gain", {"Gain": "2", "SampleTime": "0.01", "Position": [100, 30, 160, 60]}),
]


def build_model(
    session: ModelSession,
    name: str,
    blocks: List[Tuple[str, str, Dict[str, Any]]],
    *,
    save_path: Optional[str] = None,
) -> str:
    """新建模型、按顺序添加块并保存；模型保持加载状态。"""
    if session.is_loaded(name):
        session.close_model(name)
    session.new_model(name)
    for rel_path, source, params in blocks:
        session.add_block(source, f"{name}/{rel_path}", params)
    session.save_model(name, save_path)
    log.info("example_model.built", model=name, blocks=len(blocks))
    return name


def build_example_model(
    session: ModelSession,
    name: str = EXAMPLE_MODEL_NAME,
    *,
    save_path: Optional[str] = None,
) -> str:
    return build_model(session, name, EXAMPLE_BLOCKS, save_path=save_path)
