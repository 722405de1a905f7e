"""Modeling environment layer.

只负责：
- 与 MATLAB/Simulink（或 Fake）的交互：加载/卸载模型、find_system、读写块参数

不负责：
- 匹配策略、遍历去重、诊断汇总（放在 core）
"""

__all__ = [
    "model_session",
    "matlab_session",
    "fake_session",
    "block_library",
    "example_model",
]
