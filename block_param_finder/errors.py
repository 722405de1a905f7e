"""异常体系。

只有用法错误（InsufficientArgsError）与顶层模型无法加载是致命的；
其余环境异常由核心层捕获并降级为诊断告警（见 core.diagnostics）。
"""

from __future__ import annotations


class BlockParamFinderError(Exception):
    """所有项目异常的基类。"""

    pass


class InsufficientArgsError(BlockParamFinderError):
    """既未给出 block_type 也未给出 search_value：拒绝无约束的全量列举。"""

    identifier = "InsufficientArgs"


class ConfigError(BlockParamFinderError):
    """配置文件结构或取值非法。"""

    pass


class ModelSessionError(BlockParamFinderError):
    """与建模环境交互相关的错误基类。"""

    pass


class EngineConnectionError(ModelSessionError):
    """引擎启动或连接共享会话失败。"""

    pass


class ModelLoadError(ModelSessionError):
    """模型加载/创建失败（文件不存在、加载出错等）。"""

    pass


class ParamAccessError(ModelSessionError):
    """读取块参数失败（参数不适用于该块、块不存在等）。"""

    pass


class ParamWriteError(ModelSessionError):
    """写入块参数失败（取值非法、只读参数等）。"""

    pass
