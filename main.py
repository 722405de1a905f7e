"""独立入口脚本：在 Simulink 模型中搜索（并可选替换）块参数值。

要点：
- 从 config/default.yaml 加载引擎模式与搜索默认值，命令行参数优先
- 打印结果表格与替换摘要；修改只存在于内存，需自行 save_system 持久化
- 加 --fake-example 可在无 MATLAB 环境下针对内置示例模型运行
"""

from __future__ import annotations

import sys

from block_param_finder.cli import main


if __name__ == "__main__":
    sys.exit(main())
