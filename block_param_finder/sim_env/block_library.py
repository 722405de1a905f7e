"""FakeModelSession 使用的块库：库路径 -> (BlockType, 对话参数及默认值)。

对话参数集合随块类型变化、在运行时按块查询（dialog_parameters），
这里用查找表描述，而不是为每种块写一个结构体。默认值取自 Simulink 库块。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class BlockTemplate:
    block_type: str
    dialog: Dict[str, Any] = field(default_factory=dict)
    # 库中的变体子系统同样是 SubSystem，只是 Variant='on'
    is_variant: bool = False


GAIN = BlockTemplate(
    "Gain",
    {
        "Gain": "1",
        "Multiplication": "Element-wise(K.*u)",
        "ParamMin": "[]",
        "ParamMax": "[]",
        "ParamDataTypeStr": "Inherit: Same as input",
        "OutMin": "[]",
        "OutMax": "[]",
        "OutDataTypeStr": "Inherit: Same as input",
        "LockScale": "off",
        "RndMeth": "Floor",
        "SaturateOnIntegerOverflow": "off",
        "SampleTime": "-1",
    },
)

CONSTANT = BlockTemplate(
    "Constant",
    {
        "Value": "1",
        "VectorParams1D": "on",
        "SamplingMode": "Sample based",
        "OutMin": "[]",
        "OutMax": "[]",
        "OutDataTypeStr": "Inherit: Inherit from 'Constant value'",
        "LockScale": "off",
        "SampleTime": "inf",
        "FramePeriod": "inf",
    },
)

UNIT_DELAY = BlockTemplate(
    "UnitDelay",
    {
        "InitialCondition": "0",
        "InputProcessing": "Elements as channels (sample based)",
        "SampleTime": "-1",
        "StateName": "",
        "StateMustResolveToSignalObject": "off",
        "CodeGenStateStorageClass": "Auto",
    },
)

SUBSYSTEM = BlockTemplate(
    "SubSystem",
    {
        "ShowPortLabels": "FromPortIcon",
        "Permissions": "ReadWrite",
        "ErrorFn": "",
        "PermitHierarchicalResolution": "All",
        "TreatAsAtomicUnit": "off",
        "SystemSampleTime": "-1",
        "VariantControl": "",
    },
)

VARIANT_SUBSYSTEM = BlockTemplate(
    "SubSystem",
    {
        "ShowPortLabels": "FromPortIcon",
        "Permissions": "ReadWrite",
        "VariantControlMode": "label",
        "LabelModeActiveChoice": "",
        "AllowZeroVariantControls": "off",
        "PropagateVariantConditions": "off",
    },
    is_variant=True,
)

MODEL_REFERENCE = BlockTemplate(
    "ModelReference",
    {
        "ModelNameDialog": "<Enter Model Name>",
        "ModelName": "<Enter Model Name>",
        "SimulationMode": "Normal",
        "ParameterArgumentNames": "",
        "ParameterArgumentValues": "",
    },
)

INPORT = BlockTemplate(
    "Inport",
    {
        "Port": "1",
        "OutMin": "[]",
        "OutMax": "[]",
        "OutDataTypeStr": "Inherit: auto",
        "PortDimensions": "-1",
        "SampleTime": "-1",
    },
)

OUTPORT = BlockTemplate(
    "Outport",
    {
        "Port": "1",
        "OutMin": "[]",
        "OutMax": "[]",
        "OutDataTypeStr": "Inherit: auto",
        "PortDimensions": "-1",
        "InitialOutput": "[]",
    },
)


BLOCK_LIBRARY: Dict[str, BlockTemplate] = {
    "simulink/Math Operations/Gain": GAIN,
    "simulink/Sources/Constant": CONSTANT,
    "simulink/Discrete/Unit Delay": UNIT_DELAY,
    "simulink/Ports & Subsystems/Subsystem": SUBSYSTEM,
    "simulink/Ports & Subsystems/Variant Subsystem": VARIANT_SUBSYSTEM,
    "simulink/Ports & Subsystems/Model": MODEL_REFERENCE,
    "simulink/Sources/In1": INPORT,
    "simulink/Sinks/Out1": OUTPORT,
}

# 所有块都可读、不出现在对话参数中的通用属性
COMMON_PROPERTIES = ("Name", "Parent", "BlockType", "Position", "Tag", "Description")
READ_ONLY_PROPERTIES = frozenset({"Name", "Parent", "BlockType"})


def lookup(source: str) -> BlockTemplate:
    try:
        return BLOCK_LIBRARY[source]
    except KeyError:
        raise KeyError(f"Unknown library block '{source}'") from None


def known_parameter(name: str) -> bool:
    """参数名是否在任一块类型中存在（用于模拟 find_system 的未知参数报错）。"""
    if name in COMMON_PROPERTIES:
        return True
    return any(name in t.dialog for t in BLOCK_LIBRARY.values())
