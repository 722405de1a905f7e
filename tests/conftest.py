from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation so the package is importable without installation.
2. Fake modeling sessions pre-populated with the example model and with
   small model-reference graphs used by the traversal tests.
"""

import os
import sys
from typing import Any, Dict, List, Tuple

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_ROOT_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _ROOT_PATH not in sys.path:
    sys.path.insert(0, _ROOT_PATH)

from block_param_finder.sim_env.example_model import EXAMPLE_MODEL_NAME, build_example_model, build_model  # noqa: E402
from block_param_finder.sim_env.fake_session import FakeModelSession  # noqa: E402

GAIN = "simulink/Math Operations/Gain"
MODEL_REF = "simulink/Ports & Subsystems/Model"
SUBSYSTEM = "simulink/Ports & Subsystems/Subsystem"
VARIANT_SUBSYSTEM = "simulink/Ports & Subsystems/Variant Subsystem"

BlockSpec = Tuple[str, str, Dict[str, Any]]


def build_saved_models(session: FakeModelSession, models: Dict[str, List[BlockSpec]]) -> None:
    """Build and save every model, then close them so searches must load them."""
    for name, blocks in models.items():
        build_model(session, name, blocks)
    for name in models:
        session.close_model(name)
    session.load_calls.clear()
    session.close_calls.clear()


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def model_name() -> str:
    return EXAMPLE_MODEL_NAME


@pytest.fixture
def session(model_name: str) -> FakeModelSession:
    """Fake session with ExampleModel built, saved and left loaded."""
    s = FakeModelSession()
    build_example_model(s, model_name)
    s.load_calls.clear()
    s.close_calls.clear()
    return s


@pytest.fixture
def unloaded_session(model_name: str) -> FakeModelSession:
    """Fake session with ExampleModel saved to 'disk' but not loaded."""
    s = FakeModelSession()
    build_example_model(s, model_name)
    s.close_model(model_name)
    s.load_calls.clear()
    s.close_calls.clear()
    return s


@pytest.fixture
def reference_session() -> FakeModelSession:
    """Top references A twice and B once; A references Top back; B references A.

    Every model holds one Gain block with Gain='5'.
    """
    s = FakeModelSession()
    build_saved_models(
        s,
        {
            "Top": [
                ("TopGain", GAIN, {"Gain": "5"}),
                ("RefA", MODEL_REF, {"ModelName": "A"}),
                ("RefB", MODEL_REF, {"ModelName": "B"}),
                ("RefA2", MODEL_REF, {"ModelName": "A"}),
            ],
            "A": [
                ("AGain", GAIN, {"Gain": "5"}),
                ("Back", MODEL_REF, {"ModelName": "Top"}),
            ],
            "B": [
                ("BGain", GAIN, {"Gain": "5"}),
                ("ToA", MODEL_REF, {"ModelName": "A"}),
            ],
        },
    )
    return s


@pytest.fixture
def variant_session() -> FakeModelSession:
    """Model 'V' with a label-mode variant subsystem; 'Fast' is the active choice."""
    s = FakeModelSession()
    build_saved_models(
        s,
        {
            "V": [
                ("VSS", VARIANT_SUBSYSTEM, {"LabelModeActiveChoice": "Fast"}),
                ("VSS/FastChoice", SUBSYSTEM, {"VariantControl": "Fast"}),
                ("VSS/FastChoice/G", GAIN, {"Gain": "9"}),
                ("VSS/SlowChoice", SUBSYSTEM, {"VariantControl": "Slow"}),
                ("VSS/SlowChoice/G", GAIN, {"Gain": "9"}),
                ("VSS/SlowChoice/Ref", MODEL_REF, {"ModelName": "Hidden"}),
                ("Plain", GAIN, {"Gain": "9"}),
            ],
            "Hidden": [
                ("HG", GAIN, {"Gain": "9"}),
            ],
        },
    )
    return s
