from __future__ import annotations

"""
Functional tests for search_and_replace against the programmatically built
ExampleModel, covering every supported calling convention.
"""

import pytest

from block_param_finder import search_and_replace
from block_param_finder.core.diagnostics import NO_SEARCH_VALUE
from block_param_finder.errors import InsufficientArgsError
from block_param_finder.sim_env.fake_session import FakeModelSession


def _paths(model: str, *rel: str) -> list:
    return [f"{model}/{r}" for r in rel]


def test_list_blocks_by_type(session: FakeModelSession, model_name: str) -> None:
    """Lists all Gain blocks across the model and its subsystem."""
    results = search_and_replace(session, model_name, block_type="Gain")

    assert len(results) == 4
    assert results.block_paths == _paths(model_name, "Gain1", "Gain2", "Gain3", "SubSystem/Gain4")
    assert all(r.property_name == "BlockType" and r.current_value == "Gain" for r in results)


def test_list_blocks_by_type_with_property(session: FakeModelSession, model_name: str) -> None:
    """Listing with a property name reports that property's value for each block."""
    results = search_and_replace(session, model_name, block_type="Gain", property_name="Gain")

    assert len(results) == 4
    assert all(r.property_name == "Gain" for r in results)
    assert [r.current_value for r in results] == ["2", "3", "2", "2"]


def test_block_type_value_and_property(session: FakeModelSession, model_name: str) -> None:
    results = search_and_replace(session, model_name, block_type="Gain", search_value="2", property_name="Gain")

    assert len(results) == 3
    assert results.block_paths == _paths(model_name, "Gain1", "Gain3", "SubSystem/Gain4")
    assert all(r.current_value == "2" for r in results)


def test_block_type_value_all_properties(session: FakeModelSession, model_name: str) -> None:
    """Searching every dialog parameter of Gain blocks for '3' finds Gain2 only."""
    results = search_and_replace(session, model_name, block_type="Gain", search_value="3")

    assert f"{model_name}/Gain2" in results.block_paths
    for excluded in _paths(model_name, "Gain1", "Gain3", "SubSystem/Gain4"):
        assert excluded not in results.block_paths


def test_value_and_property_all_types(session: FakeModelSession, model_name: str) -> None:
    results = search_and_replace(session, model_name, search_value="0.01", property_name="SampleTime")

    assert len(results) == 4
    assert sorted(results.block_paths) == sorted(
        _paths(model_name, "Gain2", "Constant1", "UnitDelay1", "SubSystem/Gain4")
    )


def test_value_only_reports_the_holding_property(session: FakeModelSession, model_name: str) -> None:
    results = search_and_replace(session, model_name, search_value="42")

    constant_hits = [r for r in results if r.block_path == f"{model_name}/Constant1"]
    assert constant_hits, "expected a match on Constant1"
    assert any(r.property_name == "Value" for r in constant_hits)
    assert all(r.current_value == "42" for r in results)


def test_partial_match(session: FakeModelSession, model_name: str) -> None:
    """Substring '0.0' matches 0.01/0.05 but not 0.1 or -1."""
    results = search_and_replace(
        session, model_name, search_value="0.0", property_name="SampleTime", partial_match=True
    )

    assert len(results) == 5
    assert sorted(results.block_paths) == sorted(
        _paths(model_name, "Gain2", "Gain3", "Constant1", "UnitDelay1", "SubSystem/Gain4")
    )
    assert {r.current_value for r in results} == {"0.01", "0.05"}


def test_no_matches_returns_empty(session: FakeModelSession, model_name: str) -> None:
    results = search_and_replace(session, model_name, search_value="nonexistent_value", property_name="Gain")

    assert len(results) == 0
    assert list(results) == []
    assert results.diagnostics.codes == []
    assert "No matches found" in results.summary()


def test_value_replacement(session: FakeModelSession, model_name: str) -> None:
    results = search_and_replace(
        session, model_name, block_type="Gain", search_value="3", property_name="Gain", new_value="7"
    )

    assert session.get_param(f"{model_name}/Gain2", "Gain") == "7"
    assert results.replacement is not None
    assert results.replacement.updated_count == 1
    assert results.replacement.attempted == 1
    assert "in memory only" in results.replacement.message
    assert f"save_system('{model_name}')" in results.replacement.message


def test_new_value_ignored_in_listing_mode(session: FakeModelSession, model_name: str) -> None:
    results = search_and_replace(session, model_name, block_type="Gain", new_value="999")

    assert NO_SEARCH_VALUE in results.warning_ids
    assert results.replacement is None
    assert len(results) == 4
    assert session.get_param(f"{model_name}/Gain1", "Gain") == "2"


def test_error_when_no_criteria(session: FakeModelSession, model_name: str) -> None:
    with pytest.raises(InsufficientArgsError) as exc_info:
        search_and_replace(session, model_name)

    assert exc_info.value.identifier == "InsufficientArgs"
    # Fails before touching the session
    assert session.find_calls == []
    assert session.load_calls == []


def test_model_name_with_extension_is_normalized(session: FakeModelSession, model_name: str) -> None:
    results = search_and_replace(session, f"models/{model_name}.slx", block_type="Gain")

    assert results.criteria.model == model_name
    assert len(results) == 4
