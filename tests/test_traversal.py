from __future__ import annotations

"""
Tests for model-reference traversal, load/unload discipline and variant
filtering in the search engine.
"""

from typing import List, Optional

import pytest

from block_param_finder import search_and_replace
from block_param_finder.core.diagnostics import LOAD_FAILED, SEARCH_FAILED
from block_param_finder.errors import ModelLoadError, ModelSessionError
from block_param_finder.sim_env.fake_session import FakeModelSession

from tests.conftest import GAIN, MODEL_REF, build_saved_models


def test_each_model_is_visited_once(reference_session: FakeModelSession) -> None:
    """Top -> A (twice), Top -> B, A -> Top, B -> A: every root searched exactly once."""
    results = search_and_replace(reference_session, "Top", block_type="Gain", search_value="5", property_name="Gain")

    assert results.visited_models == ["Top", "A", "B"]
    assert results.block_paths == ["Top/TopGain", "A/AGain", "B/BGain"]
    assert sorted(reference_session.load_calls) == ["A", "B", "Top"]


def test_simple_cycle_terminates() -> None:
    s = FakeModelSession()
    build_saved_models(
        s,
        {
            "A": [("G", GAIN, {"Gain": "1"}), ("ToB", MODEL_REF, {"ModelName": "B"})],
            "B": [("G", GAIN, {"Gain": "1"}), ("ToA", MODEL_REF, {"ModelName": "A"})],
        },
    )

    results = search_and_replace(s, "A", block_type="Gain")

    assert results.visited_models == ["A", "B"]
    assert results.block_paths == ["A/G", "B/G"]


def test_models_loaded_by_search_are_unloaded(reference_session: FakeModelSession) -> None:
    search_and_replace(reference_session, "Top", block_type="Gain")

    assert reference_session.loaded_models == []
    assert sorted(reference_session.close_calls) == ["A", "B", "Top"]


def test_preloaded_models_stay_loaded(reference_session: FakeModelSession) -> None:
    reference_session.load_model("A")
    reference_session.load_calls.clear()

    search_and_replace(reference_session, "Top", block_type="Gain")

    assert reference_session.loaded_models == ["A"]
    assert "A" not in reference_session.close_calls
    assert "A" not in reference_session.load_calls


def test_references_not_followed_when_disabled(reference_session: FakeModelSession) -> None:
    results = search_and_replace(reference_session, "Top", block_type="Gain", include_model_references=False)

    assert results.visited_models == ["Top"]
    assert results.block_paths == ["Top/TopGain"]
    assert reference_session.load_calls == ["Top"]


def test_unloadable_reference_is_skipped_with_warning() -> None:
    s = FakeModelSession()
    build_saved_models(
        s,
        {
            "Top": [
                ("Missing", MODEL_REF, {"ModelName": "DoesNotExist"}),
                ("G", GAIN, {"Gain": "4"}),
                ("Child", MODEL_REF, {"ModelName": "Child"}),
            ],
            "Child": [("G", GAIN, {"Gain": "4"})],
        },
    )

    results = search_and_replace(s, "Top", search_value="4", property_name="Gain")

    assert results.block_paths == ["Top/G", "Child/G"]
    failed = results.diagnostics.of(LOAD_FAILED)
    assert len(failed) == 1
    assert failed[0].context["model"] == "DoesNotExist"
    assert s.loaded_models == []


def test_root_load_failure_is_fatal() -> None:
    s = FakeModelSession()

    with pytest.raises(ModelLoadError):
        search_and_replace(s, "NoSuchModel", block_type="Gain")


def test_search_error_in_reference_is_skipped(reference_session: FakeModelSession, monkeypatch: pytest.MonkeyPatch) -> None:
    original = reference_session.find_blocks

    def failing(model: str, **kwargs):
        if model == "A":
            raise ModelSessionError(f"find_system failed on '{model}'")
        return original(model, **kwargs)

    monkeypatch.setattr(reference_session, "find_blocks", failing)

    results = search_and_replace(reference_session, "Top", search_value="5", property_name="Gain")

    assert results.block_paths == ["Top/TopGain", "B/BGain"]
    assert results.warning_ids == [SEARCH_FAILED]
    assert results.diagnostics.of(SEARCH_FAILED)[0].context["model"] == "A"
    assert reference_session.loaded_models == []


def test_reference_lookup_error_is_skipped(reference_session: FakeModelSession, monkeypatch: pytest.MonkeyPatch) -> None:
    original = reference_session.model_references

    def failing(model: str, *, include_inactive_variants: bool = False) -> List[str]:
        if model == "A":
            raise ModelSessionError("find_system exploded")
        return original(model, include_inactive_variants=include_inactive_variants)

    monkeypatch.setattr(reference_session, "model_references", failing)

    results = search_and_replace(reference_session, "Top", block_type="Gain")

    assert results.block_paths == ["Top/TopGain", "B/BGain"]
    assert results.warning_ids == [SEARCH_FAILED]


def test_root_search_error_is_fatal_and_unloads(reference_session: FakeModelSession, monkeypatch: pytest.MonkeyPatch) -> None:
    def failing(model: str, *, include_inactive_variants: bool = False) -> List[str]:
        raise ModelSessionError("find_system exploded")

    monkeypatch.setattr(reference_session, "model_references", failing)

    with pytest.raises(ModelSessionError):
        search_and_replace(reference_session, "Top", block_type="Gain")

    assert reference_session.loaded_models == []


def test_missing_reference_is_attempted_once() -> None:
    s = FakeModelSession()
    build_saved_models(
        s,
        {
            "Top": [("ToA", MODEL_REF, {"ModelName": "A"}), ("ToB", MODEL_REF, {"ModelName": "B"})],
            "A": [("G", GAIN, {"Gain": "4"}), ("Lost", MODEL_REF, {"ModelName": "Missing"})],
            "B": [("G", GAIN, {"Gain": "4"}), ("Lost", MODEL_REF, {"ModelName": "Missing"})],
        },
    )

    results = search_and_replace(s, "Top", search_value="4", property_name="Gain")

    assert results.block_paths == ["A/G", "B/G"]
    assert s.load_calls.count("Missing") == 1
    assert results.warning_ids == [LOAD_FAILED]
    assert "Missing" not in results.visited_models


def test_listing_crosses_references(reference_session: FakeModelSession) -> None:
    results = search_and_replace(reference_session, "Top", block_type="ModelReference", property_name="ModelName")

    assert [(r.block_path, r.current_value) for r in results] == [
        ("Top/RefA", "A"),
        ("Top/RefB", "B"),
        ("Top/RefA2", "A"),
        ("A/Back", "Top"),
        ("B/ToA", "A"),
    ]


def test_inactive_variants_excluded_by_default(variant_session: FakeModelSession) -> None:
    results = search_and_replace(variant_session, "V", search_value="9", property_name="Gain")

    assert results.block_paths == ["V/VSS/FastChoice/G", "V/Plain"]
    # The only reference sits in the inactive choice
    assert results.visited_models == ["V"]


def test_all_variants_include_inactive_branches(variant_session: FakeModelSession) -> None:
    results = search_and_replace(variant_session, "V", search_value="9", property_name="Gain", search_all_variants=True)

    assert results.block_paths == ["V/VSS/FastChoice/G", "V/VSS/SlowChoice/G", "V/Plain", "Hidden/HG"]
    assert results.visited_models == ["V", "Hidden"]


class _RootReturningSession(FakeModelSession):
    """Mimics find_system variants that return the model root itself."""

    def find_blocks(self, model: str, *, block_type: Optional[str] = None, params=None, include_inactive_variants: bool = False):
        blocks = super().find_blocks(
            model, block_type=block_type, params=params, include_inactive_variants=include_inactive_variants
        )
        if block_type == "ModelReference":
            return blocks
        return [model] + blocks


def test_root_is_never_reported(model_name: str) -> None:
    from block_param_finder.sim_env.example_model import build_example_model

    s = _RootReturningSession()
    build_example_model(s, model_name)

    listing = search_and_replace(s, model_name, block_type="Gain", property_name="Gain")
    targeted = search_and_replace(s, model_name, search_value="2", property_name="Gain")

    assert model_name not in listing.block_paths
    assert model_name not in targeted.block_paths
    assert len(listing) == 4
    assert len(targeted) == 3
