"""Tests for novelsmith.prompt_library."""

import pytest

from novelsmith.prompt_library import PromptLibrary
from novelsmith.prompts import PROMPTS


def test_builtin_prompt():
    assert PromptLibrary().get("architect") == PROMPTS["architect"]


def test_unknown_prompt():
    with pytest.raises(KeyError, match="Available"):
        PromptLibrary().get("epilogue")


def test_improved_prompt_persists(tmp_path):
    path = tmp_path / "prompts.yaml"
    library = PromptLibrary(path)
    entry = library.save_improved(
        "architect", PROMPTS["architect"], "Plan better chapters.", 0.91, ["Iteration 1: add a midpoint"]
    )
    assert entry.created_at == entry.updated_at
    assert library.has_improved("architect")

    reloaded = PromptLibrary(path)
    assert reloaded.get("architect") == "Plan better chapters."
    assert reloaded.improved["architect"].mutations == ["Iteration 1: add a midpoint"]
    assert reloaded.get("chapter_writer") == PROMPTS["chapter_writer"]


def test_second_save_keeps_created_at(tmp_path):
    library = PromptLibrary(tmp_path / "prompts.yaml")
    first = library.save_improved("architect", "a", "b", 0.5, [])
    second = library.save_improved("architect", "a", "c", 0.7, [])
    assert second.created_at == first.created_at
    assert library.get("architect") == "c"


def test_reset(tmp_path):
    path = tmp_path / "prompts.yaml"
    library = PromptLibrary(path)
    library.save_improved("architect", "a", "b", 0.5, [])
    assert library.reset("architect")
    assert not library.reset("architect")
    assert PromptLibrary(path).get("architect") == PROMPTS["architect"]
