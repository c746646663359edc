"""Tests for the character catalogue."""

import json
from pathlib import Path

import pytest

from parlor.characters import DEFAULT_CATEGORIES, CharacterLoader
from parlor.errors import CharacterNotFound, InvalidCharacter


def _write(dir_: Path, cid: str, **overrides) -> None:
    data = {
        "id": cid,
        "name": cid.title(),
        "title": "Someone",
        "era": "1900",
        "chat_context": f"You are {cid}.",
    }
    data.update(overrides)
    (dir_ / f"{cid}.json").write_text(json.dumps(data))


# ── presets ──────────────────────────────────────────────────


def test_every_preset_loads(loader: CharacterLoader):
    characters = loader.get_all()
    assert [c.id for c in characters] == [
        cid for ids in DEFAULT_CATEGORIES.values() for cid in ids
    ]
    assert all(c.chat_context for c in characters)


def test_presets_have_genz_modifier(loader: CharacterLoader):
    for c in loader.get_all():
        assert c.context_for("genZ").startswith(c.chat_context + "\n\n")


def test_by_category(loader: CharacterLoader):
    scientists = loader.by_category("scientists")
    assert [c.id for c in scientists] == ["einstein", "tesla", "newton"]


def test_unknown_category(loader: CharacterLoader):
    with pytest.raises(KeyError):
        loader.by_category("poets")


def test_search(loader: CharacterLoader):
    assert [c.id for c in loader.search("relativity")] == ["einstein"]
    assert loader.search("zzz") == []


# ── loading and caching ──────────────────────────────────────


def test_get_caches(tmp_path: Path):
    _write(tmp_path, "ada")
    loader = CharacterLoader(tmp_path, categories={})
    first = loader.get("ada")
    _write(tmp_path, "ada", name="Changed")
    assert loader.get("ada") is first
    assert loader.get_cached("ada") is first


def test_clear_reloads(tmp_path: Path):
    _write(tmp_path, "ada")
    loader = CharacterLoader(tmp_path, categories={})
    loader.get("ada")
    _write(tmp_path, "ada", name="Changed")
    loader.clear()
    assert loader.get_cached("ada") is None
    assert loader.get("ada").name == "Changed"


def test_separate_loaders_do_not_share_cache(tmp_path: Path):
    _write(tmp_path, "ada")
    a = CharacterLoader(tmp_path, categories={})
    b = CharacterLoader(tmp_path, categories={})
    a.get("ada")
    assert b.get_cached("ada") is None


def test_missing_character(tmp_path: Path):
    loader = CharacterLoader(tmp_path, categories={})
    with pytest.raises(CharacterNotFound):
        loader.get("nobody")


@pytest.mark.parametrize("cid", ["../secret", "a/b", ".hidden", ""])
def test_path_like_ids_rejected(tmp_path: Path, cid: str):
    loader = CharacterLoader(tmp_path, categories={})
    with pytest.raises(CharacterNotFound):
        loader.get(cid)


def test_invalid_json(tmp_path: Path):
    (tmp_path / "bad.json").write_text("{not json")
    loader = CharacterLoader(tmp_path, categories={})
    with pytest.raises(InvalidCharacter):
        loader.get("bad")


def test_schema_violation(tmp_path: Path):
    (tmp_path / "bad.json").write_text(json.dumps({"id": "bad", "name": "Bad"}))
    loader = CharacterLoader(tmp_path, categories={})
    with pytest.raises(InvalidCharacter):
        loader.get("bad")


def test_id_must_match_filename(tmp_path: Path):
    _write(tmp_path, "ada", id="grace")
    loader = CharacterLoader(tmp_path, categories={})
    with pytest.raises(InvalidCharacter):
        loader.get("ada")


def test_uncategorised_files_listed_after_categories(tmp_path: Path):
    for cid in ("zed", "ada", "bob"):
        _write(tmp_path, cid)
    loader = CharacterLoader(tmp_path, categories={"team": ["bob"]})
    assert loader.ids() == ["bob", "ada", "zed"]
