from pathlib import Path

import pytest

from parlor.characters import CharacterLoader

PRESETS_DIR = Path(__file__).parent / "presets"


@pytest.fixture
def characters_dir() -> Path:
    return PRESETS_DIR / "characters"


@pytest.fixture
def loader(characters_dir: Path) -> CharacterLoader:
    """A fresh catalogue per test so cache state never leaks between tests."""
    return CharacterLoader(characters_dir)
