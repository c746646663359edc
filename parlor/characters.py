"""Character catalogue: persona definitions loaded from JSON files.

Layout:
  <characters_dir>/
    <id>.json      One Character per file (camelCase keys accepted)

The loader is an explicitly constructed service: create one per app (or per
test), pass it to whatever needs characters, and call clear() to drop the
cache. Definitions are validated on first access and cached after that.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from .errors import CharacterNotFound, InvalidCharacter
from .models import Character

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: dict[str, list[str]] = {
    "freedomFighters": ["gandhi", "bhagat", "laxmibai"],
    "scientists": ["einstein", "tesla", "newton"],
    "militaryLeaders": ["shivaji", "genghis", "napolean"],
}


class CharacterLoader:
    """Lazy, cached access to the character files in one directory.

    Args:
        characters_dir: Directory holding <id>.json files.
        categories:     Category name → ordered character ids. Also fixes the
                        display order of get_all(); characters on disk but in
                        no category are listed after, sorted by id.
    """

    def __init__(
        self,
        characters_dir: Path,
        categories: dict[str, list[str]] | None = None,
    ) -> None:
        self._dir = Path(characters_dir)
        self._categories = {
            name: list(ids)
            for name, ids in (DEFAULT_CATEGORIES if categories is None else categories).items()
        }
        self._cache: dict[str, Character] = {}

    @property
    def characters_dir(self) -> Path:
        return self._dir

    def _path(self, character_id: str) -> Path:
        return self._dir / f"{character_id}.json"

    def _load(self, character_id: str) -> Character:
        # Ids come from URLs; refuse anything that could escape the directory
        if not character_id or "/" in character_id or "\\" in character_id or character_id.startswith("."):
            raise CharacterNotFound(f"Character not found: {character_id!r}")
        path = self._path(character_id)
        if not path.is_file():
            raise CharacterNotFound(f"Character not found: {character_id!r}")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            character = Character.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error("character validation failed id=%s: %s", character_id, e)
            raise InvalidCharacter(f"Invalid character data for {character_id}") from e
        if character.id != character_id:
            raise InvalidCharacter(
                f"Character file {path.name} declares id {character.id!r}"
            )
        return character

    def get(self, character_id: str) -> Character:
        """Return one character, loading and caching it on first access."""
        cached = self._cache.get(character_id)
        if cached is not None:
            return cached
        character = self._load(character_id)
        self._cache[character_id] = character
        return character

    def get_cached(self, character_id: str) -> Character | None:
        return self._cache.get(character_id)

    def ids(self) -> list[str]:
        """All known ids: category order first, then any extra files by name."""
        ordered: list[str] = []
        for members in self._categories.values():
            for cid in members:
                if cid not in ordered:
                    ordered.append(cid)
        if self._dir.is_dir():
            for path in sorted(self._dir.glob("*.json")):
                if path.stem not in ordered:
                    ordered.append(path.stem)
        return ordered

    def get_all(self) -> list[Character]:
        return [self.get(cid) for cid in self.ids()]

    def search(self, query: str) -> list[Character]:
        """Characters whose name, title, or expertise contains the query."""
        return [c for c in self.get_all() if c.matches(query)]

    def categories(self) -> dict[str, list[str]]:
        return {name: list(ids) for name, ids in self._categories.items()}

    def by_category(self, category: str) -> list[Character]:
        if category not in self._categories:
            raise KeyError(category)
        return [self.get(cid) for cid in self._categories[category]]

    def clear(self) -> None:
        """Drop every cached definition; the next get() re-reads from disk."""
        self._cache.clear()
