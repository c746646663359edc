"""Character catalogue endpoints (read-only)."""

from fastapi import APIRouter, HTTPException, Request

from parlor.errors import CharacterNotFound, InvalidCharacter

router = APIRouter()


@router.get("/characters")
async def list_characters(request: Request, q: str = "", category: str | None = None):
    """List characters, optionally filtered by category and a search query."""
    loader = request.app.state.characters
    try:
        characters = loader.by_category(category) if category else loader.get_all()
    except KeyError:
        raise HTTPException(404, f"Unknown category '{category}'")
    except (CharacterNotFound, InvalidCharacter) as e:
        raise HTTPException(500, str(e))
    return [c.model_dump(by_alias=True) for c in characters if c.matches(q)]


@router.get("/characters/categories")
async def list_categories(request: Request):
    """Category name → ordered character ids."""
    return request.app.state.characters.categories()


@router.get("/characters/{character_id}")
async def get_character(character_id: str, request: Request):
    """Get a single character by id."""
    try:
        character = request.app.state.characters.get(character_id)
    except CharacterNotFound:
        raise HTTPException(404, "Character not found")
    except InvalidCharacter as e:
        raise HTTPException(500, str(e))
    return character.model_dump(by_alias=True)
