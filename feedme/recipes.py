import json
import logging
from pathlib import Path
from typing import List

from sqlalchemy.orm import Session

from . import crud, schemas

LOGGER = logging.getLogger(__name__)


def load_recipes(path):
    """Load recipes from a JSON file and return a list of dicts.

    Args:
        path (str or Path): Path to the JSON file.

    Returns:
        list: list of recipe dictionaries, empty if the file is missing.
    """
    p = Path(path)
    if not p.exists():
        return []
    with p.open("r", encoding="utf-8") as f:
        return json.load(f)


def to_recipe_create(data: dict) -> schemas.RecipeCreate:
    instructions = data.get("instructions")
    if isinstance(instructions, list):
        instructions = "\n".join(instructions) or None
    ingredients = [
        schemas.RecipeIngredient(
            ingredient_name=i["name"],
            quantity_unit=i.get("quantity_unit", ""),
            notes=i.get("notes") or None,
        )
        for i in data.get("ingredients", [])
    ]
    return schemas.RecipeCreate(
        name=data["name"], instructions=instructions, ingredients=ingredients
    )


def import_recipes(db: Session, path) -> List[int]:
    """Create one recipe per named entry in the file and return the new ids."""
    ids = []
    for entry in load_recipes(path):
        if not entry.get("name"):
            LOGGER.warning("Skipping recipe without a name: %r", entry)
            continue
        ids.append(crud.create_recipe(db, to_recipe_create(entry)))
    return ids
