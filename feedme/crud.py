import logging
from typing import Dict, Iterable, List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas
from .errors import (
    Conflict,
    FeedMeError,
    IngredientNotFound,
    RecipeNotFound,
    StorageFailure,
)

LOGGER = logging.getLogger(__name__)

QUANTITY_SEPARATOR = " + "


def get_ingredient(db: Session, ingredient_id: int):
    db_ingredient = (
        db.query(models.Ingredient)
        .filter(models.Ingredient.id == ingredient_id)
        .first()
    )
    if db_ingredient is None:
        raise IngredientNotFound(ingredient_id)
    return db_ingredient


def get_ingredient_by_name(db: Session, name: str):
    return (
        db.query(models.Ingredient)
        .filter(models.Ingredient.name == name)
        .first()
    )


def get_all_ingredients(db: Session):
    return db.query(models.Ingredient).order_by(models.Ingredient.name).all()


def known_ingredients(db: Session) -> Dict[str, int]:
    """Snapshot of name -> id used to seed the recipe wizard."""
    return {i.name: i.id for i in get_all_ingredients(db)}


def _insert_ingredient(db: Session, name: str) -> int:
    db_ingredient = models.Ingredient(name=name)
    db.add(db_ingredient)
    try:
        db.flush()
    except IntegrityError as exc:
        raise Conflict(name) from exc
    LOGGER.info("Created ingredient %r with id %s", name, db_ingredient.id)
    return db_ingredient.id


def create_ingredient(db: Session, name: str) -> int:
    try:
        ingredient_id = _insert_ingredient(db, name)
        db.commit()
    except Conflict:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageFailure(str(exc)) from exc
    return ingredient_id


def _resolve_ingredient(db: Session, ingredient: schemas.RecipeIngredient):
    if ingredient.ingredient_id is not None:
        return ingredient.ingredient_id
    existing = get_ingredient_by_name(db, ingredient.ingredient_name)
    if existing is not None:
        LOGGER.debug(
            "Reusing ingredient %r (id %s)", existing.name, existing.id
        )
        return existing.id
    return _insert_ingredient(db, ingredient.ingredient_name)


def create_recipe(db: Session, recipe: schemas.RecipeCreate) -> int:
    """Insert a recipe and its ingredient links in a single transaction.

    Ingredients that carry an id are linked directly. Name-only ingredients
    are looked up inside the same transaction and created when missing.
    Nothing is committed unless every link row was written.
    """
    try:
        db_recipe = models.Recipe(
            name=recipe.name, instructions=recipe.instructions
        )
        db.add(db_recipe)
        db.flush()
        for ingredient in recipe.ingredients:
            ingredient_id = _resolve_ingredient(db, ingredient)
            db.add(
                models.RecipeIngredient(
                    recipe_id=db_recipe.id,
                    ingredient_id=ingredient_id,
                    quantity_unit=ingredient.quantity_unit,
                    notes=ingredient.notes,
                )
            )
            # one flush per link keeps link ids in input order
            db.flush()
        db.commit()
    except FeedMeError:
        LOGGER.warning("Rolled back recipe %r", recipe.name)
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        LOGGER.warning("Rolled back recipe %r: %s", recipe.name, exc)
        db.rollback()
        raise StorageFailure(str(exc)) from exc
    LOGGER.info(
        "Created recipe %r with id %s (%d ingredients)",
        recipe.name,
        db_recipe.id,
        len(recipe.ingredients),
    )
    return db_recipe.id


def _to_schema(db_recipe) -> schemas.Recipe:
    return schemas.Recipe(
        id=db_recipe.id,
        name=db_recipe.name,
        instructions=db_recipe.instructions,
        created_at=db_recipe.created_at,
        ingredients=[
            schemas.RecipeIngredient(
                ingredient_id=link.ingredient_id,
                ingredient_name=link.ingredient.name,
                quantity_unit=link.quantity_unit,
                notes=link.notes,
            )
            for link in db_recipe.links
        ],
    )


def get_recipe(db: Session, recipe_id: int) -> schemas.Recipe:
    db_recipe = (
        db.query(models.Recipe).filter(models.Recipe.id == recipe_id).first()
    )
    if db_recipe is None:
        raise RecipeNotFound(recipe_id)
    return _to_schema(db_recipe)


def get_recipes(db: Session, skip: int = 0, limit: int = 100):
    rows = (
        db.query(models.Recipe)
        .order_by(models.Recipe.id)
        .offset(skip)
        .limit(limit)
        .all()
    )
    return [_to_schema(r) for r in rows]


def generate_shopping_list(
    db: Session, recipe_ids: Iterable[int]
) -> List[schemas.ShoppingListItem]:
    """Combine the quantities of every ingredient used by the given recipes.

    Quantities are free text, so they are joined rather than summed.
    """
    recipe_ids = list(recipe_ids)
    if not recipe_ids:
        return []

    rows = (
        db.query(models.Ingredient.name, models.RecipeIngredient.quantity_unit)
        .join(
            models.RecipeIngredient,
            models.RecipeIngredient.ingredient_id == models.Ingredient.id,
        )
        .filter(models.RecipeIngredient.recipe_id.in_(recipe_ids))
        .order_by(models.RecipeIngredient.id)
        .all()
    )

    grouped: Dict[str, List[str]] = {}
    for name, quantity_unit in rows:
        grouped.setdefault(name, []).append(quantity_unit)

    return [
        schemas.ShoppingListItem(
            ingredient_name=name,
            combined_quantity=QUANTITY_SEPARATOR.join(quantities),
        )
        for name, quantities in sorted(grouped.items())
    ]
