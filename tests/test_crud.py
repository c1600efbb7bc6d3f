# flake8: noqa
from unittest.mock import MagicMock

import pytest

from feedme import crud, models, schemas
from feedme.errors import (
    Conflict,
    IngredientNotFound,
    NotFound,
    RecipeNotFound,
    StorageFailure,
)


def ing(name, quantity_unit, notes=None, ingredient_id=None):
    return schemas.RecipeIngredient(
        ingredient_id=ingredient_id,
        ingredient_name=name,
        quantity_unit=quantity_unit,
        notes=notes,
    )


def count_ingredients(db, name=None):
    q = db.query(models.Ingredient)
    if name is not None:
        q = q.filter(models.Ingredient.name == name)
    return q.count()


def test_create_ingredient(db):
    ingredient_id = crud.create_ingredient(db, "tomato")
    assert ingredient_id > 0
    assert crud.get_ingredient(db, ingredient_id).name == "tomato"


def test_create_ingredient_duplicate_name_conflicts(db):
    crud.create_ingredient(db, "flour")
    with pytest.raises(Conflict):
        crud.create_ingredient(db, "flour")
    # the session is still usable after the rollback
    assert count_ingredients(db) == 1
    crud.create_ingredient(db, "sugar")
    assert count_ingredients(db) == 2


def test_get_all_ingredients_sorted_by_name(db):
    assert crud.get_all_ingredients(db) == []
    for name in ("flour", "sugar", "butter"):
        crud.create_ingredient(db, name)

    ingredients = crud.get_all_ingredients(db)
    assert [i.name for i in ingredients] == ["butter", "flour", "sugar"]
    assert all(i.id > 0 and i.created_at is not None for i in ingredients)
    assert crud.known_ingredients(db) == {i.name: i.id for i in ingredients}


def test_get_ingredient_not_found(db):
    with pytest.raises(IngredientNotFound) as excinfo:
        crud.get_ingredient(db, 42)
    assert excinfo.value.id == 42
    assert isinstance(excinfo.value, NotFound)


def test_create_and_get_recipe_roundtrip(db):
    flour_id = crud.create_ingredient(db, "flour")
    sugar_id = crud.create_ingredient(db, "sugar")
    recipe = schemas.RecipeCreate(
        name="Chocolate Chip Cookies",
        instructions="Mix dry ingredients\nBake at 350F for 12 minutes",
        ingredients=[
            ing("sugar", "1 cup", ingredient_id=sugar_id),
            ing("flour", "2 cups", "all-purpose", ingredient_id=flour_id),
            ing("chocolate chips", "2 cups", "semi-sweet"),
            ing("eggs", "2 whole"),
        ],
    )

    recipe_id = crud.create_recipe(db, recipe)
    fetched = crud.get_recipe(db, recipe_id)

    assert fetched.id == recipe_id
    assert fetched.name == "Chocolate Chip Cookies"
    assert fetched.instructions == "Mix dry ingredients\nBake at 350F for 12 minutes"
    assert fetched.created_at is not None
    # insertion order, not alphabetical
    assert [i.ingredient_name for i in fetched.ingredients] == [
        "sugar",
        "flour",
        "chocolate chips",
        "eggs",
    ]
    assert [i.quantity_unit for i in fetched.ingredients] == [
        "1 cup",
        "2 cups",
        "2 cups",
        "2 whole",
    ]
    assert [i.notes for i in fetched.ingredients] == [
        None,
        "all-purpose",
        "semi-sweet",
        None,
    ]
    assert fetched.ingredients[0].ingredient_id == sugar_id
    assert fetched.ingredients[1].ingredient_id == flour_id


def test_create_recipe_without_ingredients(db):
    recipe_id = crud.create_recipe(db, schemas.RecipeCreate(name="Empty Recipe"))
    fetched = crud.get_recipe(db, recipe_id)
    assert fetched.name == "Empty Recipe"
    assert fetched.ingredients == []
    assert fetched.instructions is None


def test_shared_ingredient_is_created_once(db):
    crud.create_recipe(
        db,
        schemas.RecipeCreate(name="Pancakes", ingredients=[ing("flour", "2 cups")]),
    )
    crud.create_recipe(
        db,
        schemas.RecipeCreate(name="Bread", ingredients=[ing("flour", "500g")]),
    )
    assert count_ingredients(db, "flour") == 1
    assert count_ingredients(db) == 1


def test_names_are_compared_exactly(db):
    crud.create_recipe(
        db,
        schemas.RecipeCreate(
            name="Cake", ingredients=[ing("flour", "1 cup"), ing("Flour", "1 cup")]
        ),
    )
    assert count_ingredients(db) == 2


def test_create_recipe_is_atomic(db):
    crud.create_ingredient(db, "salt")
    bad = schemas.RecipeCreate(
        name="Broken",
        ingredients=[ing("pepper", "1 pinch"), ing("ghost", "1 cup", ingredient_id=999)],
    )
    with pytest.raises(StorageFailure):
        crud.create_recipe(db, bad)

    assert db.query(models.Recipe).count() == 0
    assert db.query(models.RecipeIngredient).count() == 0
    # the ingredient created earlier in the failed transaction is gone too
    assert count_ingredients(db, "pepper") == 0
    assert count_ingredients(db) == 1


def test_get_recipe_not_found(db):
    with pytest.raises(RecipeNotFound) as excinfo:
        crud.get_recipe(db, 999)
    assert excinfo.value.id == 999


def test_get_recipes_lists_in_id_order(db):
    first = crud.create_recipe(db, schemas.RecipeCreate(name="B"))
    second = crud.create_recipe(db, schemas.RecipeCreate(name="A"))
    assert [r.id for r in crud.get_recipes(db)] == [first, second]
    assert [r.id for r in crud.get_recipes(db, skip=1)] == [second]


def test_shopping_list_empty_ids_does_not_touch_storage():
    fake_db = MagicMock()
    assert crud.generate_shopping_list(fake_db, []) == []
    assert fake_db.mock_calls == []


def test_shopping_list_combines_quantities(db):
    r1 = crud.create_recipe(
        db,
        schemas.RecipeCreate(
            name="Pancakes",
            ingredients=[ing("milk", "1 cup"), ing("flour", "2 cups")],
        ),
    )
    r2 = crud.create_recipe(
        db,
        schemas.RecipeCreate(
            name="Bread",
            ingredients=[ing("flour", "3 cups"), ing("yeast", "1 packet")],
        ),
    )
    expected = [
        ("flour", "2 cups + 3 cups"),
        ("milk", "1 cup"),
        ("yeast", "1 packet"),
    ]

    for ids in ([r1, r2], [r2, r1]):
        items = crud.generate_shopping_list(db, ids)
        assert [(i.ingredient_name, i.combined_quantity) for i in items] == expected

    only_bread = crud.generate_shopping_list(db, [r2])
    assert [i.to_text() for i in only_bread] == ["flour: 3 cups", "yeast: 1 packet"]


def test_shopping_list_unknown_ids(db):
    assert crud.generate_shopping_list(db, [123]) == []


def test_create_recipe_conflict_when_name_appears_concurrently(db, monkeypatch):
    # another writer created "flour" after our lookup
    crud.create_ingredient(db, "flour")
    monkeypatch.setattr(crud, "get_ingredient_by_name", lambda db, name: None)

    recipe = schemas.RecipeCreate(
        name="Pancakes",
        ingredients=[ing("milk", "1 cup"), ing("flour", "2 cups")],
    )
    with pytest.raises(Conflict) as excinfo:
        crud.create_recipe(db, recipe)
    assert excinfo.value.name == "flour"

    assert db.query(models.Recipe).count() == 0
    assert db.query(models.RecipeIngredient).count() == 0
    assert count_ingredients(db, "milk") == 0
    assert count_ingredients(db) == 1
