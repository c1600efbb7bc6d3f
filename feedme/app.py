from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from . import crud, schemas
from .db import SessionLocal, init_db
from .errors import Conflict, NotFound, StorageFailure


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize DB once at startup
    init_db()
    yield


app = FastAPI(lifespan=lifespan)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, Conflict):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


@app.get("/api/ingredients", response_model=List[schemas.IngredientOut])
def list_ingredients(db: Session = Depends(get_db)):
    return crud.get_all_ingredients(db)


@app.post("/api/ingredients", response_model=schemas.IngredientOut)
def create_ingredient(
    payload: schemas.IngredientCreate, db: Session = Depends(get_db)
):
    try:
        ingredient_id = crud.create_ingredient(db, payload.name)
        return crud.get_ingredient(db, ingredient_id)
    except (Conflict, StorageFailure, NotFound) as exc:
        raise _http_error(exc)


@app.get("/api/recipes", response_model=List[schemas.Recipe])
def list_recipes(
    skip: int = 0, limit: int = 100, db: Session = Depends(get_db)
):
    return crud.get_recipes(db, skip=skip, limit=limit)


@app.get("/api/recipes/{recipe_id}", response_model=schemas.Recipe)
def read_recipe(recipe_id: int, db: Session = Depends(get_db)):
    try:
        return crud.get_recipe(db, recipe_id)
    except NotFound as exc:
        raise _http_error(exc)


@app.get(
    "/api/recipes/{recipe_id}/text", response_class=PlainTextResponse
)
def read_recipe_text(recipe_id: int, db: Session = Depends(get_db)):
    try:
        return crud.get_recipe(db, recipe_id).to_text()
    except NotFound as exc:
        raise _http_error(exc)


@app.post("/api/recipes", response_model=schemas.Recipe)
def create_recipe(recipe: schemas.RecipeCreate, db: Session = Depends(get_db)):
    try:
        recipe_id = crud.create_recipe(db, recipe)
        return crud.get_recipe(db, recipe_id)
    except (Conflict, StorageFailure, NotFound) as exc:
        raise _http_error(exc)


@app.post("/api/shopping-list", response_model=List[schemas.ShoppingListItem])
def shopping_list(
    payload: schemas.ShoppingListRequest, db: Session = Depends(get_db)
):
    return crud.generate_shopping_list(db, payload.recipe_ids)
