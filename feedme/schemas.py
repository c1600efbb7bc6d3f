from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class IngredientCreate(BaseModel):
    name: str = Field(..., json_schema_extra={"example": "flour"})


class IngredientOut(BaseModel):
    id: int
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RecipeIngredient(BaseModel):
    # None means "resolve by name when the recipe is saved"
    ingredient_id: Optional[int] = None
    ingredient_name: str = Field(..., json_schema_extra={"example": "flour"})
    quantity_unit: str = Field("", json_schema_extra={"example": "2 cups"})
    notes: Optional[str] = Field(
        None, json_schema_extra={"example": "all-purpose"}
    )


class RecipeCreate(BaseModel):
    name: str = Field(..., json_schema_extra={"example": "Simple Pancakes"})
    instructions: Optional[str] = Field(
        None,
        json_schema_extra={"example": "Mix dry ingredients\nCook on skillet"},
    )
    ingredients: List[RecipeIngredient] = Field(default_factory=list)


class Recipe(RecipeCreate):
    id: int
    created_at: datetime

    def to_text(self) -> str:
        """Format the recipe the way the CLI prints it."""
        lines = [
            f"Recipe: {self.name}",
            f"ID: {self.id}",
            f"Created: {self.created_at}",
            "",
            "Ingredients:",
        ]
        for ing in self.ingredients:
            line = f"  - {ing.quantity_unit} {ing.ingredient_name}"
            if ing.notes is not None:
                line += f" ({ing.notes})"
            lines.append(line)
        text = "\n".join(lines) + "\n"
        if self.instructions is not None:
            text += f"\nInstructions:\n{self.instructions}\n"
        return text


class ShoppingListRequest(BaseModel):
    recipe_ids: List[int] = Field(
        default_factory=list, json_schema_extra={"example": [1, 2]}
    )


class ShoppingListItem(BaseModel):
    ingredient_name: str
    combined_quantity: str

    def to_text(self) -> str:
        return f"{self.ingredient_name}: {self.combined_quantity}"
