class FeedMeError(Exception):
    """Base class for errors raised by the persistence layer."""


class NotFound(FeedMeError):
    kind = "Record"

    def __init__(self, id):
        self.id = id
        super().__init__(f"{self.kind} not found with id: {id}")


class RecipeNotFound(NotFound):
    kind = "Recipe"


class IngredientNotFound(NotFound):
    kind = "Ingredient"


class Conflict(FeedMeError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"Ingredient '{name}' already exists")


class StorageFailure(FeedMeError):
    pass
