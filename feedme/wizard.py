"""Interactive recipe entry.

The wizard is a small state machine driven one key at a time. Each state is a
plain dataclass holding its own input buffer; ``handle_key`` looks at the
current state and returns the next one, mutating the shared ``Draft`` where a
step completes. Rendering reads the state and the draft and never changes
either.
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from sqlalchemy.orm import Session

from . import crud, schemas

LOGGER = logging.getLogger(__name__)


class KeyKind(enum.Enum):
    CHAR = "char"
    BACKSPACE = "backspace"
    ENTER = "enter"
    ESCAPE = "escape"


@dataclass(frozen=True)
class Key:
    kind: KeyKind
    char: str = ""

    @classmethod
    def of(cls, c: str) -> "Key":
        return cls(KeyKind.CHAR, c)

    @classmethod
    def backspace(cls) -> "Key":
        return cls(KeyKind.BACKSPACE)

    @classmethod
    def enter(cls) -> "Key":
        return cls(KeyKind.ENTER)

    @classmethod
    def escape(cls) -> "Key":
        return cls(KeyKind.ESCAPE)


YES_KEYS = ("y", "Y")
NO_KEYS = ("n", "N")


class WizardAction(enum.Enum):
    CONTINUE = "continue"
    SAVE_AND_EXIT = "save"
    CANCEL_AND_EXIT = "cancel"


@dataclass(frozen=True)
class Existing:
    id: int


@dataclass(frozen=True)
class New:
    pass


IngredientStatus = Union[Existing, New]


@dataclass
class IngredientEntry:
    status: IngredientStatus
    quantity_unit: str = ""
    notes: str = ""


@dataclass
class Draft:
    # read-only snapshot: name -> id
    known_ingredients: Dict[str, int] = field(default_factory=dict)
    name: str = ""
    # dicts keep insertion order, which is the display and save order
    ingredients: Dict[str, IngredientEntry] = field(default_factory=dict)
    instructions: List[str] = field(default_factory=list)
    finished: bool = False


# --- states ----------------------------------------------------------------


@dataclass
class NameEntry:
    buffer: str = ""


@dataclass
class IngredientList:
    buffer: str = ""
    error: Optional[str] = None


@dataclass
class ConfirmIngredient:
    name: str


@dataclass
class IngredientQuantity:
    name: str
    status: IngredientStatus
    buffer: str = ""


@dataclass
class IngredientNotes:
    name: str
    status: IngredientStatus
    quantity_unit: str
    buffer: str = ""


@dataclass
class Instructions:
    buffer: str = ""


WizardState = Union[
    NameEntry,
    IngredientList,
    ConfirmIngredient,
    IngredientQuantity,
    IngredientNotes,
    Instructions,
]


def _edit(buffer: str, key: Key) -> str:
    if key.kind is KeyKind.CHAR:
        return buffer + key.char
    if key.kind is KeyKind.BACKSPACE:
        return buffer[:-1]
    return buffer


def _name_entry(state: NameEntry, key: Key, draft: Draft) -> WizardState:
    if key.kind is KeyKind.ENTER:
        draft.name = state.buffer
        state.buffer = ""
        return IngredientList()
    state.buffer = _edit(state.buffer, key)
    return state


def _ingredient_list(
    state: IngredientList, key: Key, draft: Draft
) -> WizardState:
    if key.kind in (KeyKind.CHAR, KeyKind.BACKSPACE):
        state.buffer = _edit(state.buffer, key)
        state.error = None
        return state
    if key.kind is not KeyKind.ENTER:
        return state

    name = state.buffer
    if not name:
        return Instructions()
    if name in draft.ingredients:
        state.error = f"'{name}' already added"
        state.buffer = ""
        return state
    if name in draft.known_ingredients:
        known_id = draft.known_ingredients[name]
        return IngredientQuantity(name, Existing(known_id))
    return ConfirmIngredient(name)


def _confirm_ingredient(
    state: ConfirmIngredient, key: Key, draft: Draft
) -> WizardState:
    if key.kind is not KeyKind.CHAR:
        return state
    if key.char in YES_KEYS:
        return IngredientQuantity(state.name, New())
    if key.char in NO_KEYS:
        return IngredientList()
    return state


def _ingredient_quantity(
    state: IngredientQuantity, key: Key, draft: Draft
) -> WizardState:
    if key.kind is KeyKind.ENTER:
        return IngredientNotes(state.name, state.status, state.buffer)
    state.buffer = _edit(state.buffer, key)
    return state


def _ingredient_notes(
    state: IngredientNotes, key: Key, draft: Draft
) -> WizardState:
    if key.kind is KeyKind.ENTER:
        draft.ingredients[state.name] = IngredientEntry(
            status=state.status,
            quantity_unit=state.quantity_unit,
            notes=state.buffer,
        )
        return IngredientList()
    state.buffer = _edit(state.buffer, key)
    return state


def _instructions(state: Instructions, key: Key, draft: Draft) -> WizardState:
    if key.kind is not KeyKind.ENTER:
        state.buffer = _edit(state.buffer, key)
        return state
    if not state.buffer:
        draft.finished = True
    else:
        draft.instructions.append(state.buffer)
        state.buffer = ""
    return state


_HANDLERS = {
    NameEntry: _name_entry,
    IngredientList: _ingredient_list,
    ConfirmIngredient: _confirm_ingredient,
    IngredientQuantity: _ingredient_quantity,
    IngredientNotes: _ingredient_notes,
    Instructions: _instructions,
}


def handle_key(state: WizardState, key: Key, draft: Draft) -> WizardState:
    """Apply one key to the current state and return the state to use next."""
    return _HANDLERS[type(state)](state, key, draft)


# --- rendering -------------------------------------------------------------


@dataclass(frozen=True)
class Panel:
    title: str
    lines: List[str] = field(default_factory=list)


def ingredient_line(name: str, entry: IngredientEntry) -> str:
    text = f"{entry.quantity_unit} {name}" if entry.quantity_unit else name
    if entry.notes:
        text += f" ({entry.notes})"
    return text


def _ingredients_panel(draft: Draft) -> Panel:
    return Panel(
        f"Ingredients for {draft.name}",
        [ingredient_line(n, e) for n, e in draft.ingredients.items()],
    )


def render(state: WizardState, draft: Draft) -> List[Panel]:
    if isinstance(state, NameEntry):
        return [Panel("Recipe Name (Enter to Continue)", [state.buffer])]

    if isinstance(state, IngredientList):
        if state.error:
            title = (
                f"Enter ingredients for {draft.name} - ERROR: {state.error}"
            )
        else:
            title = (
                f"Enter ingredients {draft.name} (Enter on empty to continue)"
            )
        return [_ingredients_panel(draft), Panel(title, [state.buffer])]

    if isinstance(state, ConfirmIngredient):
        return [
            Panel(
                "Confirm New Ingredient",
                [f"Add new ingredient '{state.name}'?", "", "(Y)es / (N)o"],
            )
        ]

    if isinstance(state, IngredientQuantity):
        return [Panel(f"Quantity for {state.name}", [state.buffer])]

    if isinstance(state, IngredientNotes):
        return [
            Panel(f"Notes for {state.name} (Enter to skip)", [state.buffer])
        ]

    steps = [f"{i}. {step}" for i, step in enumerate(draft.instructions, 1)]
    step_num = len(draft.instructions) + 1
    return [
        _ingredients_panel(draft),
        Panel("Instructions", steps),
        Panel(
            f"Enter step {step_num} (Enter on empty to finish)",
            [state.buffer],
        ),
    ]


# --- controller ------------------------------------------------------------


class RecipeWizard:
    """Drives the wizard states and owns the draft being built."""

    def __init__(self, known_ingredients: Dict[str, int]):
        self.state: WizardState = NameEntry()
        self.draft = Draft(known_ingredients=dict(known_ingredients))

    def handle_key(self, key: Key) -> WizardAction:
        if key.kind is KeyKind.ESCAPE:
            LOGGER.debug("Wizard cancelled in %s", type(self.state).__name__)
            return WizardAction.CANCEL_AND_EXIT
        self.state = handle_key(self.state, key, self.draft)
        if self.draft.finished:
            return WizardAction.SAVE_AND_EXIT
        return WizardAction.CONTINUE

    def feed(self, keys) -> WizardAction:
        """Apply keys in order, stopping at the first exit action."""
        action = WizardAction.CONTINUE
        for key in keys:
            action = self.handle_key(key)
            if action is not WizardAction.CONTINUE:
                break
        return action

    def render(self) -> List[Panel]:
        return render(self.state, self.draft)


# --- saving ----------------------------------------------------------------


def draft_to_recipe(draft: Draft) -> Optional[schemas.RecipeCreate]:
    """Turn a finished draft into a create request.

    Returns None when the draft has no name.
    """
    if not draft.name:
        return None
    ingredients = []
    for name, entry in draft.ingredients.items():
        ingredient_id = (
            entry.status.id if isinstance(entry.status, Existing) else None
        )
        ingredients.append(
            schemas.RecipeIngredient(
                ingredient_id=ingredient_id,
                ingredient_name=name,
                quantity_unit=entry.quantity_unit,
                notes=entry.notes or None,
            )
        )
    return schemas.RecipeCreate(
        name=draft.name,
        instructions="\n".join(draft.instructions) or None,
        ingredients=ingredients,
    )


def persist_draft(db: Session, draft: Draft) -> Optional[int]:
    recipe = draft_to_recipe(draft)
    if recipe is None:
        return None
    return crud.create_recipe(db, recipe)
