import argparse
import logging
import os
import sys

from tabulate import tabulate

from . import crud, db
from .errors import FeedMeError
from .tui import raw_terminal, run_wizard
from .wizard import RecipeWizard, WizardAction, persist_draft


def run_in_terminal(wizard):
    with raw_terminal():
        return run_wizard(wizard)


def new_recipe(session, run=run_in_terminal):
    wizard = RecipeWizard(crud.known_ingredients(session))
    action = run(wizard)

    if action is not WizardAction.SAVE_AND_EXIT:
        print("Recipe entry cancelled.")
        return None
    if not wizard.draft.name:
        print("No recipe name provided, not saving.")
        return None
    print(f"Saving recipe: {wizard.draft.name}")
    recipe_id = persist_draft(session, wizard.draft)
    print(f"Recipe saved with ID: {recipe_id}")
    return recipe_id


def show_recipe(session, recipe_id):
    print(crud.get_recipe(session, recipe_id).to_text(), end="")


def list_ingredients(session):
    rows = [
        [i.id, i.name, i.created_at]
        for i in crud.get_all_ingredients(session)
    ]
    if not rows:
        print("No ingredients found")
        return
    print(
        tabulate(
            rows, headers=["ID", "Ingredient", "Created"], tablefmt="grid"
        )
    )


def shopping_list(session, recipe_ids):
    items = crud.generate_shopping_list(session, recipe_ids)
    if not items:
        print("Shopping list is empty")
        return
    rows = [[i.ingredient_name, i.combined_quantity] for i in items]
    print(
        tabulate(rows, headers=["Ingredient", "Quantity"], tablefmt="grid")
    )


def build_parser():
    parser = argparse.ArgumentParser(
        prog="feedme", description="Record recipes and build shopping lists"
    )
    parser.add_argument("--db", help="Database URL (default: $DATABASE_URL)")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("new", help="Enter a new recipe interactively")
    show = sub.add_parser("show", help="Print a saved recipe")
    show.add_argument("recipe_id", type=int)
    sub.add_parser("ingredients", help="List known ingredients")
    shop = sub.add_parser(
        "shopping-list", help="Combine ingredients of recipes"
    )
    shop.add_argument("recipe_ids", type=int, nargs="*")
    return parser


def main(argv=None):
    logging.basicConfig(
        level=os.getenv("FEEDME_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)
    db.configure(args.db)
    db.init_db()

    if args.command == "new" and not sys.stdin.isatty():
        print("Error: 'new' needs an interactive terminal", file=sys.stderr)
        return 1

    try:
        with db.session_scope() as session:
            if args.command == "new":
                new_recipe(session)
            elif args.command == "show":
                show_recipe(session, args.recipe_id)
            elif args.command == "ingredients":
                list_ingredients(session)
            elif args.command == "shopping-list":
                shopping_list(session, args.recipe_ids)
    except FeedMeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
