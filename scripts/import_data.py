import sys
from pathlib import Path

from feedme.db import init_db, session_scope
from feedme.recipes import import_recipes


def main():
    init_db()
    if len(sys.argv) > 1:
        p = Path(sys.argv[1])
    else:
        p = Path(__file__).resolve().parents[1] / 'data' / 'recipes.json'
    if not p.exists():
        print(f'{p} not found')
        return
    with session_scope() as db:
        added = import_recipes(db, p)
    print(f'Imported {len(added)} recipes')


if __name__ == '__main__':
    main()
