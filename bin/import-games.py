"""Import games exported from the browser app into the local SQLite store.

Usage: uv run python bin/import-games.py <export.json>

The export is a JSON array of game documents. Games already stored are
skipped; an invalid document aborts the whole import.
"""

import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from wizard.store import Database, StoreSettings


def main() -> None:
    if len(sys.argv) != 2:  # noqa: PLR2004
        print(f"Usage: {sys.argv[0]} <export.json>")
        sys.exit(1)

    export_path = Path(sys.argv[1])
    if not export_path.is_file():
        print(f"Error: {export_path} does not exist")
        sys.exit(1)

    settings = StoreSettings()
    db = Database(settings.database_path)
    db.connect()
    try:
        imported = db.import_games_from_json(export_path)
    except OSError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()

    print(f"Imported {imported} game(s) into {settings.database_path}")


if __name__ == "__main__":
    main()
