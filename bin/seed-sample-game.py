"""Write a generated sample game into the configured store and print its id.

Usage: uv run python bin/seed-sample-game.py [seed]

Uses the hosted store when STORE_CLOUD_URL and STORE_CLOUD_KEY are set,
the local SQLite file otherwise.
"""

import asyncio
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from shared.logging import setup_logging
from wizard.logic.sample import generate_sample_game
from wizard.store import StoreError, StoreSettings, create_game_repository


async def main() -> None:
    if len(sys.argv) > 2:  # noqa: PLR2004
        print(f"Usage: {sys.argv[0]} [seed]")
        sys.exit(1)

    try:
        seed = int(sys.argv[1]) if len(sys.argv) == 2 else None  # noqa: PLR2004
    except ValueError:
        print(f"Error: seed must be an integer, got {sys.argv[1]!r}")
        sys.exit(1)

    setup_logging()
    repository = create_game_repository(StoreSettings())
    game = generate_sample_game(seed=seed)

    try:
        await repository.save_game(game)
    except StoreError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        await repository.close()

    print(f"Sample game saved: {game.name} (id: {game.id}, storage: {repository.storage_mode})")


if __name__ == "__main__":
    asyncio.run(main())
