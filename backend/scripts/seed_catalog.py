"""Script to seed the database with the sample catalog."""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from catprep.config import settings
from catprep.db import async_session, init_db
from catprep.seed import seed_catalog
from catprep.services.question_bank import QuestionBankService


async def main(seed_file: Path):
    """Create tables and load the catalog if it is empty."""
    print("Initializing database...")
    await init_db()

    async with async_session() as db:
        loaded = await seed_catalog(db, seed_file)
        total = await QuestionBankService(db).count_questions()

    print(f"Loaded {loaded} questions from {seed_file}")
    print(f"Total questions in bank: {total}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed subjects, topics and questions")
    parser.add_argument(
        "seed_file",
        type=Path,
        nargs="?",
        default=settings.seed_file,
        help="JSON catalog file",
    )
    args = parser.parse_args()
    asyncio.run(main(args.seed_file))
