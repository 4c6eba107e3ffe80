"""
Database initialization script
Creates the tables and loads level content from a JSON file
"""
import argparse
import asyncio
import json
from pathlib import Path

from sqlalchemy import select, func

from ulingo.database import AsyncSessionLocal, init_db
from ulingo.exceptions import DuplicateUserError, InvalidContentError
from ulingo.models.level import Level
from ulingo.models.user import User
from ulingo.schemas.level import LevelCreate
from ulingo.schemas.user import UserCreate
from ulingo.services import auth_service, level_service

DEFAULT_LEVELS = Path(__file__).resolve().parent / "data" / "levels.json"


async def load_levels(db, json_path: Path) -> int:
    """Load level content from JSON, skipping levels that already exist"""
    with open(json_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    inserted = 0
    for item in data:
        try:
            await level_service.create_level(db, LevelCreate(**item))
            inserted += 1
        except InvalidContentError as e:
            print(f"Skipping level {item.get('level_id')}: {e.message}")
        except ValueError as e:
            print(f"Error in level {item.get('level_id')}: {e}")

    print(f"Inserted {inserted} levels")
    return inserted


async def create_admin(db, username: str, password: str) -> None:
    try:
        await auth_service.create_user(
            db, UserCreate(username=username, password=password, name="Admin"), is_admin=True
        )
        print(f"Created admin: {username}")
    except DuplicateUserError:
        print(f"Admin {username} already exists")


async def verify_database(db) -> None:
    """Verify database contents"""
    levels_count = await db.scalar(select(func.count(Level.id)))
    users_count = await db.scalar(select(func.count(User.id)))
    print("\nVerification:")
    print(f"  Levels: {levels_count}")
    print(f"  Users: {users_count}")


async def main(levels_path: Path, admin: list | None) -> None:
    """Main execution"""
    print("U-Lingo Database Initialization")
    print("=" * 50)

    await init_db()
    print("Created tables")

    async with AsyncSessionLocal() as db:
        print(f"\nLoading levels from {levels_path}...")
        await load_levels(db, levels_path)

        if admin:
            await create_admin(db, *admin)

        await verify_database(db)

    print("\n" + "=" * 50)
    print("[OK] Database ready!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the U-Lingo database and load levels")
    parser.add_argument("--levels", type=Path, default=DEFAULT_LEVELS, help="Level content JSON")
    parser.add_argument("--admin", nargs=2, metavar=("USERNAME", "PASSWORD"), help="Also create an admin account")
    args = parser.parse_args()
    asyncio.run(main(args.levels, args.admin))
