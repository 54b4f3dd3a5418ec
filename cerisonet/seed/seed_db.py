import asyncio
import json
import logging
from pathlib import Path
from sqlalchemy import func, select
from cerisonet.database import Base, async_session, engine
from cerisonet.db import close_mongo_connection, get_database
from cerisonet.models import Post
from cerisonet.models_sql import AccountSQL
from cerisonet.services.account_service import AccountService
from cerisonet.services.post_service import PostService

logger = logging.getLogger(__name__)

SEED_DIR = Path(__file__).parent

async def seed_accounts() -> int:
    """Create the accounts listed in accounts.json if the table is empty"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    with open(SEED_DIR / "accounts.json", "r", encoding="utf-8") as f:
        accounts_data = json.load(f)

    created = 0
    async with async_session() as session:
        count = (await session.execute(select(func.count()).select_from(AccountSQL))).scalar_one()
        if count:
            logger.info("Accounts table already holds %s rows, skipping", count)
            return 0

        service = AccountService(session)
        for data in accounts_data:
            try:
                await service.create_account(
                    email=data["email"],
                    password=data["password"],
                    first_name=data.get("firstName", ""),
                    last_name=data.get("lastName", ""),
                    avatar=data.get("avatar"),
                    account_id=data.get("id"),
                )
                created += 1
                logger.info("Created account: %s", data["email"])
            except ValueError as e:
                logger.warning("Skipping account %s: %s", data["email"], e)
    return created

async def seed_posts() -> int:
    """Insert the posts listed in posts.json if the collection is empty"""
    db = await get_database()
    service = PostService(db)

    if await service.collection.count_documents({}):
        logger.info("Posts collection is not empty, skipping")
        return 0

    with open(SEED_DIR / "posts.json", "r", encoding="utf-8") as f:
        posts_data = json.load(f)

    for data in posts_data:
        await service.insert_post(Post(**data))
    logger.info("Seeded %s posts", len(posts_data))
    return len(posts_data)

async def main():
    logger.info("Starting database seeding...")
    try:
        await seed_accounts()
        await seed_posts()
    finally:
        close_mongo_connection()
        await engine.dispose()
    logger.info("Database seeding completed!")

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    asyncio.run(main())
