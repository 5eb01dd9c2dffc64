"""Database seeder: owner admin, categories, tags and sample articles."""
import argparse
import asyncio
import random
import time

from app.database import Base, storage
from app.models import ArticleStatus, Category, Role, Tag
from app.schemas import ArticleCreate, UserUpsert
from app.services import article_service, user_service

CATEGORIES = ["Backend", "Databases", "DevOps", "Essays", "Frontend"]

TAGS = ["python", "fastapi", "postgresql", "mysql", "docker", "kubernetes",
        "react", "typescript", "testing", "performance", "security", "asyncio"]


async def upsert_owner(session, owner_open_id: str):
    """Create or update the site owner as an admin, whatever OWNER_OPEN_ID says."""
    return await user_service.upsert_user(
        session,
        UserUpsert(open_id=owner_open_id, name="Site Owner", login_method="seed", role=Role.ADMIN),
    )


async def seed(owner_open_id: str, num_articles: int, reset: bool = False):
    factory = storage.get_sessionmaker()
    if factory is None:
        raise SystemExit("DATABASE_URL is not set or not usable; nothing to seed")

    print(f"Seeding: {len(CATEGORIES)} categories, {len(TAGS)} tags, {num_articles} articles")
    start = time.perf_counter()

    async with storage.engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with factory() as session:
        owner = await upsert_owner(session, owner_open_id)
        print(f"  Owner {owner.open_id} has role {owner.role.value}")

        categories = [Category(name=name) for name in CATEGORIES]
        tags = [Tag(name=name) for name in TAGS]
        session.add_all([*categories, *tags])
        await session.flush()
        print(f"  Created {len(categories)} categories and {len(tags)} tags")

        published = 0
        for i in range(num_articles):
            topic = random.choice(TAGS)
            status = ArticleStatus.PUBLISHED if random.random() > 0.2 else ArticleStatus.DRAFT
            published += status is ArticleStatus.PUBLISHED
            await article_service.create_article(
                session,
                ArticleCreate(
                    title=f"Article {i}: Working with {topic}",
                    slug=f"article-{i}-{topic}",
                    content=f"This is the full content of article {i}. " * 20,
                    summary=f"Notes on using {topic} in production.",
                    category_id=random.choice(categories).id,
                    status=status,
                    tag_ids=[t.id for t in random.sample(tags, k=random.randint(0, 3))],
                ),
                author_id=owner.id,
            )

        await session.commit()

    await storage.dispose()
    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Articles: {num_articles} ({published} published)")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--owner", required=True, help="open_id of the site owner (made admin)")
    parser.add_argument("--articles", type=int, default=30, help="Number of sample articles")
    parser.add_argument("--reset", action="store_true", help="Drop all tables first")
    args = parser.parse_args()
    asyncio.run(seed(args.owner, args.articles, reset=args.reset))


if __name__ == "__main__":
    main()
