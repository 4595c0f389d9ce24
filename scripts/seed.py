"""Database seeder: schema, default admin, categories and demo articles."""
import asyncio
import argparse
import logging

from sqlalchemy import select

from newsdesk.config import settings
from newsdesk.database import async_session, engine, init_db
from newsdesk.models import ArticleStatus, Category, User
from newsdesk.schemas import ArticleWrite
from newsdesk.services import article_service, category_service

logger = logging.getLogger("seed")

DEFAULT_CATEGORIES = ["Politics", "Business", "Technology", "Sports", "Culture"]


async def seed(categories: list[str], demo_articles: int = 0) -> None:
    await init_db(engine, async_session)

    async with async_session() as session:
        existing = set((await session.execute(select(Category.name))).scalars().all())
        created = 0
        for name in categories:
            if name not in existing:
                await category_service.create_category(session, name)
                created += 1
        logger.info("Created %d categories", created)

        if demo_articles:
            admin = (
                await session.execute(
                    select(User).where(User.email == settings.DEFAULT_ADMIN_EMAIL)
                )
            ).scalar_one()
            cats = (await session.execute(select(Category.id))).scalars().all()
            for i in range(demo_articles):
                await article_service.create_article(
                    session,
                    ArticleWrite(
                        title=f"Demo story {i + 1}",
                        excerpt=f"Excerpt of demo story {i + 1}.",
                        body=f"This is the body of demo story {i + 1}. " * 10,
                        status=ArticleStatus.PUBLISHED if i % 4 else ArticleStatus.DRAFT,
                        category_id=cats[i % len(cats)] if cats else None,
                    ),
                    admin.id,
                )
            logger.info("Created %d demo articles", demo_articles)

        await session.commit()

    await engine.dispose()


def main():
    parser = argparse.ArgumentParser(description="Seed the newsdesk database")
    parser.add_argument(
        "--categories", nargs="*", default=DEFAULT_CATEGORIES,
        help="Category names to create (existing names are skipped)",
    )
    parser.add_argument(
        "--demo-articles", type=int, default=0,
        help="Number of demo articles to create for the default admin",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    asyncio.run(seed(args.categories, args.demo_articles))


if __name__ == "__main__":
    main()
