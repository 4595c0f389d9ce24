"""
Category service — categories are only listed by the admin forms; they
are created out of band (see ``scripts/seed.py``).
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.models import Category


def _category_to_dict(category: Category) -> dict:
    return {"id": category.id, "name": category.name}


async def list_categories(db: AsyncSession) -> list[dict]:
    result = await db.execute(select(Category).order_by(Category.name))
    return [_category_to_dict(c) for c in result.scalars().all()]


async def create_category(db: AsyncSession, name: str) -> dict:
    """
    Create a category and return it.

    Name uniqueness is enforced by the database; a duplicate raises
    ``IntegrityError`` on flush.
    """
    category = Category(name=name.strip())
    db.add(category)
    await db.flush()
    return _category_to_dict(category)
