"""
Article service — business logic for the Article aggregate.

Design notes
------------
- Reads eager-load the author and category with ``joinedload`` so the
  display names come back in the same statement.  ``populate_existing``
  makes those reads refresh objects already held by the session.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
- The public detail read schedules the view increment as a background
  task with its own session.  The increment is best-effort: it never
  delays or fails the read.
- ``update_article`` reads the stored image path and writes it back in
  a separate statement; two concurrent updates of the same article can
  race on it.
"""
import logging
import re
from datetime import datetime, timezone

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload
from starlette.background import BackgroundTasks

from newsdesk.config import settings
from newsdesk.models import Article, ArticleStatus
from newsdesk.schemas import ArticleWrite

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_SLUG_SPACE_RE = re.compile(r"\s+")
_SLUG_STRIP_RE = re.compile(r"[^\w-]+", re.ASCII)
_SLUG_DASH_RE = re.compile(r"-{2,}")


def slugify(text: str) -> str:
    """Return a URL-safe, lowercase slug derived from *text*."""
    text = _SLUG_SPACE_RE.sub("-", str(text).lower())
    text = _SLUG_STRIP_RE.sub("", text)
    return _SLUG_DASH_RE.sub("-", text).strip("-")


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _article_to_dict(article: Article) -> dict:
    """Serialise an Article ORM instance to a plain dict."""
    return {
        "id": article.id,
        "title": article.title,
        "slug": article.slug,
        "excerpt": article.excerpt,
        "body": article.body,
        "status": article.status,
        "author_id": article.author_id,
        "category_id": article.category_id,
        "featured_image": article.featured_image,
        "views": article.views,
        "created_at": _isoformat(article.created_at),
        "published_at": _isoformat(article.published_at),
        "author": article.author.name if article.author else None,
        "category": article.category.name if article.category else None,
    }


def _select_articles():
    return (
        select(Article)
        .options(joinedload(Article.author), joinedload(Article.category))
        .execution_options(populate_existing=True)
    )


async def _fetch_one(db: AsyncSession, *criteria) -> Article | None:
    result = await db.execute(_select_articles().where(*criteria))
    return result.unique().scalar_one_or_none()


def _publish_time(status: ArticleStatus, previous: datetime | None = None) -> datetime | None:
    """
    ``published_at`` for an article saved with *status*.

    *previous* is the stored stamp of an article that was already
    published; it is kept when ``settings.PRESERVE_PUBLISH_TIME`` is on.
    """
    if status != ArticleStatus.PUBLISHED:
        return None
    if previous is not None and settings.PRESERVE_PUBLISH_TIME:
        return previous
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Public reads
# ---------------------------------------------------------------------------

async def list_published(db: AsyncSession) -> list[dict]:
    """Published articles, most recently published first.  Drafts never appear."""
    q = (
        _select_articles()
        .where(Article.status == ArticleStatus.PUBLISHED.value)
        .order_by(desc(Article.published_at), desc(Article.id))
    )
    result = await db.execute(q)
    return [_article_to_dict(a) for a in result.unique().scalars().all()]


async def get_article_by_slug(
    db: AsyncSession,
    slug: str,
    tasks: BackgroundTasks | None = None,
    session_factory: async_sessionmaker | None = None,
) -> dict | None:
    """
    Return the article whose slug is exactly *slug*, or None.

    On a hit, and when *tasks* is given, a view increment is queued to
    run after the response has been sent.  The returned dict carries the
    view count as read, before that increment.
    """
    article = await _fetch_one(db, Article.slug == slug)
    if article is None:
        return None

    if tasks is not None:
        tasks.add_task(increment_views, session_factory, article.id)
    return _article_to_dict(article)


async def increment_views(session_factory: async_sessionmaker, article_id: int) -> None:
    """Add one view to *article_id* in a session of its own.  Never raises."""
    try:
        async with session_factory() as session:
            await session.execute(
                update(Article)
                .where(Article.id == article_id)
                .values(views=Article.views + 1)
            )
            await session.commit()
    except Exception:
        logger.exception("View increment failed for article_id=%s", article_id)


# ---------------------------------------------------------------------------
# Admin reads
# ---------------------------------------------------------------------------

async def list_for_admin(db: AsyncSession) -> list[dict]:
    """Every article regardless of status, newest first."""
    q = _select_articles().order_by(desc(Article.created_at), desc(Article.id))
    result = await db.execute(q)
    return [_article_to_dict(a) for a in result.unique().scalars().all()]


async def get_article(db: AsyncSession, article_id: int) -> dict | None:
    article = await _fetch_one(db, Article.id == article_id)
    return _article_to_dict(article) if article else None


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_article(
    db: AsyncSession,
    data: ArticleWrite,
    author_id: int,
    featured_image: str | None = None,
) -> dict:
    """
    Create a new article owned by *author_id* and return it.

    A title whose slug is already taken raises ``IntegrityError`` on
    flush; it is not retried or renamed.
    """
    article = Article(
        title=data.title,
        slug=slugify(data.title),
        excerpt=data.excerpt,
        body=data.body,
        status=data.status.value,
        author_id=author_id,
        category_id=data.category_id,
        featured_image=featured_image,
        published_at=_publish_time(data.status),
    )
    db.add(article)
    await db.flush()
    logger.info("Created article id=%s slug=%r", article.id, article.slug)

    return _article_to_dict(await _fetch_one(db, Article.id == article.id))


async def update_article(
    db: AsyncSession,
    article_id: int,
    data: ArticleWrite,
    featured_image: str | None = None,
) -> dict | None:
    """
    Overwrite the content fields of *article_id* and return it, or None
    when the article does not exist.

    The slug is re-derived from the title.  Without a new
    *featured_image* the stored path is kept.  The author never changes.
    """
    article = await _fetch_one(db, Article.id == article_id)
    if article is None:
        return None

    was_published = article.status == ArticleStatus.PUBLISHED.value
    article.title = data.title
    article.slug = slugify(data.title)
    article.excerpt = data.excerpt
    article.body = data.body
    article.status = data.status.value
    article.category_id = data.category_id
    if featured_image:
        article.featured_image = featured_image
    article.published_at = _publish_time(
        data.status, article.published_at if was_published else None
    )

    await db.flush()
    logger.info("Updated article id=%s", article_id)
    return _article_to_dict(await _fetch_one(db, Article.id == article_id))


async def delete_article(db: AsyncSession, article_id: int) -> bool:
    """
    Delete the article identified by *article_id*.

    Returns True on success, False when the article does not exist.
    """
    result = await db.execute(select(Article).where(Article.id == article_id))
    article = result.scalar_one_or_none()
    if article is None:
        return False

    await db.delete(article)
    await db.flush()
    logger.info("Deleted article id=%s", article_id)
    return True
