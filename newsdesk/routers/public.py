from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from newsdesk.database import get_db, get_session_factory
from newsdesk.dependencies import get_current_user
from newsdesk.services import article_service
from newsdesk.templating import templates

router = APIRouter(tags=["public"])

@router.get("/")
async def index(
    request: Request,
    user: dict | None = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    articles = await article_service.list_published(db)
    return templates.TemplateResponse(
        request, "index.html", {"articles": articles, "user": user}
    )

@router.get("/article/{slug}")
async def article_detail(
    slug: str,
    request: Request,
    background_tasks: BackgroundTasks,
    user: dict | None = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    article = await article_service.get_article_by_slug(
        db, slug, tasks=background_tasks, session_factory=session_factory
    )
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    return templates.TemplateResponse(
        request, "article.html", {"article": article, "user": user}
    )
