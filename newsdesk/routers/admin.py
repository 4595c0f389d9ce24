from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from newsdesk.config import settings
from newsdesk.database import get_db
from newsdesk.dependencies import require_admin
from newsdesk.exceptions import UploadError
from newsdesk.models import ArticleStatus
from newsdesk.schemas import ArticleWrite, ErrorResponse, UploadResponse
from newsdesk.services import article_service, auth_service, category_service
from newsdesk.sessions import sessions
from newsdesk.storage import discard_upload, has_file, save_optional_upload, save_upload
from newsdesk.templating import templates

LOGIN_FAILED = "Invalid email or password"

# Login / logout are reachable without a session.
auth_router = APIRouter(prefix="/admin", tags=["auth"])

# Everything else under /admin runs the admin guard before the handler.
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _redirect(url: str) -> RedirectResponse:
    # 303 so the browser follows a form POST/PUT/DELETE with a GET.
    return RedirectResponse(url, status_code=303)


def _article_form(
    title: str = Form(..., min_length=1, max_length=300),
    excerpt: str = Form(""),
    body: str = Form(""),
    status: ArticleStatus = Form(ArticleStatus.DRAFT),
    category: int | None = Form(None),
) -> ArticleWrite:
    return ArticleWrite(
        title=title, excerpt=excerpt, body=body, status=status, category_id=category
    )


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

@auth_router.get("/login")
async def login_form(request: Request):
    return templates.TemplateResponse(request, "admin_login.html", {"error": None})

@auth_router.post("/login")
async def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    db: AsyncSession = Depends(get_db),
):
    user = await auth_service.authenticate(db, email, password)
    if user is None:
        return templates.TemplateResponse(
            request, "admin_login.html", {"error": LOGIN_FAILED}, status_code=401
        )
    token = await sessions.create(user)
    response = _redirect("/admin")
    response.set_cookie(
        settings.SESSION_COOKIE,
        token,
        max_age=settings.SESSION_TTL_SECONDS,
        httponly=True,
        samesite="lax",
        secure=settings.APP_ENV == "production",
    )
    return response

@auth_router.get("/logout")
async def logout(request: Request):
    await sessions.destroy(request.cookies.get(settings.SESSION_COOKIE))
    response = _redirect("/")
    response.delete_cookie(settings.SESSION_COOKIE)
    return response


# ---------------------------------------------------------------------------
# Dashboard and forms
# ---------------------------------------------------------------------------

@router.get("")
async def dashboard(
    request: Request,
    user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    articles = await article_service.list_for_admin(db)
    return templates.TemplateResponse(
        request, "admin_dashboard.html", {"articles": articles, "user": user}
    )

@router.get("/new")
async def new_article_form(
    request: Request,
    user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    categories = await category_service.list_categories(db)
    return templates.TemplateResponse(
        request,
        "admin_edit.html",
        {"article": None, "categories": categories, "user": user},
    )

@router.get("/edit/{article_id}")
async def edit_article_form(
    article_id: int,
    request: Request,
    user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    article = await article_service.get_article(db, article_id)
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    categories = await category_service.list_categories(db)
    return templates.TemplateResponse(
        request,
        "admin_edit.html",
        {"article": article, "categories": categories, "user": user},
    )


# ---------------------------------------------------------------------------
# Article mutations
# ---------------------------------------------------------------------------

@router.post("/articles")
async def create_article(
    data: ArticleWrite = Depends(_article_form),
    featured_image: UploadFile | None = File(None),
    user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    image = await save_optional_upload(featured_image)
    await article_service.create_article(db, data, user["id"], image)
    return _redirect("/admin")

@router.put("/articles/{article_id}")
async def update_article(
    article_id: int,
    data: ArticleWrite = Depends(_article_form),
    featured_image: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
):
    image = await save_optional_upload(featured_image)
    try:
        updated = await article_service.update_article(db, article_id, data, image)
    except Exception:
        discard_upload(image)
        raise
    if updated is None:
        discard_upload(image)
        raise HTTPException(status_code=404, detail="Article not found")
    return _redirect("/admin")

@router.delete("/articles/{article_id}")
async def delete_article(article_id: int, db: AsyncSession = Depends(get_db)):
    deleted = await article_service.delete_article(db, article_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Article not found")
    return _redirect("/admin")

@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
)
async def upload(file: UploadFile | None = File(None)):
    if not has_file(file):
        raise UploadError("No file", status_code=400)
    return UploadResponse(url=await save_upload(file))
