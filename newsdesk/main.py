import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from newsdesk import __version__
from newsdesk.config import settings
from newsdesk.database import init_db
from newsdesk.exceptions import AdminRequired, UploadError
from newsdesk.middleware import MethodOverrideMiddleware, SecurityHeadersMiddleware, TimingMiddleware
from newsdesk.routers import admin, public
from newsdesk.sessions import sessions

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await init_db()
    await sessions.connect()
    yield
    # Shutdown
    await sessions.disconnect()

app = FastAPI(
    title="Newsdesk",
    description="Content management backend for a news site",
    version=__version__,
    lifespan=lifespan,
)

# Middleware (the last one added runs first)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(TimingMiddleware)
app.add_middleware(MethodOverrideMiddleware)

# Exception handlers
@app.exception_handler(AdminRequired)
async def admin_required_handler(request: Request, exc: AdminRequired):
    return RedirectResponse("/admin/login", status_code=302)

@app.exception_handler(UploadError)
async def upload_error_handler(request: Request, exc: UploadError):
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return PlainTextResponse("Database error", status_code=500)

# Routers
app.include_router(public.router)
app.include_router(admin.auth_router)
app.include_router(admin.router)

# Static files
for url, directory, name in (
    ("/uploads", settings.UPLOAD_DIR, "uploads"),
    ("/public", settings.PUBLIC_DIR, "public"),
):
    Path(directory).mkdir(parents=True, exist_ok=True)
    app.mount(url, StaticFiles(directory=directory), name=name)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": __version__}
