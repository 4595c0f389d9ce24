from pydantic import BaseModel, Field

from newsdesk.models import ArticleStatus


# --- Article ---

class ArticleWrite(BaseModel):
    """Content fields submitted by the admin create/edit form."""
    title: str = Field(min_length=1, max_length=300)
    excerpt: str = ""
    body: str = ""
    status: ArticleStatus = ArticleStatus.DRAFT
    category_id: int | None = None


# --- Upload ---

class UploadResponse(BaseModel):
    url: str


class ErrorResponse(BaseModel):
    error: str
