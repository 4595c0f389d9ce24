from fastapi import Depends, Request

from newsdesk.config import settings
from newsdesk.exceptions import AdminRequired
from newsdesk.models import UserRole
from newsdesk.sessions import sessions


async def get_current_user(request: Request) -> dict | None:
    """
    Resolve the session cookie to the logged-in user's session record
    (``{id, name, email, role}``), or None for anonymous requests.
    """
    return await sessions.get(request.cookies.get(settings.SESSION_COOKIE))


async def require_admin(user: dict | None = Depends(get_current_user)) -> dict:
    """
    Guard for every admin-facing route.

    Anonymous requests and sessions without the admin role are rejected
    the same way; the ``AdminRequired`` handler turns that into a
    redirect to the login form rather than an error page.
    """
    if not user or user.get("role") != UserRole.ADMIN.value:
        raise AdminRequired()
    return user
