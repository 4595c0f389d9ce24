"""
Auth service — password hashing and credential checks.

bcrypt is deliberately slow, so hashing and verification run in the
threadpool to keep the event loop responsive.  ``authenticate`` gives
the same answer for an unknown email and a wrong password, and spends
one bcrypt comparison in both cases.
"""
import logging
from functools import lru_cache

import bcrypt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from newsdesk.config import settings
from newsdesk.models import User

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def _dummy_hash(rounds: int) -> bytes:
    """A throwaway hash at the configured cost, compared against for unknown emails."""
    return bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt(rounds=rounds))


def _hash(password: str, rounds: int) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def _check(password: str, password_hash: bytes) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash)
    except ValueError:
        # Malformed stored hash.
        return False


def _check_unknown(password: str, rounds: int) -> bool:
    return _check(password, _dummy_hash(rounds))


async def hash_password(password: str) -> str:
    """Return a salted bcrypt hash of *password*."""
    return await run_in_threadpool(_hash, password, settings.BCRYPT_ROUNDS)


async def verify_password(password: str, password_hash: str) -> bool:
    return await run_in_threadpool(_check, password, password_hash.encode("ascii"))


def session_payload(user: User) -> dict:
    """The user fields carried in a login session."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
    }


async def authenticate(db: AsyncSession, email: str, password: str) -> dict | None:
    """
    Return the session payload for valid credentials, otherwise None.

    Callers cannot tell an unknown email from a wrong password.
    """
    result = await db.execute(select(User).where(User.email == email.strip()))
    user = result.scalar_one_or_none()

    if user is None:
        await run_in_threadpool(_check_unknown, password, settings.BCRYPT_ROUNDS)
        logger.info("Login rejected")
        return None

    if not await verify_password(password, user.password_hash):
        logger.info("Login rejected")
        return None

    logger.info("Login accepted for user_id=%s", user.id)
    return session_payload(user)
