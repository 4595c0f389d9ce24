import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from newsdesk.config import settings

logger = logging.getLogger(__name__)

# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> async_sessionmaker:
    """Session factory for work that outlives the request session."""
    return async_session


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------

async def seed_default_admin(db: AsyncSession) -> bool:
    """
    Insert the well-known administrator account unless a user with that
    email already exists.

    Returns True when a row was created.
    """
    # Imported here: models import Base from this module.
    from newsdesk.models import User, UserRole
    from newsdesk.services.auth_service import hash_password

    email = settings.DEFAULT_ADMIN_EMAIL
    existing = await db.execute(select(User.id).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        return False

    db.add(
        User(
            name=settings.DEFAULT_ADMIN_NAME,
            email=email,
            password_hash=await hash_password(settings.DEFAULT_ADMIN_PASSWORD),
            role=UserRole.ADMIN.value,
        )
    )
    await db.flush()
    logger.info("Default admin created: %s", email)
    return True


async def init_db(db_engine=None, session_factory=None) -> None:
    """
    Create missing tables and seed the default administrator.

    Best-effort: failures are logged and never propagated, so the
    application still starts against a broken store.
    """
    db_engine = db_engine or engine
    session_factory = session_factory or async_session

    import newsdesk.models  # noqa: F401  (registers tables on Base.metadata)

    try:
        async with db_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception:
        logger.exception("Schema initialisation failed")
        return

    try:
        async with session_factory() as session:
            await seed_default_admin(session)
            await session.commit()
    except Exception:
        logger.exception("Default admin seeding failed")
