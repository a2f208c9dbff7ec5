from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from contextlib import asynccontextmanager
from learnsync.core.config import settings
from learnsync.core.logger import get_logger

logger = get_logger("database")


def _engine_options(url: str) -> dict:
    """Pool and driver options; asyncpg-specific settings only apply to postgres URLs."""
    if not url.startswith("postgresql+asyncpg"):
        return {"echo": False, "future": True}
    ssl_config = {} if settings.IS_DEVELOPMENT else {"ssl": "require"}
    return {
        "echo": False,
        "connect_args": {
            **ssl_config,
            "server_settings": {
                "application_name": "learnsync",
                "jit": "off",
            },
            "command_timeout": 30,
        },
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 30,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
        "future": True,
    }


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False
)

async def get_db():
    """Dependency for getting a database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

@asynccontextmanager
async def async_session():
    """Context manager for a database session outside of a request."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
