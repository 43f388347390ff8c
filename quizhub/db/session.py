from collections.abc import AsyncGenerator
from uuid import uuid4

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from quizhub.core.config import get_settings


def build_engine(url: str) -> AsyncEngine:
    db_url = make_url(url)
    if db_url.get_backend_name() == "sqlite":
        return create_async_engine(url, connect_args={"timeout": 30})

    engine_kwargs: dict = {"pool_pre_ping": True}
    query = dict(db_url.query)
    # pgbouncer in transaction mode cannot keep prepared statements between transactions.
    if db_url.port == 6543:
        engine_kwargs["poolclass"] = NullPool
        engine_kwargs["connect_args"] = {
            "statement_cache_size": 0,
            "prepared_statement_name_func": lambda: f"__asyncpg_{uuid4().hex}__",
        }
        query["prepared_statement_cache_size"] = "0"
    else:
        engine_kwargs["connect_args"] = {"statement_cache_size": 0}
    db_url = db_url.set(query=query)
    return create_async_engine(db_url.render_as_string(hide_password=False), **engine_kwargs)


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


engine = build_engine(get_settings().async_database_url)
SessionLocal = build_sessionmaker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        yield session
