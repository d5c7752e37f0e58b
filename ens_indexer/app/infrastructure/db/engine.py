from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from ens_indexer.app.config import settings


def create_app_async_engine(*, url: str | None = None, echo: bool = False) -> AsyncEngine:
    """
    AsyncEngine for the ens.* tables, one per indexing task.

    `url` defaults to the asyncpg URL assembled in Settings. Connections are
    pinged before checkout because a long enrichment phase can leave pooled
    connections idle past the server timeout.
    """
    return create_async_engine(
        url or settings.database_url,  # postgresql+asyncpg://...
        echo=echo,
        pool_pre_ping=True,
    )
