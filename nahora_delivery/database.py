"""
Database Connection Module
Handles the relational store using the SQLAlchemy async engine.

The engine (and its connection pool) lives inside a ``Database`` object
created once in the application lifespan and disposed at shutdown.
Request handlers receive sessions through the ``get_db`` dependency.
"""

import logging
from typing import AsyncIterator, Optional

from fastapi import Request
from sqlalchemy import inspect, select
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from nahora_delivery.core.config import Settings

logger = logging.getLogger(__name__)


# Base class for all our models
class Base(DeclarativeBase):
    pass


class Database:
    """
    Store-access object owning the async engine and session factory.

    Example:
        >>> database = Database.from_settings(settings)
        >>> await database.init_db(settings)
        >>> async with database.session() as session:
        ...     ...
        >>> await database.dispose()
    """

    def __init__(
        self,
        url: str,
        ssl: bool = False,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
    ):
        engine_kwargs: dict = {"echo": echo}
        connect_args: dict = {}

        if make_url(url).get_backend_name() != "sqlite":
            engine_kwargs["pool_size"] = pool_size
            engine_kwargs["max_overflow"] = max_overflow
            if ssl:
                connect_args["sslmode"] = "require"

        self.engine: AsyncEngine = create_async_engine(
            url,
            connect_args=connect_args,
            **engine_kwargs,
        )

        # Session factory - creates new database sessions
        self.session_maker = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,  # Objects remain accessible after commit
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build the store-access object from application settings."""
        return cls(
            settings.database_url,
            ssl=settings.database_ssl,
            echo=settings.debug,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )

    def session(self) -> AsyncSession:
        """Open a new session (use as an async context manager)."""
        return self.session_maker()

    async def init_db(self, settings: Optional[Settings] = None) -> None:
        """
        Create all tables in database and seed default rows.
        Called once at application startup.
        """
        # Register models on Base.metadata
        from nahora_delivery import models

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ready")

        if settings is None:
            return

        async with self.session() as session:
            defaults = {
                "loja_aberta": settings.default_loja_aberta,
                "telefone_whatsapp": settings.default_telefone_whatsapp,
            }
            result = await session.execute(select(models.ConfigEntry.chave))
            existing = set(result.scalars().all())
            for chave, valor in defaults.items():
                if chave not in existing:
                    session.add(models.ConfigEntry(chave=chave, valor=valor))
                    logger.info(f"Seeded config key '{chave}'")

            if settings.admin_username and settings.admin_password:
                result = await session.execute(select(models.Administrador.id).limit(1))
                if result.first() is None:
                    session.add(models.Administrador(
                        usuario=settings.admin_username,
                        senha=settings.admin_password,
                    ))
                    logger.info(f"Created bootstrap administrator '{settings.admin_username}'")

            await session.commit()

    async def describe(self) -> dict:
        """
        Report the connected database and its tables.

        Returns:
            dict with ``database`` (name, dialect) and ``tables``
        """
        async with self.engine.connect() as conn:
            tables = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )

        return {
            "database": {
                "name": self.engine.url.database,
                "dialect": self.engine.dialect.name,
            },
            "tables": sorted(tables),
        }

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Dependency injection for FastAPI routes.
    Yields a database session and ensures cleanup.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
        finally:
            await session.close()
