# cart_service/app/db/database.py
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base

logger = logging.getLogger(__name__)

# Базовый класс для моделей
Base = declarative_base()


class Database:
    """
    Два пула соединений: primary принимает запись, replica обслуживает чтение.

    Если адрес реплики не задан или совпадает с primary, оба пути
    используют один движок.
    """

    def __init__(self, primary_url: str, replica_url: str = None, **engine_options):
        self.primary_engine = create_async_engine(primary_url, **engine_options)
        if replica_url and replica_url != primary_url:
            self.replica_engine = create_async_engine(replica_url, **engine_options)
        else:
            self.replica_engine = self.primary_engine

        # Асинхронные фабрики сессий
        self.primary = sessionmaker(
            bind=self.primary_engine,
            class_=AsyncSession,
            expire_on_commit=False
        )
        self.replica = sessionmaker(
            bind=self.replica_engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(
            settings.database_url,
            settings.replica_database_url,
            echo=settings.db_echo,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
            pool_recycle=1800,
        )

    @property
    def has_replica(self) -> bool:
        return self.replica_engine is not self.primary_engine

    async def ping(self) -> bool:
        try:
            async with self.primary_engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            logger.warning("Database ping failed", exc_info=True)
            return False
        return True

    async def dispose(self):
        await self.primary_engine.dispose()
        if self.has_replica:
            await self.replica_engine.dispose()
        logger.info("Database connection pools closed")
