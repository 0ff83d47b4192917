"""
Database table creation script.

Creates all tables defined in ORM models using SQLAlchemy metadata. On
PostgreSQL this also enables the pgvector extension and adds the generated
full-text column and its GIN index to the chunks table (DDL hooks declared
in chunk_model).

Dependencies: sqlalchemy, docqa.configs
System role: Database schema initialization

Usage:
    python -m docqa.boundary.db.create_tables
"""

import asyncio

from sqlalchemy.ext.asyncio import AsyncEngine

from docqa.boundary.db.base import Base
from docqa.boundary.db.connection import get_async_engine

# Import all models to register them with Base.metadata
import docqa.boundary.db.models  # noqa: F401


async def create_all_tables(engine: AsyncEngine | None = None) -> None:
    """
    Create all database tables from registered ORM models.

    Idempotent: existing tables are left unchanged.

    Args:
        engine: Target engine (defaults to the configured one)

    Raises:
        SQLAlchemyError: Connection or DDL failure
    """
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("All tables created successfully.")


async def drop_all_tables(engine: AsyncEngine | None = None) -> None:
    """
    Drop all database tables and their data.

    WARNING: Irreversible data loss. Only use in development environments.
    """
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    print("All tables dropped successfully.")


if __name__ == "__main__":
    asyncio.run(create_all_tables())
