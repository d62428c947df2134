"""
Tests for the seed and production launcher scripts.
"""
import asyncio

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from conftest import count_rows
from models.models import Smell
from scripts.run_production import missing_environment
from scripts.seed import STARTER_SMELLS, seed_smells


def test_seed_is_idempotent_on_title(sync_engine, database_path, make_smell):
    make_smell("Magic Numbers", is_published=False)
    engine = create_async_engine(f"sqlite+aiosqlite:///{database_path}", poolclass=NullPool)
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)

    async def seed_twice():
        async with session_factory() as session:
            first = await seed_smells(session)
        async with session_factory() as session:
            second = await seed_smells(session)
        await engine.dispose()
        return first, second

    first, second = asyncio.run(seed_twice())

    assert first == len(STARTER_SMELLS) - 1
    assert second == 0
    assert count_rows(sync_engine, Smell) == len(STARTER_SMELLS)
    # the pre-existing draft is left untouched
    assert count_rows(sync_engine, Smell, Smell.is_published.is_(False)) == 1


def test_production_environment_check():
    assert missing_environment({"DATABASE_URL": "x", "JWT_SECRET_KEY": "k", "IDENTITY_TOKEN_SECRET": "i"}) == []
    assert missing_environment({"JWT_SECRET_KEY": "k"}) == [
        "IDENTITY_TOKEN_SECRET", "DB_HOST", "DB_USER", "DB_PASSWORD", "DB_NAME"
    ]
