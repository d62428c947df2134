"""
Shared fixtures: a throwaway SQLite database per test, the app wired to it,
and factories for users, smells and relations.
"""
import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

# Add the parent directory to the Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
# set working directory to the project root (parent directory of this script directory)
os.chdir(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# The app engine is never used by tests, but it must not point at Postgres
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENABLE_FILE_LOGGING", "false")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select, func
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from app import app
from core.security import create_access_token
from db_config import Base, get_async_db, enable_sqlite_foreign_keys
from models.models import (
    User, Smell, Favorite, UserRoleEnum, SmellCategoryEnum, DifficultyLevelEnum
)


@pytest.fixture
def database_path(tmp_path):
    return tmp_path / "refactorium_test.db"


@pytest.fixture
def sync_engine(database_path):
    engine = create_engine(f"sqlite:///{database_path}")
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def client(sync_engine, database_path):
    async_engine = create_async_engine(f"sqlite+aiosqlite:///{database_path}", poolclass=NullPool)
    enable_sqlite_foreign_keys(async_engine.sync_engine)
    session_factory = async_sessionmaker(
        bind=async_engine, class_=AsyncSession, autoflush=False, expire_on_commit=False
    )

    async def override_get_async_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_db] = override_get_async_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def db(sync_engine):
    session = Session(sync_engine, expire_on_commit=False)
    yield session
    session.close()


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}


def count_rows(engine, model, *criteria):
    with Session(engine) as session:
        return session.execute(select(func.count()).select_from(model).where(*criteria)).scalar_one()


@pytest.fixture
def make_user(db):
    created = []

    def factory(role=UserRoleEnum.USER, email=None, name=None, **fields):
        user = User(
            email=email or f"user{len(created) + 1}@example.com",
            name=name,
            role=role,
            **fields
        )
        db.add(user)
        db.commit()
        created.append(user)
        return user

    return factory


@pytest.fixture
def make_smell(db):
    base_time = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    created = []

    def factory(title, difficulty=DifficultyLevelEnum.BEGINNER, category=SmellCategoryEnum.CODE_SMELL,
                is_published=True, created_at=None, **fields):
        smell = Smell(
            title=title,
            category=category,
            description=fields.pop("description", f"{title} description"),
            bad_code=fields.pop("bad_code", "x = 1"),
            good_code=fields.pop("good_code", "ONE = 1"),
            difficulty=difficulty,
            tags=fields.pop("tags", ""),
            is_published=is_published,
            created_at=created_at or base_time + timedelta(hours=len(created)),
            **fields
        )
        db.add(smell)
        db.commit()
        created.append(smell)
        return smell

    return factory


@pytest.fixture
def relate(db):
    def factory(user, smell, model=Favorite, **fields):
        row = model(user_id=user.id, smell_id=smell.id, **fields)
        db.add(row)
        db.commit()
        return row

    return factory


@pytest.fixture
def admin(make_user):
    return make_user(role=UserRoleEnum.ADMIN, email="admin@example.com", name="Admin")


@pytest.fixture
def moderator(make_user):
    return make_user(role=UserRoleEnum.MODERATOR, email="moderator@example.com", name="Moderator")


@pytest.fixture
def member(make_user):
    return make_user(email="member@example.com", name="Member")
