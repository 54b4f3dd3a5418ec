import asyncio
import hashlib
import os
import tempfile
from pathlib import Path

# The application engine is built at import time from DATABASE_URL
_TMP = Path(tempfile.mkdtemp(prefix="cerisonet-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP / 'app.db'}"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient
from passlib.context import CryptContext
from sqlalchemy import create_engine, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from cerisonet.config import settings
from cerisonet.database import Base, get_db
from cerisonet.db import get_database
from cerisonet.main import app
from cerisonet.models_sql import AccountSQL

PASSWORD = "motdepasse123"
LEGACY_PASSWORD = "ancienmotdepasse"

_BCRYPT_HASH = CryptContext(schemes=["bcrypt"]).hash(PASSWORD)

ACCOUNTS = [
    dict(id=1, email="jean.dupont@example.com", first_name="Jean", last_name="Dupont",
         avatar="avatars/jean.png", password_hash=_BCRYPT_HASH),
    dict(id=2, email="marie.curie@example.com", first_name="Marie", last_name="Curie",
         avatar="avatars/marie.png", password_hash=_BCRYPT_HASH),
    # Imported from the legacy directory: unsalted SHA-1
    dict(id=3, email="leo.legacy@example.com", first_name="Leo", last_name="Legacy",
         avatar=None, password_hash=hashlib.sha1(LEGACY_PASSWORD.encode()).hexdigest()),
]


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def sqlite_path(tmp_path):
    path = tmp_path / "accounts.db"
    engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        session.add_all(AccountSQL(connection_status=0, **data) for data in ACCOUNTS)
        session.commit()
    engine.dispose()
    return path


@pytest.fixture
def sync_db(sqlite_path):
    """Synchronous handle on the test database, for assertions and setup"""
    engine = create_engine(f"sqlite:///{sqlite_path}")
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture
def session_factory(sqlite_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{sqlite_path}", poolclass=NullPool)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def mongo_db():
    return AsyncMongoMockClient()["cerisonet_test"]


@pytest.fixture
def posts_collection(mongo_db):
    return mongo_db[settings.POSTS_COLLECTION]


@pytest.fixture
def client(session_factory, mongo_db):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_database():
        return mongo_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_database] = override_get_database
    # Session cookies are Secure, so talk to the app over https
    with TestClient(app, base_url="https://testserver") as c:
        yield c
    app.dependency_overrides.clear()


def account_row(sync_db, account_id):
    sync_db.expire_all()
    return sync_db.execute(select(AccountSQL).where(AccountSQL.id == account_id)).scalar_one()


def login(client, email="jean.dupont@example.com", password=PASSWORD):
    return client.post("/login", json={"email": email, "password": password})
