"""
Shared fixtures.

Tests run against a temporary SQLite database (aiosqlite) and a
temporary public directory, so no PostgreSQL or Cloudinary account is
needed.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from nahora_delivery.core.config import Settings
from nahora_delivery.database import Database
from nahora_delivery.main import create_app
from nahora_delivery.services.storage import LocalImageStorage


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        env_mode="development",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'nahora.db'}",
        image_backend="local",
        public_directory=str(tmp_path / "public"),
        default_loja_aberta="true",
        default_telefone_whatsapp="5511000000000",
        admin_username="admin",
        admin_password="secret",
    )


@pytest.fixture
async def database(settings):
    database = Database.from_settings(settings)
    await database.init_db(settings)
    yield database
    await database.dispose()


@pytest.fixture
async def session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def storage(settings) -> LocalImageStorage:
    return LocalImageStorage(settings.uploads_path)


@pytest.fixture
def count_rows(database):
    """Count rows of a model in a fresh session."""
    async def _count(model) -> int:
        async with database.session() as fresh:
            result = await fresh.execute(select(func.count()).select_from(model))
            return result.scalar_one()

    return _count


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client
