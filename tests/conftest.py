import pytest_asyncio
from tortoise import Tortoise
from ccafk.services.backups import BackupsService


@pytest_asyncio.fixture
async def db():
    """In-memory database with the backups schema."""
    await Tortoise.init(db_url="sqlite://:memory:", modules={"models": ["ccafk.models"]})
    await Tortoise.generate_schemas()

    yield

    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def backups_service(db):
    return BackupsService()
