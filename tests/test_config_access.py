"""Store configuration and the admin credential check."""

import pytest
from sqlalchemy import delete

from nahora_delivery.models import Administrador, ConfigEntry
from nahora_delivery.services.access import AccessService
from nahora_delivery.services.store_config import ConfigService


async def test_config_is_seeded_on_init(session):
    config = await ConfigService(session).get_all()

    assert config == {"loja_aberta": "true", "telefone_whatsapp": "5511000000000"}


async def test_set_known_then_get_all(database):
    async with database.session() as session:
        await ConfigService(session).set_known("false", "+15550001111")

    async with database.session() as session:
        config = await ConfigService(session).get_all()

    assert config["loja_aberta"] == "false"
    assert config["telefone_whatsapp"] == "+15550001111"


async def test_set_known_never_creates_keys(database, count_rows):
    async with database.session() as session:
        await session.execute(delete(ConfigEntry).where(ConfigEntry.chave == "telefone_whatsapp"))
        await session.commit()

    async with database.session() as session:
        await ConfigService(session).set_known("true", "+15550001111")

    assert await count_rows(ConfigEntry) == 1
    async with database.session() as session:
        assert await ConfigService(session).get_all() == {"loja_aberta": "true"}


async def test_get_all_includes_other_keys(session):
    session.add(ConfigEntry(chave="horario", valor="18h-23h"))
    await session.commit()

    config = await ConfigService(session).get_all()

    assert config["horario"] == "18h-23h"


async def test_init_db_is_idempotent(database, settings, count_rows):
    await database.init_db(settings)

    assert await count_rows(ConfigEntry) == 2
    assert await count_rows(Administrador) == 1


@pytest.mark.parametrize("usuario,senha,expected", [
    ("admin", "secret", True),
    ("admin", "wrongpass", False),
    ("ADMIN", "secret", False),
    ("ghost", "secret", False),
    ("", "", False),
])
async def test_login(session, usuario, senha, expected):
    assert await AccessService(session).login(usuario, senha) is expected
