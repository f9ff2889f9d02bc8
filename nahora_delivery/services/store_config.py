"""
Store Configuration Service

Key/value settings shown by the storefront (store open flag, WhatsApp
contact). Only the recognized keys are ever written.
"""

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from nahora_delivery.core.errors import DatabaseError
from nahora_delivery.models import ConfigEntry

logger = logging.getLogger(__name__)

KNOWN_KEYS = ("loja_aberta", "telefone_whatsapp")


class ConfigService:
    """Reads and updates the ``config`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_all(self) -> dict[str, Optional[str]]:
        """Every config row folded into a key → value mapping."""
        try:
            result = await self.db.execute(select(ConfigEntry))
        except SQLAlchemyError as e:
            raise DatabaseError(f"Erro ao buscar configurações: {e}", cause=e) from e

        return {entry.chave: entry.valor for entry in result.scalars().all()}

    async def set_known(self, loja_aberta: Optional[str], telefone_whatsapp: Optional[str]) -> None:
        """
        Update the two recognized keys.

        Missing rows are not created; the update simply affects nothing.
        """
        values = {"loja_aberta": loja_aberta, "telefone_whatsapp": telefone_whatsapp}

        try:
            for chave, valor in values.items():
                result = await self.db.execute(
                    update(ConfigEntry).where(ConfigEntry.chave == chave).values(valor=valor)
                )
                if result.rowcount == 0:
                    logger.warning(f"Config key '{chave}' does not exist, not updated")
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Erro ao salvar configurações: {e}", cause=e) from e

        logger.info(f"Config updated: loja_aberta={loja_aberta!r}")
