"""
Admin Access Check

Plain-text username/password comparison against ``administradores``.
No hashing, no session or token; the storefront admin page only needs
a yes/no answer.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from nahora_delivery.core.errors import DatabaseError
from nahora_delivery.models import Administrador

logger = logging.getLogger(__name__)


class AccessService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def login(self, usuario: str, senha: str) -> bool:
        """True when a row matches both fields exactly."""
        try:
            result = await self.db.execute(
                select(Administrador.id)
                .where(Administrador.usuario == usuario, Administrador.senha == senha)
                .limit(1)
            )
        except SQLAlchemyError as e:
            raise DatabaseError(f"Erro no login: {e}", cause=e) from e

        success = result.first() is not None
        if not success:
            logger.info(f"Failed admin login for {usuario!r}")
        return success
