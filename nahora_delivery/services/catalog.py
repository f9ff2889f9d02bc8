"""
Catalog Service

Product listing, upsert and deletion, including the image lifecycle:
    - upsert stores an uploaded image first, then writes the row
    - delete removes the image (best effort), then the row

The storage write and the database write are not linked; a database
failure after a successful upload leaves an orphaned image, which is
logged with its locator.

Author: Khalil_Bannouri
Version: 1.0.0
"""

import logging
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from nahora_delivery.core.errors import DatabaseError, StorageError, ValidationError
from nahora_delivery.models import Produto
from nahora_delivery.schemas import ProdutoInput
from nahora_delivery.services.numbers import parse_decimal
from nahora_delivery.services.storage import BaseImageStorage, ImageUpload

logger = logging.getLogger(__name__)


class CatalogService:
    """
    Product catalog operations bound to one database session.

    Example:
        >>> catalog = CatalogService(db, storage)
        >>> await catalog.upsert(ProdutoInput(nome="Pizza", preco="39.90"), None)
        >>> produtos = await catalog.list(only_available=True)
    """

    def __init__(self, db: AsyncSession, storage: BaseImageStorage):
        self.db = db
        self.storage = storage

    async def list(self, only_available: bool) -> list[Produto]:
        """
        Products ordered by id.

        Args:
            only_available: True for the storefront view, False for admin
        """
        query = select(Produto).order_by(Produto.id)
        if only_available:
            query = query.where(Produto.disponivel.is_(True))

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Erro ao buscar produtos: {e}", cause=e) from e

        return list(result.scalars().all())

    async def upsert(self, data: ProdutoInput, image: Optional[ImageUpload] = None) -> Optional[int]:
        """
        Create a product, or update it when ``data.id`` is present.

        Returns:
            The product id (None when an update matched no row)

        Raises:
            ValidationError: Non-numeric id or price
            StorageError: The image could not be stored
            DatabaseError: The row could not be written
        """
        produto_id = self._parse_id(data.id)
        preco = parse_decimal(data.preco, "preco")
        disponivel = data.disponivel == "true"

        imagem_url = data.imagem_url
        if image is not None:
            imagem_url = await self.storage.store(image)

        values = {
            "nome": data.nome,
            "descricao": data.descricao,
            "preco": preco,
            "categoria": data.categoria,
            "imagem_url": imagem_url,
            "disponivel": disponivel,
        }

        try:
            if produto_id is not None:
                result = await self.db.execute(
                    update(Produto).where(Produto.id == produto_id).values(**values)
                )
                if result.rowcount == 0:
                    logger.warning(f"Update for product #{produto_id} matched no row")
                    produto_id = None
            else:
                produto = Produto(**values)
                self.db.add(produto)
                await self.db.flush()
                produto_id = produto.id

            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            if image is not None:
                logger.warning(f"Image {imagem_url} is orphaned after failed product save")
            raise DatabaseError(f"Erro ao salvar produto: {e}", cause=e) from e

        logger.info(f"Product #{produto_id} saved ({data.nome})")
        return produto_id

    async def delete(self, produto_id: int) -> None:
        """
        Delete a product and, when owned by the active backend, its image.

        A failed image delete is logged and does not block the row
        deletion. Unknown ids are ignored.
        """
        try:
            result = await self.db.execute(
                select(Produto.imagem_url).where(Produto.id == produto_id)
            )
            imagem_url = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Erro ao excluir produto: {e}", cause=e) from e

        if self.storage.owns(imagem_url):
            try:
                await self.storage.delete(imagem_url)
            except StorageError as e:
                logger.warning(f"Could not delete image of product #{produto_id}: {e}")

        try:
            await self.db.execute(delete(Produto).where(Produto.id == produto_id))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Erro ao excluir produto: {e}", cause=e) from e

        logger.info(f"Product #{produto_id} deleted")

    @staticmethod
    def _parse_id(raw: Optional[str]) -> Optional[int]:
        if raw is None or str(raw).strip() == "":
            return None
        try:
            return int(str(raw).strip())
        except ValueError:
            raise ValidationError(f"Id de produto inválido: {raw!r}")
