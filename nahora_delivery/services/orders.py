"""
Order Service

Order intake and the admin order listing.

A submission writes three kinds of rows in sequence, each step needing
the id generated by the previous one:
    1. clientes (a new row per order, no deduplication)
    2. pedidos
    3. pedido_itens, one per cart item in the order supplied

All three run in one transaction: either every row of the order is
committed or none is.

Author: Khalil_Bannouri
Version: 1.0.0
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from nahora_delivery.core.errors import DatabaseError
from nahora_delivery.models import Cliente, Pedido, PedidoItem
from nahora_delivery.schemas import PedidoAdminView, PedidoCreate
from nahora_delivery.services.numbers import parse_decimal

logger = logging.getLogger(__name__)


class OrderService:
    """Order operations bound to one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def submit(self, cart: PedidoCreate) -> int:
        """
        Persist a cart as customer + order + order lines.

        The total is stored as submitted, never recomputed from the items.

        Returns:
            int: The new order id

        Raises:
            ValidationError: Unparsable total or item price (nothing written)
            DatabaseError: Any insert failed (everything rolled back)
        """
        total = parse_decimal(cart.total, "total")
        precos = [parse_decimal(item.preco, "preco") for item in cart.itens]

        try:
            cliente = Cliente(
                nome=cart.cliente.nome,
                telefone=cart.cliente.telefone,
                email=cart.cliente.email or "",
                endereco=cart.cliente.endereco,
            )
            self.db.add(cliente)
            await self.db.flush()

            pedido = Pedido(
                cliente_id=cliente.id,
                endereco_entrega=cart.endereco_entrega,
                forma_pagamento=cart.forma_pagamento,
                observacoes=cart.observacoes,
                total=total,
            )
            self.db.add(pedido)
            await self.db.flush()

            for item, preco in zip(cart.itens, precos):
                self.db.add(PedidoItem(
                    pedido_id=pedido.id,
                    produto_id=item.id,
                    quantidade=item.quantidade,
                    preco_unitario=preco,
                ))
                await self.db.flush()

            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Order with {len(cart.itens)} items rolled back: {e}")
            raise DatabaseError(f"Erro ao salvar pedido: {e}", cause=e) from e

        logger.info(
            f"Order #{pedido.id} created for customer #{cliente.id} "
            f"({len(cart.itens)} items, total {total})"
        )
        return pedido.id

    async def list_for_admin(self) -> list[PedidoAdminView]:
        """All orders with customer name/phone/address, newest first."""
        query = (
            select(
                Pedido,
                Cliente.nome.label("cliente_nome"),
                Cliente.telefone,
                Cliente.endereco,
            )
            .join(Cliente, Pedido.cliente_id == Cliente.id)
            .order_by(Pedido.created_at.desc(), Pedido.id.desc())
        )

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Erro ao buscar pedidos: {e}", cause=e) from e

        return [
            PedidoAdminView(
                id=pedido.id,
                cliente_id=pedido.cliente_id,
                endereco_entrega=pedido.endereco_entrega,
                forma_pagamento=pedido.forma_pagamento,
                observacoes=pedido.observacoes,
                total=pedido.total,
                created_at=pedido.created_at,
                cliente_nome=cliente_nome,
                telefone=telefone,
                endereco=endereco,
            )
            for pedido, cliente_nome, telefone, endereco in result.all()
        ]
