"""
SQLAlchemy Database Models

Storefront tables keep the Portuguese names used by the frontend:
- produtos: product catalog
- clientes: one row per order submission
- pedidos / pedido_itens: order headers and line items
- config: key/value store settings
- administradores: admin credentials

Author: Khalil_Bannouri
Version: 1.0.0
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from nahora_delivery.database import Base


class Produto(Base):
    """Catalog product shown in the storefront."""
    __tablename__ = "produtos"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    nome = Column(String(150), nullable=False)
    descricao = Column(Text, nullable=True)
    preco = Column(Numeric(10, 2), nullable=False)
    categoria = Column(String(100), nullable=True)

    # URL (Cloudinary) or path (/uploads/...) depending on the image backend
    imagem_url = Column(String(500), nullable=True)
    disponivel = Column(Boolean, default=True, nullable=False, index=True)

    def __repr__(self):
        return f"<Produto #{self.id} - {self.nome}>"


class Cliente(Base):
    """
    Customer record.

    A new row is written for every order; repeat customers are not merged.
    """
    __tablename__ = "clientes"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    nome = Column(String(150), nullable=False)
    telefone = Column(String(30), nullable=False, index=True)
    email = Column(String(255), nullable=False, default="")
    endereco = Column(String(255), nullable=True)

    pedidos = relationship("Pedido", back_populates="cliente")

    def __repr__(self):
        return f"<Cliente #{self.id} - {self.nome}>"


class Pedido(Base):
    """Order header."""
    __tablename__ = "pedidos"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    cliente_id = Column(Integer, ForeignKey("clientes.id"), nullable=False, index=True)

    endereco_entrega = Column(String(255), nullable=True)
    forma_pagamento = Column(String(50), nullable=True)
    observacoes = Column(Text, nullable=True)

    # Submitted total, stored as sent (not recomputed from the items)
    total = Column(Numeric(10, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    cliente = relationship("Cliente", back_populates="pedidos")
    itens = relationship("PedidoItem", back_populates="pedido", order_by="PedidoItem.id")

    def __repr__(self):
        return f"<Pedido #{self.id} - cliente #{self.cliente_id} - {self.total}>"


class PedidoItem(Base):
    """Order line. The unit price is a snapshot taken when the order was placed."""
    __tablename__ = "pedido_itens"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    pedido_id = Column(Integer, ForeignKey("pedidos.id"), nullable=False, index=True)
    produto_id = Column(Integer, nullable=False)
    quantidade = Column(Integer, nullable=False)
    preco_unitario = Column(Numeric(10, 2), nullable=False)

    pedido = relationship("Pedido", back_populates="itens")

    def __repr__(self):
        return f"<PedidoItem #{self.id} - pedido #{self.pedido_id} - {self.quantidade}x produto #{self.produto_id}>"


class ConfigEntry(Base):
    """Store setting (loja_aberta, telefone_whatsapp)."""
    __tablename__ = "config"

    chave = Column(String(100), primary_key=True)
    valor = Column(Text, nullable=True)

    def __repr__(self):
        return f"<ConfigEntry {self.chave}={self.valor!r}>"


class Administrador(Base):
    """Admin credentials, compared as plain text on login."""
    __tablename__ = "administradores"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    usuario = Column(String(100), nullable=False, unique=True)
    senha = Column(String(255), nullable=False)

    def __repr__(self):
        return f"<Administrador {self.usuario}>"
