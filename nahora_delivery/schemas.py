"""
Pydantic Schemas for Request/Response Validation

Field names follow the storefront's JSON contract (Portuguese keys,
``pedidoId`` in the order response).

Author: Khalil_Bannouri
Version: 1.0.0
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Any, Union
from datetime import datetime
from decimal import Decimal


def _as_text(v: Any) -> Any:
    """Numbers sent as JSON numbers are kept as text for decimal parsing."""
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, (int, float, Decimal)):
        return str(v)
    return v


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class ClienteInput(BaseModel):
    """Customer block of a cart."""
    nome: str = Field(..., min_length=1, max_length=150, examples=["Ana"])
    telefone: str = Field(..., min_length=1, max_length=30, examples=["11999990000"])
    email: Optional[str] = Field(None, max_length=255, examples=["ana@example.com"])
    endereco: Optional[str] = Field(None, max_length=255, examples=["Rua A, 10"])


class ItemInput(BaseModel):
    """Single line item in a cart."""
    id: int = Field(..., examples=[7])
    quantidade: int = Field(..., ge=1, examples=[2])
    preco: str = Field(..., examples=["10.50"])

    @field_validator("preco", mode="before")
    @classmethod
    def coerce_preco(cls, v: Any) -> Any:
        return _as_text(v)


class PedidoCreate(BaseModel):
    """Cart submitted by the storefront."""
    cliente: ClienteInput
    itens: List[ItemInput] = Field(default_factory=list)
    endereco_entrega: Optional[str] = Field(None, max_length=255)
    forma_pagamento: Optional[str] = Field(None, max_length=50, examples=["pix", "dinheiro", "cartao"])
    observacoes: Optional[str] = Field(None)
    total: str = Field(..., examples=["21.00"])

    @field_validator("total", mode="before")
    @classmethod
    def coerce_total(cls, v: Any) -> Any:
        return _as_text(v)


class ProdutoInput(BaseModel):
    """Form fields of the admin product upsert, as submitted (text)."""
    id: Optional[str] = None
    nome: str
    descricao: Optional[str] = None
    preco: str
    categoria: Optional[str] = None
    disponivel: Optional[str] = None
    imagem_url: Optional[str] = None


class ConfigUpdate(BaseModel):
    """Store settings editable from the admin panel."""
    loja_aberta: Optional[str] = Field(None, examples=["true"])
    telefone_whatsapp: Optional[str] = Field(None, examples=["5511999990000"])

    @field_validator("loja_aberta", "telefone_whatsapp", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _as_text(v)


class LoginRequest(BaseModel):
    """Admin login form."""
    usuario: str = ""
    senha: str = ""


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class ProdutoResponse(BaseModel):
    """Response schema for a single product."""
    id: int
    nome: str
    descricao: Optional[str]
    preco: Decimal
    categoria: Optional[str]
    imagem_url: Optional[str]
    disponivel: bool

    class Config:
        from_attributes = True


class PedidoAdminView(BaseModel):
    """Order row joined with its customer for the admin dashboard."""
    id: int
    cliente_id: int
    endereco_entrega: Optional[str]
    forma_pagamento: Optional[str]
    observacoes: Optional[str]
    total: Decimal
    created_at: Optional[datetime]
    cliente_nome: str
    telefone: str
    endereco: Optional[str]


class PedidoCreateResponse(BaseModel):
    """Response after successfully placing an order."""
    success: bool = True
    pedido_id: int = Field(..., serialization_alias="pedidoId")


class SuccessResponse(BaseModel):
    """Generic acknowledgement."""
    success: bool = True


class LoginResponse(BaseModel):
    """Login outcome. Bad credentials are not an HTTP error."""
    success: bool
    error: Optional[str] = None


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    message: str


class DebugResponse(BaseModel):
    """Database diagnostics."""
    database: dict[str, Union[str, None]]
    tables: List[str]
    message: str
