"""HTTP surface, exercised through FastAPI's TestClient."""

import logging
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from nahora_delivery.core.config import Settings
from nahora_delivery.core.errors import StorageError
from nahora_delivery.main import create_app


def place_order(client, **overrides):
    payload = {
        "cliente": {"nome": "Ana", "telefone": "123", "endereco": "Rua A"},
        "itens": [{"id": 7, "quantidade": 2, "preco": "10.50"}],
        "endereco_entrega": "Rua A",
        "forma_pagamento": "pix",
        "observacoes": "",
        "total": "21.00",
    }
    payload.update(overrides)
    return client.post("/api/pedidos", json=payload)


def save_product(client, files=None, **fields):
    data = {
        "nome": "Pizza Margherita",
        "descricao": "Tomate e manjericão",
        "preco": "35.00",
        "categoria": "pizzas",
        "disponivel": "true",
    }
    data.update(fields)
    return client.post("/api/admin/produtos", data=data, files=files)


# =============================================================================
# HEALTH
# =============================================================================

def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "OK", "message": "Nahora Delivery API está funcionando!"}


def test_debug_lists_tables_in_development(client):
    response = client.get("/debug")

    assert response.status_code == 200
    body = response.json()
    assert body["database"]["dialect"] == "sqlite"
    assert {"produtos", "clientes", "pedidos", "pedido_itens", "config", "administradores"} <= set(body["tables"])


def test_debug_hidden_outside_development(tmp_path):
    settings = Settings(
        _env_file=None,
        env_mode="production",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'prod.db'}",
        public_directory=str(tmp_path / "public"),
    )
    with TestClient(create_app(settings)) as client:
        response = client.get("/debug")

    assert response.status_code == 403
    assert "error" in response.json()


# =============================================================================
# ORDERS
# =============================================================================

def test_order_then_admin_listing(client):
    response = place_order(client)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert isinstance(body["pedidoId"], int)

    rows = client.get("/api/admin/pedidos").json()
    assert len(rows) == 1
    assert rows[0]["id"] == body["pedidoId"]
    assert rows[0]["cliente_nome"] == "Ana"
    assert rows[0]["telefone"] == "123"
    assert rows[0]["endereco"] == "Rua A"
    assert Decimal(str(rows[0]["total"])) == Decimal("21.00")


def test_order_accepts_numeric_amounts(client):
    response = place_order(client, total=21, itens=[{"id": 7, "quantidade": 2, "preco": 10.5}])

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_order_with_unparsable_total_returns_error(client):
    response = place_order(client, total="vinte e um")

    assert response.status_code == 500
    assert "total" in response.json()["error"]
    assert client.get("/api/admin/pedidos").json() == []


def test_order_without_customer_fails_with_500(client):
    response = client.post("/api/pedidos", json={"itens": [], "total": "0"})

    assert response.status_code == 500
    assert "cliente" in response.json()["error"]
    assert client.get("/api/admin/pedidos").json() == []


def test_order_with_zero_quantity_fails_with_500(client):
    response = place_order(client, itens=[{"id": 7, "quantidade": 0, "preco": "10.50"}])

    assert response.status_code == 500
    assert "error" in response.json()


def test_placing_order_does_not_log_customer_name(client, caplog):
    with caplog.at_level(logging.DEBUG, logger="nahora_delivery"):
        response = place_order(client, cliente={"nome": "Fulana Secreta", "telefone": "9", "endereco": "Rua Z"})

    assert response.status_code == 200
    assert f"Order #{response.json()['pedidoId']} placed" in caplog.text
    assert "Fulana Secreta" not in caplog.text


# =============================================================================
# PRODUCTS
# =============================================================================

def test_product_lifecycle_with_local_image(client):
    response = save_product(client, files={"imagem": ("margherita.png", b"\x89PNG-data", "image/png")})
    assert response.status_code == 200
    assert response.json() == {"success": True}

    produtos = client.get("/api/produtos").json()
    assert len(produtos) == 1
    produto = produtos[0]
    assert produto["imagem_url"].startswith("/uploads/")
    assert Decimal(str(produto["preco"])) == Decimal("35.00")

    image = client.get(produto["imagem_url"])
    assert image.status_code == 200
    assert image.content == b"\x89PNG-data"

    response = client.delete(f"/api/admin/produtos/{produto['id']}")
    assert response.json() == {"success": True}
    assert client.get("/api/admin/produtos").json() == []
    assert client.get(produto["imagem_url"]).status_code == 404


def test_product_update_keeps_row_count(client):
    save_product(client, imagem_url="https://cdn.example.com/p.png")
    produto_id = client.get("/api/admin/produtos").json()[0]["id"]

    save_product(client, id=str(produto_id), nome="Pizza Napolitana", disponivel="false")

    produtos = client.get("/api/admin/produtos").json()
    assert len(produtos) == 1
    assert produtos[0]["nome"] == "Pizza Napolitana"
    assert produtos[0]["imagem_url"] is None
    assert client.get("/api/produtos").json() == []


def test_empty_id_field_creates_product(client):
    save_product(client, id="")

    assert len(client.get("/api/admin/produtos").json()) == 1


def test_non_image_upload_is_rejected_before_saving(client):
    response = save_product(client, files={"imagem": ("notas.txt", b"hello", "text/plain")})

    assert response.status_code == 400
    assert "error" in response.json()
    assert client.get("/api/admin/produtos").json() == []


@pytest.mark.parametrize("filename,content_type", [
    ("logo.svg", "image/svg+xml"),
    ("foto.bmp", "image/bmp"),
])
def test_non_raster_image_upload_is_rejected(client, filename, content_type):
    svg = b'<svg xmlns="http://www.w3.org/2000/svg"><script>alert(1)</script></svg>'
    response = save_product(client, files={"imagem": (filename, svg, content_type)})

    assert response.status_code == 400
    assert client.get("/api/admin/produtos").json() == []


def test_webp_upload_is_accepted(client):
    response = save_product(client, files={"imagem": ("p.webp", b"RIFF-webp", "image/webp")})

    assert response.status_code == 200
    assert client.get("/api/admin/produtos").json()[0]["imagem_url"].endswith(".webp")


def test_product_without_name_fails_with_500(client):
    response = client.post("/api/admin/produtos", data={"preco": "10.00"})

    assert response.status_code == 500
    assert "nome" in response.json()["error"]
    assert client.get("/api/admin/produtos").json() == []


def test_delete_with_non_numeric_id_fails_with_500(client):
    response = client.delete("/api/admin/produtos/abc")

    assert response.status_code == 500
    assert "produto_id" in response.json()["error"]


def test_storage_failure_on_upload_returns_500(client, monkeypatch):
    async def broken_store(upload):
        raise StorageError("Image service unreachable")

    monkeypatch.setattr(client.app.state.image_storage, "store", broken_store)

    response = save_product(client, files={"imagem": ("p.png", b"png", "image/png")})

    assert response.status_code == 500
    assert response.json() == {"error": "Image service unreachable"}
    assert client.get("/api/admin/produtos").json() == []


def test_public_directory_created_at_startup_not_at_build(tmp_path):
    public = tmp_path / "public"
    settings = Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'lazy.db'}",
        public_directory=str(public),
    )

    app = create_app(settings)
    assert not public.exists()

    with TestClient(app) as client:
        assert (public / "uploads").is_dir()
        assert client.get("/health").status_code == 200


def test_oversized_upload_is_rejected(tmp_path):
    settings = Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'small.db'}",
        public_directory=str(tmp_path / "public"),
        upload_max_bytes=10,
    )
    with TestClient(create_app(settings)) as client:
        response = save_product(client, files={"imagem": ("big.png", b"x" * 11, "image/png")})

    assert response.status_code == 400


def test_invalid_price_returns_error(client):
    response = save_product(client, preco="caro")

    assert response.status_code == 500
    assert "preco" in response.json()["error"]


def test_delete_unknown_product_succeeds(client):
    response = client.delete("/api/admin/produtos/4242")

    assert response.status_code == 200
    assert response.json() == {"success": True}


# =============================================================================
# CONFIG & LOGIN
# =============================================================================

def test_config_round_trip(client):
    assert client.get("/api/config").json() == {
        "loja_aberta": "true",
        "telefone_whatsapp": "5511000000000",
    }

    response = client.put("/api/config", json={"loja_aberta": "false", "telefone_whatsapp": "+15550001111"})
    assert response.json() == {"success": True}

    assert client.get("/api/config").json() == {
        "loja_aberta": "false",
        "telefone_whatsapp": "+15550001111",
    }


def test_config_accepts_boolean_flag(client):
    client.put("/api/config", json={"loja_aberta": False, "telefone_whatsapp": "1"})

    assert client.get("/api/config").json()["loja_aberta"] == "false"


def test_login_success(client):
    response = client.post("/api/admin/login", json={"usuario": "admin", "senha": "secret"})

    assert response.status_code == 200
    assert response.json() == {"success": True}


def test_login_wrong_password_is_not_an_http_error(client):
    response = client.post("/api/admin/login", json={"usuario": "admin", "senha": "wrongpass"})

    assert response.status_code == 200
    assert response.json()["success"] is False
