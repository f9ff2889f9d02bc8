"""
FastAPI Application Entry Point

Nahora Delivery API - storefront and admin backend.
One codebase for every deployment; IMAGE_BACKEND selects where product
images are stored (local disk or Cloudinary).

Endpoints:
    - GET /api/produtos: Available products (storefront)
    - GET/POST /api/admin/produtos: Full catalog / product upsert with image
    - DELETE /api/admin/produtos/{id}: Delete product and its image
    - POST /api/pedidos: Place an order
    - GET /api/admin/pedidos: Orders joined with customers
    - GET/PUT /api/config: Store settings
    - POST /api/admin/login: Admin credential check
    - GET /health: Liveness check
    - GET /debug: Database diagnostics (development only)

Author: Khalil_Bannouri
Version: 1.0.0
"""

import asyncio
import sys
import logging
from typing import Any, Optional
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import APIRouter, FastAPI, HTTPException, Depends, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Internal imports
from nahora_delivery.core.config import Settings, get_settings, setup_logging
from nahora_delivery.core.errors import AppError, ValidationError
from nahora_delivery.database import Database, get_db
from nahora_delivery.schemas import (
    ConfigUpdate,
    DebugResponse,
    ErrorResponse,
    HealthResponse,
    LoginRequest,
    LoginResponse,
    PedidoAdminView,
    PedidoCreate,
    PedidoCreateResponse,
    ProdutoInput,
    ProdutoResponse,
    SuccessResponse,
)
from nahora_delivery.services import AccessService, CatalogService, ConfigService, OrderService
from nahora_delivery.services.storage import BaseImageStorage, ImageUpload, get_image_storage

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {500: {"model": ErrorResponse}}

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")

router = APIRouter()


def error_response(exc: Exception, status_code: int = 500) -> JSONResponse:
    """Render a failure as ``{"error": message}``."""
    return JSONResponse(status_code=status_code, content={"error": str(exc)})


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_storage(request: Request) -> BaseImageStorage:
    """Image storage backend chosen at startup."""
    return request.app.state.image_storage


async def image_upload(
    request: Request,
    imagem: Optional[UploadFile] = File(None),
) -> Optional[ImageUpload]:
    """
    Upload filter for the product form.

    Rejects anything but raster images (SVG can carry script and uploads
    are served from this origin) and files over UPLOAD_MAX_BYTES before
    the handler runs. A file part without a filename counts as no upload.
    """
    if imagem is None or not imagem.filename:
        return None

    settings: Settings = request.app.state.settings

    content_type = (imagem.content_type or "").split(";")[0].strip().lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError("Apenas imagens JPEG, PNG, GIF ou WebP são permitidas")

    content = await imagem.read(settings.upload_max_bytes + 1)
    if len(content) > settings.upload_max_bytes:
        limit_mb = settings.upload_max_bytes / (1024 * 1024)
        raise ValidationError(f"Imagem maior que o limite de {limit_mb:g}MB")

    return ImageUpload(
        content=content,
        filename=imagem.filename,
        content_type=imagem.content_type,
    )


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    settings: Settings = app.state.settings

    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    missing = settings.validate_production_config()
    if missing:
        logger.warning(f"⚠️ Missing image storage config: {missing}")

    app.state.image_storage = get_image_storage(settings)
    logger.info(f"✅ Image Storage: {app.state.image_storage.provider_name}")

    database = Database.from_settings(settings)
    app.state.database = database

    # Connection probe; a failure is logged and the API still starts
    try:
        await database.init_db(settings)
        info = await database.describe()
        logger.info(f"✅ Connected to database: {info['database']}")
        logger.info(f"📊 Tables: {info['tables']}")
    except Exception as e:
        logger.error(f"❌ Database connection failed: {e}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await database.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Health Check",
)
async def health_check() -> HealthResponse:
    """Liveness check."""
    return HealthResponse(
        status="OK",
        message="Nahora Delivery API está funcionando!",
    )


@router.get(
    "/debug",
    response_model=DebugResponse,
    responses=ERROR_RESPONSES,
    tags=["Health"],
    summary="Database Diagnostics (Development)",
)
async def debug_info(request: Request) -> Any:
    """
    Report the connected database and its tables.

    Only available in development mode.
    """
    settings: Settings = request.app.state.settings
    if not settings.is_development:
        raise HTTPException(
            status_code=403,
            detail="Debug endpoint only available in development mode"
        )

    try:
        info = await request.app.state.database.describe()
        return DebugResponse(
            database=info["database"],
            tables=info["tables"],
            message="Conexão com banco de dados OK!",
        )
    except Exception as e:
        logger.exception(f"Debug probe failed: {e}")
        return error_response(e)


# =============================================================================
# PRODUCT ENDPOINTS
# =============================================================================

@router.get(
    "/api/produtos",
    response_model=list[ProdutoResponse],
    responses=ERROR_RESPONSES,
    tags=["Products"],
)
async def list_products(
    db: AsyncSession = Depends(get_db),
    storage: BaseImageStorage = Depends(get_storage),
) -> Any:
    """Products available in the storefront."""
    try:
        return await CatalogService(db, storage).list(only_available=True)
    except Exception as e:
        logger.exception(f"Error listing products: {e}")
        return error_response(e)


@router.get(
    "/api/admin/produtos",
    response_model=list[ProdutoResponse],
    responses=ERROR_RESPONSES,
    tags=["Admin"],
)
async def list_admin_products(
    db: AsyncSession = Depends(get_db),
    storage: BaseImageStorage = Depends(get_storage),
) -> Any:
    """Every product, available or not."""
    try:
        return await CatalogService(db, storage).list(only_available=False)
    except Exception as e:
        logger.exception(f"Error listing admin products: {e}")
        return error_response(e)


@router.post(
    "/api/admin/produtos",
    response_model=SuccessResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Admin"],
    summary="Create or Update Product",
)
async def save_product(
    id: Optional[str] = Form(None),
    nome: str = Form(...),
    descricao: Optional[str] = Form(None),
    preco: str = Form(...),
    categoria: Optional[str] = Form(None),
    disponivel: Optional[str] = Form(None),
    imagem_url: Optional[str] = Form(None),
    image: Optional[ImageUpload] = Depends(image_upload),
    db: AsyncSession = Depends(get_db),
    storage: BaseImageStorage = Depends(get_storage),
) -> Any:
    """
    Create or update a product.

    Sending ``id`` updates that product; otherwise a new one is created.
    An uploaded ``imagem`` replaces ``imagem_url``.
    """
    data = ProdutoInput(
        id=id,
        nome=nome,
        descricao=descricao,
        preco=preco,
        categoria=categoria,
        disponivel=disponivel,
        imagem_url=imagem_url,
    )

    try:
        await CatalogService(db, storage).upsert(data, image)
        return SuccessResponse()
    except Exception as e:
        logger.exception(f"Error saving product: {e}")
        return error_response(e)


@router.delete(
    "/api/admin/produtos/{produto_id}",
    response_model=SuccessResponse,
    responses=ERROR_RESPONSES,
    tags=["Admin"],
)
async def delete_product(
    produto_id: int,
    db: AsyncSession = Depends(get_db),
    storage: BaseImageStorage = Depends(get_storage),
) -> Any:
    """Delete a product and its stored image."""
    try:
        await CatalogService(db, storage).delete(produto_id)
        return SuccessResponse()
    except Exception as e:
        logger.exception(f"Error deleting product #{produto_id}: {e}")
        return error_response(e)


# =============================================================================
# ORDER ENDPOINTS
# =============================================================================

@router.get(
    "/api/admin/pedidos",
    response_model=list[PedidoAdminView],
    responses=ERROR_RESPONSES,
    tags=["Admin"],
)
async def list_admin_orders(db: AsyncSession = Depends(get_db)) -> Any:
    """Orders with customer name, phone and address, newest first."""
    try:
        return await OrderService(db).list_for_admin()
    except Exception as e:
        logger.exception(f"Error listing orders: {e}")
        return error_response(e)


@router.post(
    "/api/pedidos",
    response_model=PedidoCreateResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="Place Order",
)
async def create_order(
    cart: PedidoCreate,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Place an order from the storefront cart."""
    try:
        pedido_id = await OrderService(db).submit(cart)
        logger.info(f"Order #{pedido_id} placed")
        return PedidoCreateResponse(pedido_id=pedido_id)
    except Exception as e:
        logger.exception(f"Error creating order: {e}")
        return error_response(e)


# =============================================================================
# CONFIG & LOGIN ENDPOINTS
# =============================================================================

@router.get(
    "/api/config",
    response_model=dict[str, Optional[str]],
    responses=ERROR_RESPONSES,
    tags=["Config"],
)
async def get_config(db: AsyncSession = Depends(get_db)) -> Any:
    """Store settings as a key → value mapping."""
    try:
        return await ConfigService(db).get_all()
    except Exception as e:
        logger.exception(f"Error reading config: {e}")
        return error_response(e)


@router.put(
    "/api/config",
    response_model=SuccessResponse,
    responses=ERROR_RESPONSES,
    tags=["Config"],
)
async def update_config(
    payload: ConfigUpdate,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Update loja_aberta and telefone_whatsapp."""
    try:
        await ConfigService(db).set_known(payload.loja_aberta, payload.telefone_whatsapp)
        return SuccessResponse()
    except Exception as e:
        logger.exception(f"Error saving config: {e}")
        return error_response(e)


@router.post(
    "/api/admin/login",
    response_model=LoginResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    tags=["Admin"],
)
async def admin_login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Check admin credentials. Wrong credentials still answer HTTP 200."""
    try:
        if await AccessService(db).login(payload.usuario, payload.senha):
            return LoginResponse(success=True)
        return LoginResponse(success=False, error="Credenciais inválidas")
    except Exception as e:
        logger.exception(f"Error during login: {e}")
        return error_response(e)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Rejections from the upload filter."""
    logger.warning(f"Rejected request to {request.url.path}: {exc}")
    return error_response(exc, status_code=400)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.error(f"Unhandled application error: {exc}")
    return error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed requests fail like any other handler error (500)."""
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    logger.error(f"Invalid request to {request.url.path}: {problems}")
    return JSONResponse(status_code=500, content={"error": f"Requisição inválida: {problems}"})


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")
    settings: Settings = request.app.state.settings

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": str(exc) if settings.debug else "Internal Server Error",
        },
    )


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Explicit settings (defaults to the cached environment settings)
    """
    settings = settings or get_settings()
    setup_logging(settings=settings)

    app = FastAPI(
        title=settings.app_name,
        description="Order-management backend for the Nahora Delivery storefront.",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.include_router(router)

    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # Storefront pages and local uploads (/uploads/...) share the public
    # directory; LocalImageStorage creates it at startup
    if not settings.uses_cloudinary or Path(settings.public_directory).is_dir():
        app.mount(
            "/",
            StaticFiles(directory=settings.public_directory, html=True, check_dir=False),
            name="public",
        )

    return app


app = create_app()


def run() -> None:
    """Start the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "nahora_delivery.main:app",
        host=settings.api_host,
        port=settings.api_port,
    )


if __name__ == "__main__":
    run()
