# cart_service/app/main.py
import logging
import secrets
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from auth_utils import get_current_user_id
from config import settings
from db.database import Database
from db.functions import PostgresCartStore
from db.init_db import init_db
from db.schemas import (
    AddToCartRequest,
    AddToCartResponse,
    CartCountResponse,
    CartView,
    MessageResponse,
    UpdateCartItemRequest,
)
from errors import CartServiceError, ErrorKind
from service import CartService

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

TRACE_ID_HEADER = "X-Trace-ID"
TRACE_PARENT_HEADER = "traceparent"

STATUS_BY_KIND = {
    ErrorKind.INVALID_QUANTITY: 400,
    ErrorKind.CART_ITEM_NOT_FOUND: 404,
}


def get_trace_id(request: Request) -> str:
    # traceparent: version-trace_id-parent_id-flags
    trace_parent = request.headers.get(TRACE_PARENT_HEADER)
    if trace_parent:
        parts = [part for part in trace_parent.split("-") if part]
        if len(parts) >= 2:
            return parts[1]
    trace_id = request.headers.get(TRACE_ID_HEADER)
    if trace_id:
        return trace_id
    return secrets.token_hex(16)


def get_cart_service(request: Request) -> CartService:
    return request.app.state.cart_service


router = APIRouter(prefix="/api/v1", tags=["Cart"])


@router.get("/cart", response_model=CartView)
async def get_cart(user_id: int = Depends(get_current_user_id),
                   service: CartService = Depends(get_cart_service)):
    return await service.get_cart(user_id)


@router.post("/cart", response_model=AddToCartResponse)
async def add_to_cart(body: AddToCartRequest,
                      user_id: int = Depends(get_current_user_id),
                      service: CartService = Depends(get_cart_service)):
    item = await service.add_to_cart(user_id, body)
    return AddToCartResponse(message="Item added to cart", item=item)


@router.delete("/cart", response_model=MessageResponse)
async def clear_cart(user_id: int = Depends(get_current_user_id),
                     service: CartService = Depends(get_cart_service)):
    await service.clear_cart(user_id)
    return MessageResponse(message="Cart cleared")


@router.get("/cart/count", response_model=CartCountResponse)
async def get_cart_count(user_id: int = Depends(get_current_user_id),
                         service: CartService = Depends(get_cart_service)):
    count = await service.get_cart_count(user_id)
    return CartCountResponse(count=count)


@router.patch("/cart/items/{item_id}", response_model=MessageResponse)
async def update_cart_item(item_id: int, body: UpdateCartItemRequest,
                           user_id: int = Depends(get_current_user_id),
                           service: CartService = Depends(get_cart_service)):
    await service.update_item_quantity(user_id, item_id, body.quantity)
    return MessageResponse(message="Cart item updated")


@router.delete("/cart/items/{item_id}", response_model=MessageResponse)
async def remove_cart_item(item_id: int,
                           user_id: int = Depends(get_current_user_id),
                           service: CartService = Depends(get_cart_service)):
    await service.remove_item(user_id, item_id)
    return MessageResponse(message="Cart item removed")


async def cart_error_handler(request: Request, exc: CartServiceError):
    status_code = STATUS_BY_KIND.get(exc.kind, 500)
    if status_code == 500:
        logger.error("Cart operation failed: %s %s: %s",
                     request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    logger.info("Cart request rejected: %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    database = None
    if app.state.cart_service is None:
        settings.validate()
        database = Database.from_settings(settings)
        if settings.db_create_schema:
            await init_db(database)
        app.state.database = database
        app.state.cart_service = CartService(PostgresCartStore(database), settings.shipping)
        logger.info("Database pools ready (replica %s)",
                    "enabled" if database.has_replica else "disabled")

    logger.info("%s starting up on port %s", settings.service_name, settings.service_port)
    yield

    app.state.shutting_down = True
    logger.info("%s shutting down", settings.service_name)
    if database is not None:
        await database.dispose()


def create_app(cart_service: CartService = None, database: Database = None) -> FastAPI:
    """Сервис передаётся явно; без него он создаётся в lifespan из настроек."""
    app = FastAPI(title="Cart Service", version="1.0.0", lifespan=lifespan)
    app.state.cart_service = cart_service
    app.state.database = database
    app.state.shutting_down = False

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        trace_id = get_trace_id(request)
        request.state.trace_id = trace_id
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers[TRACE_ID_HEADER] = trace_id
        logger.info("%s %s -> %s (%.1f ms) trace_id=%s",
                    request.method, request.url.path, response.status_code, elapsed_ms, trace_id)
        return response

    app.add_exception_handler(CartServiceError, cart_error_handler)
    app.include_router(router)

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    @app.get("/ready")
    async def readiness_check(request: Request):
        if request.app.state.shutting_down:
            return JSONResponse(status_code=503, content={"status": "shutting_down"})
        database = request.app.state.database
        if database is not None and not await database.ping():
            return JSONResponse(status_code=503, content={"status": "database_unavailable"})
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=settings.service_port)
