import httpx
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.config.upstream import get_http_client

from .schemas import OrderCreate, OrderResponse
from .service import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])
public_router = APIRouter()  # Health check, outside /api

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "order", "status": "running"}


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order: OrderCreate,
    db: AsyncSession = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    return await OrderService.create_order(db, client, order)

@router.get("", response_model=list[OrderResponse])
async def list_orders(db: AsyncSession = Depends(get_db)):
    return await OrderService.list_orders(db)

@router.get("/user/{user_id}", response_model=list[OrderResponse])
async def list_user_orders(user_id: int, db: AsyncSession = Depends(get_db)):
    return await OrderService.list_user_orders(db, user_id)

@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: int, db: AsyncSession = Depends(get_db)):
    return await OrderService.get_order(db, order_id)
