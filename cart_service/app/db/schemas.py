# cart_service/app/db/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


# Позиция корзины в том виде, в каком её хранит cart_items
class CartLineItem(BaseModel):
    id: int
    user_id: int
    product_id: int
    product_name: str
    product_price: Decimal
    quantity: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CartItemView(BaseModel):
    id: int
    product_id: int
    product_name: str
    product_price: Decimal
    quantity: int
    subtotal: Decimal


class CartView(BaseModel):
    """Корзина, собранная из позиций при каждом чтении; не хранится."""
    user_id: int
    items: List[CartItemView] = []
    subtotal: Decimal
    shipping: Decimal
    total: Decimal
    # Число различных позиций, не сумма количеств
    item_count: int
    total_quantity: int


class AddToCartRequest(BaseModel):
    product_id: int
    product_name: str = Field(min_length=1, max_length=255)
    product_price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    # Проверка quantity > 0 выполняется в CartService
    quantity: int = 1


class UpdateCartItemRequest(BaseModel):
    quantity: int


class AddToCartResponse(BaseModel):
    message: str
    item: CartLineItem


class CartCountResponse(BaseModel):
    count: int


class MessageResponse(BaseModel):
    message: str
