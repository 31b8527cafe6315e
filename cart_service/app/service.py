# cart_service/app/service.py
import logging
from decimal import Decimal
from typing import Iterable

from db.functions import CartStore
from db.schemas import AddToCartRequest, CartItemView, CartLineItem, CartView
from errors import ErrorKind, StoreError, cart_item_not_found, invalid_quantity

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
DEFAULT_SHIPPING = Decimal("5.00")


def build_cart_view(user_id: int, items: Iterable[CartLineItem], shipping: Decimal = DEFAULT_SHIPPING) -> CartView:
    """Собирает корзину из позиций: подытоги, доставка, итог, число позиций."""
    item_views = []
    subtotal = Decimal("0.00")
    total_quantity = 0

    for item in items:
        line_subtotal = (Decimal(item.product_price) * item.quantity).quantize(CENT)
        subtotal += line_subtotal
        total_quantity += item.quantity
        item_views.append(CartItemView(
            id=item.id,
            product_id=item.product_id,
            product_name=item.product_name,
            product_price=item.product_price,
            quantity=item.quantity,
            subtotal=line_subtotal,
        ))

    shipping = Decimal(shipping).quantize(CENT)
    subtotal = subtotal.quantize(CENT)
    return CartView(
        user_id=user_id,
        items=item_views,
        subtotal=subtotal,
        shipping=shipping,
        total=subtotal + shipping,
        item_count=len(item_views),
        total_quantity=total_quantity,
    )


class CartService:
    """
    Бизнес-логика корзины.

    Проверяет входные данные до обращения к хранилищу и переводит
    NOT_FOUND хранилища в CART_ITEM_NOT_FOUND. Остальные ошибки хранилища
    пробрасываются без изменений и без повторов.
    """

    def __init__(self, store: CartStore, shipping: Decimal = DEFAULT_SHIPPING):
        self.store = store
        self.shipping = shipping

    async def get_cart(self, user_id: int) -> CartView:
        items = await self.store.find_by_user(user_id)
        cart = build_cart_view(user_id, items, self.shipping)
        logger.debug("Cart for user %s has %s items", user_id, cart.item_count)
        return cart

    async def get_cart_count(self, user_id: int) -> int:
        return await self.store.get_item_count(user_id)

    async def add_to_cart(self, user_id: int, request: AddToCartRequest) -> CartLineItem:
        if request.quantity <= 0:
            raise invalid_quantity(request.quantity)

        item = await self.store.add_item(
            user_id,
            request.product_id,
            request.product_name,
            request.product_price,
            request.quantity,
        )
        logger.info("Product %s added to cart of user %s (item %s)",
                    request.product_id, user_id, item.id)
        return item

    async def update_item_quantity(self, user_id: int, item_id: int, quantity: int) -> None:
        if quantity <= 0:
            raise invalid_quantity(quantity)

        try:
            await self.store.update_item(user_id, item_id, quantity)
        except StoreError as exc:
            if exc.kind == ErrorKind.NOT_FOUND:
                raise cart_item_not_found(item_id) from exc
            raise

    async def remove_item(self, user_id: int, item_id: int) -> None:
        try:
            await self.store.remove_item(user_id, item_id)
        except StoreError as exc:
            if exc.kind == ErrorKind.NOT_FOUND:
                raise cart_item_not_found(item_id) from exc
            raise
        logger.info("Cart item %s removed for user %s", item_id, user_id)

    async def clear_cart(self, user_id: int) -> None:
        await self.store.clear(user_id)
        logger.info("Cart cleared for user %s", user_id)
