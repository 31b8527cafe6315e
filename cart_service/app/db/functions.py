# cart_service/app/db/functions.py
import abc
import logging
from decimal import Decimal
from typing import List

from sqlalchemy import delete, func, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.future import select

from db.database import Database
from db.models import CartItem
from db.schemas import CartLineItem
from errors import ErrorKind, StoreError

logger = logging.getLogger(__name__)

LINE_ITEM_COLUMNS = (
    CartItem.id,
    CartItem.user_id,
    CartItem.product_id,
    CartItem.product_name,
    CartItem.product_price,
    CartItem.quantity,
    CartItem.created_at,
    CartItem.updated_at,
)


class CartStore(abc.ABC):
    """Набор операций над позициями корзины, от которого зависит CartService."""

    @abc.abstractmethod
    async def find_by_user(self, user_id: int) -> List[CartLineItem]:
        ...

    @abc.abstractmethod
    async def get_item_count(self, user_id: int) -> int:
        ...

    @abc.abstractmethod
    async def add_item(self, user_id: int, product_id: int, product_name: str,
                       product_price: Decimal, quantity: int) -> CartLineItem:
        ...

    @abc.abstractmethod
    async def update_item(self, user_id: int, item_id: int, quantity: int) -> None:
        ...

    @abc.abstractmethod
    async def remove_item(self, user_id: int, item_id: int) -> None:
        ...

    @abc.abstractmethod
    async def clear(self, user_id: int) -> None:
        ...


def build_upsert(user_id: int, product_id: int, product_name: str,
                 product_price: Decimal, quantity: int):
    """
    INSERT ... ON CONFLICT (user_id, product_id) DO UPDATE ... RETURNING.

    Повторное добавление того же товара складывает количества, поэтому
    параллельные добавления не теряют друг друга.
    """
    stmt = insert(CartItem).values(
        user_id=user_id,
        product_id=product_id,
        product_name=product_name,
        product_price=product_price,
        quantity=quantity,
        created_at=func.now(),
        updated_at=func.now(),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[CartItem.user_id, CartItem.product_id],
        set_={
            "quantity": CartItem.quantity + stmt.excluded.quantity,
            "updated_at": func.now(),
        },
    )
    return stmt.returning(*LINE_ITEM_COLUMNS)


class PostgresCartStore(CartStore):
    """
    Хранилище корзины поверх пары primary/replica.

    Чтение идёт через database.replica (отставание допустимо), любая запись
    через database.primary внутри явной транзакции. Каждая операция берёт
    свою сессию и возвращает соединение в пул по выходе.
    """

    def __init__(self, database: Database):
        self.database = database

    # Получение позиций корзины пользователя
    async def find_by_user(self, user_id: int) -> List[CartLineItem]:
        query = (
            select(CartItem)
            .filter(CartItem.user_id == user_id)
            .order_by(CartItem.id)
        )
        try:
            async with self.database.replica() as session:
                result = await session.execute(query)
                rows = result.scalars().all()
        except SQLAlchemyError as exc:
            raise StoreError(message=f"find cart items for user {user_id}: {exc}") from exc

        return [CartLineItem.model_validate(row) for row in rows]

    async def get_item_count(self, user_id: int) -> int:
        # Число различных позиций; пустая корзина даёт 0
        query = select(func.count(CartItem.id)).filter(CartItem.user_id == user_id)
        try:
            async with self.database.replica() as session:
                result = await session.execute(query)
                count = result.scalar_one()
        except SQLAlchemyError as exc:
            raise StoreError(message=f"count cart items for user {user_id}: {exc}") from exc

        return int(count or 0)

    async def add_item(self, user_id: int, product_id: int, product_name: str,
                       product_price: Decimal, quantity: int) -> CartLineItem:
        stmt = build_upsert(user_id, product_id, product_name, product_price, quantity)
        try:
            async with self.database.primary() as session:
                # Явная транзакция: commit только после успешного upsert,
                # при любой ошибке или отмене выполняется rollback
                async with session.begin():
                    result = await session.execute(stmt)
                    row = result.mappings().one()
        except SQLAlchemyError as exc:
            raise StoreError(
                message=f"add product {product_id} for user {user_id}: {exc}"
            ) from exc

        item = CartLineItem.model_validate(dict(row))
        logger.debug("Upserted cart item %s for user %s, quantity now %s",
                     item.id, user_id, item.quantity)
        return item

    async def update_item(self, user_id: int, item_id: int, quantity: int) -> None:
        # Владелец входит в условие: чужую позицию обновить нельзя
        stmt = (
            update(CartItem)
            .where(CartItem.id == item_id, CartItem.user_id == user_id)
            .values(quantity=quantity, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        affected = await self._execute_write(stmt, f"update cart item {item_id} for user {user_id}")
        if affected == 0:
            raise StoreError(ErrorKind.NOT_FOUND, f"cart item {item_id} not found for user {user_id}")

    async def remove_item(self, user_id: int, item_id: int) -> None:
        stmt = (
            delete(CartItem)
            .where(CartItem.id == item_id, CartItem.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        affected = await self._execute_write(stmt, f"remove cart item {item_id} for user {user_id}")
        if affected == 0:
            raise StoreError(ErrorKind.NOT_FOUND, f"cart item {item_id} not found for user {user_id}")

    async def clear(self, user_id: int) -> None:
        # Очистка пустой корзины не ошибка
        stmt = (
            delete(CartItem)
            .where(CartItem.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        affected = await self._execute_write(stmt, f"clear cart for user {user_id}")
        logger.debug("Cleared %s cart items for user %s", affected, user_id)

    async def _execute_write(self, stmt, action: str) -> int:
        try:
            async with self.database.primary() as session:
                async with session.begin():
                    result = await session.execute(stmt)
                    affected = result.rowcount
        except SQLAlchemyError as exc:
            raise StoreError(message=f"{action}: {exc}") from exc
        return affected
