# cart_service/app/errors.py
import enum


class ErrorKind(str, enum.Enum):
    # Ошибки валидации, исправимы клиентом (4xx)
    INVALID_QUANTITY = "invalid_quantity"
    CART_ITEM_NOT_FOUND = "cart_item_not_found"
    # Внутренний признак хранилища: запрос с проверкой владельца не затронул строк
    NOT_FOUND = "not_found"
    # Сбой соединения или запроса (5xx)
    STORE = "store"


class CartServiceError(Exception):
    """Ошибка с явным видом; сравнивать нужно по kind."""

    def __init__(self, kind: ErrorKind, message: str = None):
        self.kind = kind
        self.message = message or kind.value.replace("_", " ")
        super().__init__(self.message)

    def __repr__(self):
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class StoreError(CartServiceError):
    """Ошибка уровня хранилища."""

    def __init__(self, kind: ErrorKind = ErrorKind.STORE, message: str = None):
        super().__init__(kind, message)


class CartError(CartServiceError):
    """Ошибка бизнес-уровня, которую видит HTTP-слой."""


def invalid_quantity(quantity: int) -> CartError:
    return CartError(ErrorKind.INVALID_QUANTITY, f"quantity must be greater than zero, got {quantity}")


def cart_item_not_found(item_id: int) -> CartError:
    return CartError(ErrorKind.CART_ITEM_NOT_FOUND, f"cart item {item_id} not found")
