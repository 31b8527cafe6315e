# cart_service/app/config.py
import os
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Настройки сервиса корзины из переменных окружения (.env)."""

    def __init__(self):
        self.service_name = os.getenv("SERVICE_NAME", "cart_service")
        self.service_port = int(os.getenv("SERVICE_PORT", "8003"))
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.cors_origins = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]

        self.db_user = os.getenv("CART_DB_USER", "postgres")
        self.db_password = os.getenv("CART_DB_PASSWORD", "postgres")
        self.db_host = os.getenv("CART_DB_HOST", "localhost")
        self.db_port = os.getenv("CART_DB_PORT", "5432")
        self.db_name = os.getenv("CART_DB_NAME", "cart")
        # Реплика необязательна: без неё чтение идёт в primary
        self.db_replica_host = os.getenv("CART_DB_REPLICA_HOST", "")
        self.db_replica_port = os.getenv("CART_DB_REPLICA_PORT", self.db_port)
        self.db_pool_size = int(os.getenv("CART_DB_POOL_SIZE", "10"))
        self.db_max_overflow = int(os.getenv("CART_DB_MAX_OVERFLOW", "5"))
        self.db_echo = _as_bool(os.getenv("CART_DB_ECHO", "false"))
        self.db_create_schema = _as_bool(os.getenv("CART_DB_CREATE_SCHEMA", "false"))

        self.shipping_fee = os.getenv("SHIPPING_FEE", "5.00")

        self.secret_key = os.getenv("SECRET_KEY", "your_secret_key")
        self.algorithm = os.getenv("ALGORITHM", "HS256")

    def _url(self, host: str, port: str) -> str:
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{host}:{port}/{self.db_name}"
        )

    @property
    def database_url(self) -> str:
        return self._url(self.db_host, self.db_port)

    @property
    def replica_database_url(self) -> str:
        if not self.db_replica_host:
            return self.database_url
        return self._url(self.db_replica_host, self.db_replica_port)

    @property
    def shipping(self) -> Decimal:
        return Decimal(self.shipping_fee).quantize(Decimal("0.01"))

    def validate(self):
        """Проверка настроек при старте; бросает ValueError."""
        if not self.db_host or not self.db_name:
            raise ValueError("CART_DB_HOST and CART_DB_NAME must be set")
        if self.db_pool_size <= 0:
            raise ValueError("CART_DB_POOL_SIZE must be positive")
        if self.db_max_overflow < 0:
            raise ValueError("CART_DB_MAX_OVERFLOW must not be negative")
        try:
            shipping = self.shipping
        except InvalidOperation:
            raise ValueError(f"SHIPPING_FEE is not a number: {self.shipping_fee!r}")
        if shipping < 0:
            raise ValueError("SHIPPING_FEE must not be negative")
        if not self.secret_key:
            raise ValueError("SECRET_KEY must be set")


settings = Settings()
