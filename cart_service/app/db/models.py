# cart_service/app/db/models.py
from sqlalchemy import Column, Integer, String, Numeric, DateTime, CheckConstraint, UniqueConstraint, Index
from sqlalchemy.sql import func
from db.database import Base


class CartItem(Base):
    __tablename__ = 'cart_items'
    __table_args__ = (
        # Цель ON CONFLICT при добавлении товара
        UniqueConstraint('user_id', 'product_id', name='unique_user_product'),
        CheckConstraint('quantity > 0', name='cart_items_quantity_check'),
        Index('idx_cart_items_updated_at', 'updated_at'),
    )

    id = Column(Integer, primary_key=True)
    # Ссылки на пользователей и товары других сервисов, без FK
    user_id = Column(Integer, nullable=False, index=True)
    product_id = Column(Integer, nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    product_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=1, server_default='1')
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now())
