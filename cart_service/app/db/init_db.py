# cart_service/app/db/init_db.py
from db.database import Base, Database
from db.models import CartItem


async def init_db(database: Database):
    # Схема создаётся только на primary
    async with database.primary_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
