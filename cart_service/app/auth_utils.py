# cart_service/app/auth_utils.py
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer

from config import settings

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


def verify_token(token: str, secret_key: str = None, algorithm: str = None) -> int:
    """Проверяет JWT от сервиса авторизации и возвращает id пользователя."""
    try:
        payload = jwt.decode(
            token,
            secret_key or settings.secret_key,
            algorithms=[algorithm or settings.algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    user_id = payload.get("id")
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    try:
        return int(user_id)
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")


async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> int:
    return verify_token(token)
