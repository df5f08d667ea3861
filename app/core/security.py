"""JWT 鉴权：令牌由认证服务签发，这里只解析出调用者身份"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from app.core.config import settings

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


class CurrentUser(BaseModel):
    """已认证的调用者"""
    id: int
    is_admin: bool = False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=60))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


def _unauthenticated() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthenticated.",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(token: Optional[str] = Depends(oauth2_scheme)) -> CurrentUser:
    """获取当前用户（缺少或无效令牌返回 401）"""
    if not token:
        raise _unauthenticated()

    payload = decode_access_token(token)
    if payload is None:
        raise _unauthenticated()

    user_id = payload.get("user_id") or payload.get("sub")
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise _unauthenticated()

    return CurrentUser(id=user_id, is_admin=bool(payload.get("is_admin", False)))


def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user
