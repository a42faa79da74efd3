from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from fortmix.config import Settings
from fortmix.database import get_db
from fortmix.time_utils import utcnow
from fortmix.users import crud as user_crud
from fortmix.users import schemas as user_schemas
from fortmix.users.models import User

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(plain_password: str) -> str:
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, stored_hash: str) -> bool:
    try:
        return pwd_context.verify(plain_password, stored_hash)
    except ValueError:
        # unrecognised or malformed hash
        return False


def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
    user = user_crud.get_user_by_username(db, username)
    if not user or not verify_password(password, user.password):
        return None
    return user


def create_access_token(user: User, settings: Settings) -> str:
    expire = utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        "sub": user.username,
        "id": user.id,
        "role": user.role,
        "exp": expire,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _unauthorized(detail: str):
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> user_schemas.UserDisplaySchema:
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authenticated")

    settings: Settings = request.app.state.settings
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except JWTError:
        raise _unauthorized("Invalid or expired token")

    user_id = payload.get("id")
    if user_id is None:
        raise _unauthorized("Invalid or expired token")

    # Role comes from the stored user, not from the token
    user = user_crud.get_user_by_id(db, user_id)
    if user is None:
        raise _unauthorized("Invalid or expired token")

    return user_schemas.UserDisplaySchema.model_validate(user)
