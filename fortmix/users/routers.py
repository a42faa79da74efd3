from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fortmix.audit.service import log_audit
from fortmix.database import get_db
from fortmix.users import crud as user_crud, schemas
from fortmix.users.auth import authenticate_user, create_access_token, get_current_user, hash_password
from fortmix.users.permissions import Role, role_required

router = APIRouter()
auth_router = APIRouter()


@auth_router.post("/login", response_model=schemas.LoginResponse)
def login(
    credentials: schemas.LoginSchema,
    request: Request,
    db: Session = Depends(get_db),
):
    username = credentials.username.strip().lower()

    user = authenticate_user(db, username, credentials.password)
    if not user:
        logger.warning(f"Authentication denied for username: {username}")
        raise HTTPException(status_code=401, detail="Invalid username or password")

    token = create_access_token(user, request.app.state.settings)

    try:
        log_audit(db, user.id, "LOGIN", "AUTH", "Usuário realizou login no sistema")
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"User authenticated: {username}")
    return {
        "token": token,
        "user": schemas.UserDisplaySchema.model_validate(user),
    }


@router.get("", response_model=List[schemas.UserOut])
def list_all_users(
    db: Session = Depends(get_db),
    current_user: schemas.UserDisplaySchema = Depends(role_required([Role.OWNER])),
):
    return user_crud.get_all_users(db)


@router.get("/me", response_model=schemas.UserDisplaySchema)
def get_current_user_info(
    current_user: schemas.UserDisplaySchema = Depends(get_current_user),
):
    return current_user


@router.post("", response_model=schemas.UserCreatedOut)
def create_user(
    user: schemas.UserSchema,
    db: Session = Depends(get_db),
    current_user: schemas.UserDisplaySchema = Depends(role_required([Role.OWNER])),
):
    if user_crud.get_user_by_username(db, user.username):
        raise HTTPException(status_code=400, detail="Error creating user (username already exists?)")

    try:
        new_user = user_crud.create_user(
            db,
            username=user.username,
            hashed_password=hash_password(user.password),
            name=user.name.strip(),
            role=user.role.value,
        )
        log_audit(
            db,
            current_user.id,
            "CREATE",
            "USER",
            f"Usuário criado: {user.username} ({user.role.value})",
        )
        db.commit()
    except IntegrityError:
        # lost a race against another create with the same username
        db.rollback()
        raise HTTPException(status_code=400, detail="Error creating user (username already exists?)")
    except Exception:
        db.rollback()
        raise

    logger.info(f"User {user.username} created by {current_user.username}")
    return {"id": new_user.id}
