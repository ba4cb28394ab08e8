from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.dependencies import get_db
from app.core.logging import get_logger
from app.core.security import hash_password
from app.db.models import DEFAULT_ROLE, User
from app.schemas.common import MessageResponse
from app.schemas.user import (
    UserCreate,
    UserListResponse,
    UserRead,
    UserResponse,
    UserSummary,
    UserUpdate,
)

logger = get_logger("api.users")

DUPLICATE_USER_MESSAGE = "El username o email ya existe."

router = APIRouter(
    prefix="/api/users",
    tags=["users"],
)


@router.get("/list", response_model=UserListResponse)
def list_users(db: Session = Depends(get_db)):
    # Solo usuarios con rol "user"; cualquier otro rol queda fuera
    users = db.query(User).filter(User.role == DEFAULT_ROLE).all()
    return UserListResponse(users=[UserSummary.model_validate(u) for u in users])


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: str, db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado")
    return UserResponse(user=UserRead.model_validate(user))


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    user = User(
        username=payload.username,
        hashed_password=hash_password(payload.password),
        role=payload.role,
        name=payload.name,
        email=payload.email,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(
            "user_duplicate",
            extra={
                "operation": "user_create",
                "resource": "user",
                "username": payload.username,
                "status_code": 400,
            },
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=DUPLICATE_USER_MESSAGE)

    db.refresh(user)
    logger.info(
        "user_created",
        extra={
            "operation": "user_create",
            "resource": "user",
            "user_id": user.id,
            "status_code": 201,
        },
    )
    return UserResponse(user=UserRead.model_validate(user))


@router.put("/{user_id}", response_model=UserResponse)
def update_user(user_id: str, payload: UserUpdate, db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado")

    update_data = payload.model_dump(exclude_unset=True)
    new_password = update_data.pop("password", None)

    for field, value in update_data.items():
        setattr(user, field, value)

    if new_password:
        user.hashed_password = hash_password(new_password)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=DUPLICATE_USER_MESSAGE)

    db.refresh(user)
    logger.info(
        "user_updated",
        extra={
            "operation": "user_update",
            "resource": "user",
            "user_id": user.id,
            "fields": sorted(update_data) + (["password"] if new_password else []),
            "status_code": 200,
        },
    )
    return UserResponse(user=UserRead.model_validate(user))


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(user_id: str, db: Session = Depends(get_db)):
    # Siempre responde éxito, exista o no el usuario
    deleted = db.query(User).filter(User.id == user_id).delete()
    db.commit()

    logger.info(
        "user_deleted",
        extra={
            "operation": "user_delete",
            "resource": "user",
            "user_id": user_id,
            "deleted": bool(deleted),
            "status_code": 200,
        },
    )
    return MessageResponse(message="Usuario eliminado")
