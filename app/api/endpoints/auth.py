from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_db
from app.core.logging import get_logger
from app.core.security import verify_password
from app.db.models import User
from app.schemas.auth import LoginRequest, LoginResponse, SessionUser

logger = get_logger("api.auth")

router = APIRouter(
    prefix="/api",
    tags=["auth"],
)


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Valida username y password. No emite token ni guarda sesión:
    solo devuelve una proyección reducida del usuario.
    """
    user = db.query(User).filter(User.username == payload.username).first()

    client_ip = request.client.host if request.client else None

    if not user or not verify_password(payload.password, user.hashed_password):
        logger.warning(
            "login_failed",
            extra={
                "operation": "auth_login",
                "resource": "user",
                "username": payload.username,
                "status_code": 401,
                "ip": client_ip,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenciales inválidas",
        )

    logger.info(
        "login_success",
        extra={
            "operation": "auth_login",
            "resource": "user",
            "username": payload.username,
            "user_id": user.id,
            "status_code": 200,
            "ip": client_ip,
        },
    )

    return LoginResponse(user=SessionUser.model_validate(user))
