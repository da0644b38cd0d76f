from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from datetime import timedelta
from app.core.database import get_db
from app.core.security import verify_password, create_access_token
from app.core.config import settings
from app.core.logging_config import get_logger
from app.core.permissions import get_user_permissions
from app.models.user import User
from app.schemas.auth import Token, UserResponse
from app.schemas.common import envelope
from app.api.v1.dependencies import get_current_user

logger = get_logger(__name__)

router = APIRouter()

@router.post("/login", response_model=Token)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """
    Login endpoint - Returns JWT token carrying the user's email and store
    Note: OAuth2PasswordRequestForm uses 'username' field, we accept email as username
    """
    user = db.query(User).filter(User.email == form_data.username).first()
    if not user or not verify_password(form_data.password, user.hashed_password):
        logger.warning(f"Failed login attempt for {form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")

    access_token = create_access_token(
        data={
            "sub": user.email,
            "role": user.role.name if user.role else "Staff",
            "store_id": user.store_id,
        },
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return {"access_token": access_token, "token_type": "bearer"}

@router.get("/me")
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Current authenticated user, with role and store names"""
    user_response = UserResponse.model_validate(current_user)
    user_response.role_name = current_user.role.name if current_user.role else None
    user_response.store_name = current_user.store.name if current_user.store else None
    return envelope(user_response)

@router.get("/permissions")
def get_my_permissions(current_user: User = Depends(get_current_user)):
    """Modules and actions the current user can access"""
    return envelope({
        "user_id": current_user.id,
        "email": current_user.email,
        "role": current_user.role.name if current_user.role else "Staff",
        "permissions": get_user_permissions(current_user),
    })
